"""
Upload Client Module

This module sends the form's batch to the upload endpoint as one
multipart request.

Features:
- Multipart payload building
- aiohttp transport
- Error conversion for the form

Payload:
- username: one text field
- images: one file part per staged image, with its content type

Dependencies:
- aiohttp for HTTP
- logging for tracking

Author: Snapped Development Team
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import aiohttp

from app.shared.config import get_upload_service_url
from .constants import ERROR_UPLOAD_FAILED, FIELD_IMAGES, FIELD_USERNAME
from .form_controller import CandidateFile, UploadRequestError

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload"


def build_multipart_fields(
    username: str, files: Sequence[CandidateFile]
) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
    """
    Build the form fields and file parts for an upload request.

    Returns:
        (data, parts): the username text field, and one (field, (file name, bytes, content type))
        part per image under the images field
    """
    data = {FIELD_USERNAME: username}
    parts = [(FIELD_IMAGES, (file.name, file.data, file.content_type)) for file in files]
    return data, parts


def build_form_data(username: str, files: Sequence[CandidateFile]) -> aiohttp.FormData:
    data, parts = build_multipart_fields(username, files)
    form = aiohttp.FormData()
    for name, value in data.items():
        form.add_field(name, value)
    for name, (filename, content, content_type) in parts:
        form.add_field(name, content, filename=filename, content_type=content_type)
    return form


def error_message_from_response(payload: Optional[dict]) -> str:
    """Pick a user-facing message out of an error response body."""
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail:
            return "; ".join(str(item) for item in detail)
    return ERROR_UPLOAD_FAILED


class HttpUploadTransport:
    """
    Posts the upload payload to the service with aiohttp.

    Args:
        base_url (str): Service root; UPLOAD_SERVICE_URL when omitted
        timeout (float): Total request timeout in seconds
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 120.0):
        self.base_url = (base_url or get_upload_service_url()).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def url(self) -> str:
        return f"{self.base_url}{UPLOAD_PATH}"

    async def __call__(self, username: str, files: Sequence[CandidateFile]) -> List[str]:
        form = build_form_data(username, files)
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url, data=form) as response:
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError:
                        payload = None

                    if response.status != 200:
                        logger.error(f"Upload request returned {response.status}: {payload}")
                        raise UploadRequestError(error_message_from_response(payload))

                    if not isinstance(payload, dict) or "file_names" not in payload:
                        raise UploadRequestError(ERROR_UPLOAD_FAILED)
                    return list(payload["file_names"])
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Upload request failed: {str(e)}")
            raise UploadRequestError(ERROR_UPLOAD_FAILED) from e

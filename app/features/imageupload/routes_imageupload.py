"""
Image Upload Routes Module

This module defines the FastAPI routes for the image upload form:
the multipart upload endpoint and the presigned upload URL endpoint.

Features:
- Multipart image upload
- Server-side validation
- Presigned URL generation
- Error handling

Data Model:
- username form field
- images file parts
- Original file names in the response

Security:
- Size limits
- Image count limits
- Rate limiting
- Opaque storage errors

Dependencies:
- FastAPI for routing
- slowapi for rate limiting
- StorageGateway for S3 access
- logging for tracking

Author: Snapped Development Team
"""

from fastapi import Depends, File, Form, HTTPException, Request, UploadFile
from typing import List, Optional
import logging

from app.shared.rate_limit import limiter, upload_rate_limit
from . import router
from .constants import (
    ERROR_FILE_TOO_LARGE,
    ERROR_MISSING_FIELDS,
    ERROR_TOO_MANY_IMAGES,
    ERROR_UPLOAD_FAILED,
    MAX_FILE_SIZE,
    MAX_IMAGES,
    MESSAGE_UPLOAD_SUCCESS,
    PRESIGNED_URL_EXPIRES_IN,
)
from .models import FileValidationError, PresignedUrlResponse, UploadResponse
from .storage_gateway import StorageGateway, TransferError, UploadItem

logger = logging.getLogger(__name__)


def get_storage_gateway(request: Request) -> StorageGateway:
    """Return the gateway created at startup."""
    gateway = getattr(request.app.state, "storage_gateway", None)
    if gateway is None:
        logger.error("Storage gateway requested before startup completed")
        raise HTTPException(status_code=503, detail="Storage is not available")
    return gateway


logger.info("Registering image upload routes...")
@router.post("", response_model=UploadResponse)
@limiter.limit(upload_rate_limit)
async def upload_images(
    request: Request,
    username: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    gateway: StorageGateway = Depends(get_storage_gateway),
):
    """
    Store the submitted images in S3.

    Args:
        username (str): Name entered in the form
        images (List[UploadFile]): Image parts, in submission order

    Returns:
        UploadResponse: Original names of the stored files

    Raises:
        HTTPException: 400 for validation errors, 500 if storage fails
    """
    images = images or []
    logger.info(f"Route hit: POST /api/upload ({len(images)} image(s))")

    if not username or not username.strip() or not images:
        raise HTTPException(status_code=400, detail=ERROR_MISSING_FIELDS)

    if len(images) > MAX_IMAGES:
        raise HTTPException(status_code=400, detail=ERROR_TOO_MANY_IMAGES)

    items: List[UploadItem] = []
    errors: List[FileValidationError] = []
    for image in images:
        content = await image.read(MAX_FILE_SIZE + 1)
        name = image.filename or "upload"
        if len(content) > MAX_FILE_SIZE:
            errors.append(FileValidationError(file_name=name, message=ERROR_FILE_TOO_LARGE))
            continue
        items.append(UploadItem(
            name=name,
            content_type=image.content_type or "application/octet-stream",
            data=content,
        ))

    if errors:
        logger.warning(f"Rejected upload from {username}: {[str(e) for e in errors]}")
        raise HTTPException(status_code=400, detail="; ".join(str(e) for e in errors))

    try:
        file_names = await gateway.upload_batch(items)
    except TransferError as e:
        logger.error(
            f"Upload failed for {username}: failed on {e.failed_name}, "
            f"{len(e.stored)} stored before failure, rolled back: {e.rolled_back}"
        )
        raise HTTPException(status_code=500, detail=ERROR_UPLOAD_FAILED)

    logger.info(f"Stored {len(file_names)} image(s) for {username}")
    return UploadResponse(
        status="success",
        message=MESSAGE_UPLOAD_SUCCESS,
        file_names=file_names,
    )


@router.get("/presigned-url", response_model=PresignedUrlResponse)
async def get_presigned_upload_url(gateway: StorageGateway = Depends(get_storage_gateway)):
    """Get a one-hour URL for a direct put-object to the fixed upload key."""
    try:
        url = gateway.generate_presigned_upload_url()
    except TransferError:
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")
    return PresignedUrlResponse(url=url, expires_in=PRESIGNED_URL_EXPIRES_IN)

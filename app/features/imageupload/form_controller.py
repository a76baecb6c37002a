"""
Upload Form Controller Module

This module models the image upload form: the entered username, the staged
images with their previews, the validation errors, and the in-flight flag.
Each public method corresponds to one UI event (file selection, drop,
remove click, username input, submit).

Features:
- Per-file size validation
- Batch capacity truncation
- Preview lifecycle tracking
- Double-submit guard
- Success/failure feedback

State Machine:
-------------
idle -> submitting -> idle (form cleared)           on success
idle -> submitting -> idle (files kept, error set)  on failure

Dependencies:
- logging for tracking
- uuid for preview URLs

Author: Snapped Development Team
"""

import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Set, Union

from .constants import (
    ERROR_FILE_TOO_LARGE,
    ERROR_MISSING_FIELDS,
    ERROR_SUBMIT_IN_PROGRESS,
    ERROR_UPLOAD_FAILED,
    FORM_STATUS_FAILED,
    FORM_STATUS_IDLE,
    FORM_STATUS_SUBMITTING,
    FORM_STATUS_SUCCESS,
    MAX_FILE_SIZE,
    MAX_IMAGES,
    MESSAGE_UPLOAD_SUCCESS,
)
from .models import FileValidationError

logger = logging.getLogger(__name__)

# Outcome of a submit() call that never reached the transport
OUTCOME_REJECTED = "rejected"
OUTCOME_INVALID = "invalid"


class PreconditionError(Exception):
    """Submit attempted without a username or without staged files."""


class UploadRequestError(Exception):
    """Raised by a transport when the upload request fails."""


class StagedFileIndexError(IndexError):
    """remove_staged() called with a position that holds no staged file."""


@dataclass
class CandidateFile:
    """
    A file handle offered to the form by the picker or a drop.

    Attributes:
        name (str): Original file name
        content_type (str): Declared MIME type
        data (bytes): File content
    """
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "CandidateFile":
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(name=path.name, content_type=content_type, data=path.read_bytes())


class PreviewRegistry:
    """
    Issues and revokes local preview URLs.

    Every URL handed out stays in `active` until revoked, so a leaked preview
    shows up as a leftover entry.
    """

    def __init__(self, origin: str = "blob:upload-form"):
        self.origin = origin
        self.active: Set[str] = set()

    def create(self) -> str:
        url = f"{self.origin}/{uuid.uuid4()}"
        self.active.add(url)
        return url

    def revoke(self, url: str) -> None:
        self.active.discard(url)

    def __len__(self) -> int:
        return len(self.active)


@dataclass
class StagedFile:
    """A file that passed validation, with its preview URL."""
    file: CandidateFile
    preview_url: str


@dataclass
class SubmitOutcome:
    """
    Result of one submit() call.

    Attributes:
        status (str): success, failed, rejected (already in flight) or invalid (precondition)
        file_names (List[str]): Names returned by the server on success
        error (Optional[str]): Message shown to the user otherwise
    """
    status: str
    file_names: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == FORM_STATUS_SUCCESS


Transport = Callable[[str, Sequence[CandidateFile]], Awaitable[List[str]]]


def validate_file(file: CandidateFile, max_file_size: int = MAX_FILE_SIZE) -> Optional[FileValidationError]:
    """Return a validation error if the file is too large, else None."""
    if file.size > max_file_size:
        return FileValidationError(file_name=file.name, message=ERROR_FILE_TOO_LARGE)
    return None


class UploadFormController:
    """
    Client-side state for the image upload form.

    Args:
        transport: Async callable sending (username, files) and returning file names
        max_images (int): Maximum staged images
        max_file_size (int): Maximum size per image in bytes
        show_uploaded_previews (bool): Keep the uploaded file names for display after success
        previews (PreviewRegistry): Preview URL issuer (a new one when omitted)
    """

    def __init__(
        self,
        transport: Transport,
        max_images: int = MAX_IMAGES,
        max_file_size: int = MAX_FILE_SIZE,
        show_uploaded_previews: bool = False,
        previews: Optional[PreviewRegistry] = None,
    ):
        self.transport = transport
        self.max_images = max_images
        self.max_file_size = max_file_size
        self.show_uploaded_previews = show_uploaded_previews
        self.previews = previews if previews is not None else PreviewRegistry()

        self.username = ""
        self.errors: List[FileValidationError] = []
        self.notice: Optional[str] = None
        self.status = FORM_STATUS_IDLE
        self.drag_active = False
        self.uploaded_files: List[str] = []
        self.last_outcome: Optional[SubmitOutcome] = None
        self._staged: List[StagedFile] = []
        self._submitting = False

    # ---- read-only views ---------------------------------------------

    @property
    def staged_files(self) -> List[StagedFile]:
        return list(self._staged)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_images - len(self._staged))

    @property
    def accepts_more(self) -> bool:
        return self.remaining_capacity > 0

    @property
    def can_submit(self) -> bool:
        return bool(self._staged) and not self._submitting

    @property
    def status_message(self) -> str:
        return f"{len(self._staged)}/{self.max_images} images selected"

    @property
    def error_messages(self) -> List[str]:
        return [str(error) for error in self.errors]

    # ---- input events ------------------------------------------------

    def set_username(self, value: str) -> None:
        self.username = value

    def drag_enter(self) -> None:
        self.drag_active = True

    def drag_leave(self) -> None:
        self.drag_active = False

    def drop(self, candidates: Iterable[CandidateFile]) -> List[FileValidationError]:
        self.drag_active = False
        return self.stage_files(candidates)

    def stage_files(self, candidates: Iterable[CandidateFile]) -> List[FileValidationError]:
        """
        Validate and stage a batch of files.

        The batch is cut to the remaining capacity first; files past that
        point are dropped without being validated. The returned errors
        replace the previous error list.

        Args:
            candidates: Files from the picker or a drop, in order

        Returns:
            List[FileValidationError]: One error per rejected file
        """
        batch = list(candidates)[:self.remaining_capacity]

        errors: List[FileValidationError] = []
        for file in batch:
            error = validate_file(file, self.max_file_size)
            if error is not None:
                errors.append(error)
                continue
            self._staged.append(StagedFile(file=file, preview_url=self.previews.create()))

        self.errors = errors
        logger.debug(
            f"Staged {len(batch) - len(errors)} of {len(batch)} file(s), "
            f"{len(self._staged)}/{self.max_images} in form"
        )
        return errors

    def remove_staged(self, index: int) -> StagedFile:
        """
        Remove a staged file and release its preview.

        Raises:
            StagedFileIndexError: If no staged file exists at index
        """
        if not 0 <= index < len(self._staged):
            raise StagedFileIndexError(
                f"No staged file at position {index} ({len(self._staged)} staged)"
            )
        staged = self._staged.pop(index)
        self.previews.revoke(staged.preview_url)
        return staged

    def reset(self) -> None:
        """Clear the form and release every preview."""
        for staged in self._staged:
            self.previews.revoke(staged.preview_url)
        self._staged = []
        self.username = ""
        self.errors = []

    # ---- submission --------------------------------------------------

    def _clear_sent(self, sent: List[StagedFile]) -> None:
        """Drop the submitted entries; files staged while in flight stay for the next submit."""
        sent_ids = {id(staged) for staged in sent}
        for staged in self._staged:
            if id(staged) in sent_ids:
                self.previews.revoke(staged.preview_url)
        self._staged = [staged for staged in self._staged if id(staged) not in sent_ids]
        self.username = ""
        self.errors = []

    def _check_preconditions(self) -> None:
        if not self.username.strip() or not self._staged:
            raise PreconditionError(ERROR_MISSING_FIELDS)

    async def submit(self) -> SubmitOutcome:
        """
        Send the staged files and username in one upload request.

        A call made while another submission is in flight is rejected
        without contacting the server.

        Returns:
            SubmitOutcome: Result of this call
        """
        if self._submitting:
            logger.warning("Submit ignored: upload already in progress")
            return SubmitOutcome(status=OUTCOME_REJECTED, error=ERROR_SUBMIT_IN_PROGRESS)

        try:
            self._check_preconditions()
        except PreconditionError as e:
            self.notice = str(e)
            return SubmitOutcome(status=OUTCOME_INVALID, error=str(e))

        self._submitting = True
        self.status = FORM_STATUS_SUBMITTING
        self.notice = None
        sent = list(self._staged)
        files = [staged.file for staged in sent]

        try:
            file_names = await self.transport(self.username, files)
        except UploadRequestError as e:
            logger.error(f"Upload failed: {str(e)}")
            message = str(e) or ERROR_UPLOAD_FAILED
            outcome = SubmitOutcome(status=FORM_STATUS_FAILED, error=message)
            self.notice = message
            self.last_outcome = outcome
            return outcome
        except Exception:
            logger.exception("Unexpected error during upload")
            outcome = SubmitOutcome(status=FORM_STATUS_FAILED, error=ERROR_UPLOAD_FAILED)
            self.notice = ERROR_UPLOAD_FAILED
            self.last_outcome = outcome
            return outcome
        finally:
            self._submitting = False
            self.status = FORM_STATUS_IDLE

        logger.info(f"Uploaded {len(file_names)} file(s) for {self.username}")
        self._clear_sent(sent)
        self.uploaded_files = list(file_names) if self.show_uploaded_previews else []
        self.notice = MESSAGE_UPLOAD_SUCCESS
        outcome = SubmitOutcome(status=FORM_STATUS_SUCCESS, file_names=list(file_names))
        self.last_outcome = outcome
        return outcome

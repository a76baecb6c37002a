"""
Image Upload Models Module

This module defines the data models used by the image upload feature
for validation results and API responses.

Features:
- Validation error models
- Upload response models
- Presigned URL models

Data Model:
- Per-file validation errors
- Uploaded file names
- Presigned URL details

Dependencies:
- pydantic for data validation
- typing for type hints

Author: Snapped Development Team
"""

from pydantic import BaseModel
from typing import List


class FileValidationError(BaseModel):
    """
    Validation error for a single file.

    Attributes:
        file_name (str): Name of the rejected file
        message (str): Reason the file was rejected
    """
    file_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.file_name}: {self.message}"


class UploadResponse(BaseModel):
    """
    Upload response model.

    Attributes:
        status (str): Operation status
        message (str): Response message
        file_names (List[str]): Original names of the stored files, in order
    """
    status: str
    message: str
    file_names: List[str]


class PresignedUrlResponse(BaseModel):
    """
    Presigned upload URL response model.

    Attributes:
        url (str): Absolute URL authorizing one put-object call
        expires_in (int): Lifetime of the URL in seconds
    """
    url: str
    expires_in: int

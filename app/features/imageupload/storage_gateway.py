"""
Storage Gateway - S3 Image Storage Module

This module places uploaded images into the S3 bucket under freshly
generated keys and mints presigned upload URLs. It works against a single
S3 client that is created at startup and passed in by reference.

Architecture:
-----------
1. Batch Uploads:
   - One random key per file
   - Sequential put-object calls
   - Original names returned in order

2. Presigned URLs:
   - Fixed key
   - One hour lifetime
   - put_object only

3. Error Handling:
   - Backend errors logged with detail
   - One opaque TransferError for the caller
   - Compensating deletes for partially written batches

Key Format:
----------
<namespace>/<32 hex chars>, e.g. Room.jpeg/4f3a9c1e2b7d4856a0f1c9d3e7b8a210

The key never contains the user's file name.

Dependencies:
-----------
- boto3: AWS SDK for Python (client passed in)
- botocore: Error types
- logging: Operation tracking

Author: Snapped Development Team
"""

import asyncio
import logging
import secrets
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from app.shared.config import StorageSettings
from .constants import ERROR_UPLOAD_FAILED, PRESIGNED_URL_EXPIRES_IN, RANDOM_KEY_BYTES

logger = logging.getLogger(__name__)


class UploadItem(NamedTuple):
    """One file in an upload batch."""
    name: str
    content_type: str
    data: bytes


class TransferError(Exception):
    """
    Raised when any put-object call in a batch fails.

    The message is always the generic upload failure text. The attributes
    carry detail for server-side logging only.

    Attributes:
        stored (List[Tuple[str, str]]): (file name, key) pairs written before the failure
        failed_name (Optional[str]): Name of the file whose upload failed
        rolled_back (bool): Whether the stored objects were deleted again
    """

    def __init__(
        self,
        stored: Optional[List[Tuple[str, str]]] = None,
        failed_name: Optional[str] = None,
        rolled_back: bool = False,
    ):
        super().__init__(ERROR_UPLOAD_FAILED)
        self.stored = stored or []
        self.failed_name = failed_name
        self.rolled_back = rolled_back


def generate_object_key(prefix: str) -> str:
    """Return '<prefix>/<hex>' built from 16 cryptographically random bytes."""
    return f"{prefix}/{secrets.token_hex(RANDOM_KEY_BYTES)}"


def _describe_error(error: Exception) -> str:
    if isinstance(error, ClientError):
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        error_msg = error.response.get('Error', {}).get('Message', 'Unknown error')
        return f"{error_code} - {error_msg}"
    return str(error)


class StorageGateway:
    """
    Service class for storing uploaded images in S3.

    Attributes:
        s3_client: Shared boto3 S3 client
        bucket_name (str): Target S3 bucket name
        key_prefix (str): Namespace for generated keys
        presigned_key (str): Fixed key for presigned upload URLs
        rollback_on_failure (bool): Delete stored objects when a batch fails
    """

    def __init__(self, s3_client: Any, settings: StorageSettings):
        self.s3_client = s3_client
        self.bucket_name = settings.bucket_name
        self.key_prefix = settings.key_prefix
        self.presigned_key = settings.presigned_key
        self.rollback_on_failure = settings.rollback_on_failure

    async def upload_batch(self, files: Sequence[UploadItem]) -> List[str]:
        """
        Upload every file in the batch under a new random key.

        Files are uploaded one after another; each put-object call finishes
        before the next one starts. The first failure stops the batch.

        Args:
            files (Sequence[UploadItem]): Files in submission order

        Returns:
            List[str]: Original file names, in the order uploaded

        Raises:
            TransferError: If any put-object call fails
        """
        file_names: List[str] = []
        stored: List[Tuple[str, str]] = []

        for item in files:
            key = generate_object_key(self.key_prefix)
            try:
                await asyncio.to_thread(
                    self.s3_client.put_object,
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=item.data,
                    ContentType=item.content_type,
                )
            except Exception as e:
                logger.error(
                    f"Error uploading to S3: {item.name} -> {self.bucket_name}/{key}: "
                    f"{_describe_error(e)}"
                )
                if stored:
                    logger.error(
                        f"{len(stored)} file(s) stored before the failure: "
                        f"{[name for name, _ in stored]}"
                    )
                rolled_back = False
                if stored and self.rollback_on_failure:
                    rolled_back = await self._rollback(stored)
                raise TransferError(
                    stored=stored, failed_name=item.name, rolled_back=rolled_back
                ) from e

            stored.append((item.name, key))
            file_names.append(item.name)
            logger.info(f"Uploaded {item.name} to {self.bucket_name}/{key}")

        return file_names

    async def _rollback(self, stored: List[Tuple[str, str]]) -> bool:
        """Delete objects written earlier in a failed batch. Returns True if all were removed."""
        all_deleted = True
        for name, key in stored:
            try:
                await asyncio.to_thread(
                    self.s3_client.delete_object, Bucket=self.bucket_name, Key=key
                )
                logger.info(f"Rolled back {name} ({key})")
            except Exception as e:
                all_deleted = False
                logger.error(f"Failed to roll back {name} ({key}): {_describe_error(e)}")
        return all_deleted

    def generate_presigned_upload_url(self) -> str:
        """
        Generate a presigned URL for a single put-object call.

        The key is fixed, so every use of the URL writes the same object.

        Returns:
            str: URL valid for one hour

        Raises:
            TransferError: If the URL cannot be signed
        """
        try:
            return self.s3_client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': self.presigned_key
                },
                ExpiresIn=PRESIGNED_URL_EXPIRES_IN
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error generating presigned URL: {_describe_error(e)}")
            raise TransferError() from e

"""
Storage Client Module

This module owns the process-wide S3 client. The client is built once
during application startup from validated settings and handed by
reference to every storage gateway operation.

Features:
- Client construction
- Retry configuration
- Startup lifecycle

Security:
- Credentials from validated settings only
- SigV4 signing for presigned URLs

Dependencies:
- boto3: AWS SDK for Python
- botocore: Client configuration
- logging: Operation tracking

Author: Snapped Development Team
"""

from contextlib import asynccontextmanager
from typing import Any, Optional
import logging

import boto3
from botocore.config import Config
from fastapi import FastAPI

from app.features.imageupload.storage_gateway import StorageGateway
from .config import StorageSettings, load_storage_settings

logger = logging.getLogger(__name__)


def create_s3_client(settings: StorageSettings):
    """
    Build the S3 client for the configured bucket region.

    Args:
        settings (StorageSettings): Validated storage settings

    Returns:
        botocore S3 client
    """
    logger.debug(f"Initializing S3 client with region: {settings.region}")

    # Configure boto3 client with retry settings
    config = Config(
        region_name=settings.region,
        signature_version="s3v4",
        retries=dict(
            max_attempts=3,
            mode="standard"
        )
    )

    return boto3.client(
        "s3",
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
        config=config
    )


def build_lifespan(
    settings: Optional[StorageSettings] = None,
    s3_client: Optional[Any] = None,
):
    """
    Create the FastAPI lifespan that sets up the storage gateway.

    Settings are loaded when the application starts, so missing credentials
    stop startup with a ConfigurationError instead of failing on first upload.

    Args:
        settings: Pre-validated settings; read from the environment when omitted
        s3_client: Client to use instead of building one (tests pass a fake)
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or load_storage_settings()
        client = s3_client if s3_client is not None else create_s3_client(resolved)

        app.state.storage_settings = resolved
        app.state.storage_gateway = StorageGateway(client, resolved)
        logger.info(f"Storage gateway ready for bucket: {resolved.bucket_name}")

        yield

        logger.info("Shutting down storage gateway")
        app.state.storage_gateway = None

    return lifespan

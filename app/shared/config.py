"""
Configuration Module

This module manages application configuration settings and environment
variables for the image upload service.

Features:
- Environment loading
- Storage credentials
- Upload limits
- Rate limit settings
- CORS origins

Data Model:
- Bucket name
- Access keys
- Region
- Key namespace

Security:
- No defaulted secrets
- Fail-fast validation
- Env isolation

Dependencies:
- os for env
- dotenv for loading

Author: Snapped Development Team
"""

import os
from dataclasses import dataclass
from typing import List
from dotenv import load_dotenv

load_dotenv()

# Required storage configuration (env var names)
REQUIRED_STORAGE_VARS = [
    "AWS_BUCKET_NAME",
    "AWS_ACCESS_KEY",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
]

# Optional settings with defaults
DEFAULT_UPLOAD_KEY_PREFIX = "Room.jpeg"
DEFAULT_PRESIGNED_UPLOAD_KEY = "test"
DEFAULT_UPLOAD_RATE_LIMIT = "50/minute"
DEFAULT_UPLOAD_SERVICE_URL = "http://localhost:8000"


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(
            f"Missing required configuration: {', '.join(missing)}"
        )


@dataclass(frozen=True)
class StorageSettings:
    """
    Validated storage settings.

    Attributes:
        bucket_name (str): Target S3 bucket
        access_key_id (str): AWS access key ID
        secret_access_key (str): AWS secret access key
        region (str): AWS region (e.g. 'ap-southeast-1')
        key_prefix (str): Namespace for generated object keys
        presigned_key (str): Fixed key used for presigned upload URLs
        rollback_on_failure (bool): Delete already-written objects when a batch fails
    """
    bucket_name: str
    access_key_id: str
    secret_access_key: str
    region: str
    key_prefix: str = DEFAULT_UPLOAD_KEY_PREFIX
    presigned_key: str = DEFAULT_PRESIGNED_UPLOAD_KEY
    rollback_on_failure: bool = True


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_storage_settings() -> StorageSettings:
    """
    Read and validate storage settings from the environment.

    Returns:
        StorageSettings: Validated settings

    Raises:
        ConfigurationError: If any required variable is missing or blank
    """
    values = {name: (os.getenv(name) or "").strip() for name in REQUIRED_STORAGE_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(missing)

    return StorageSettings(
        bucket_name=values["AWS_BUCKET_NAME"],
        access_key_id=values["AWS_ACCESS_KEY"],
        secret_access_key=values["AWS_SECRET_ACCESS_KEY"],
        region=values["AWS_REGION"],
        key_prefix=os.getenv("UPLOAD_KEY_PREFIX") or DEFAULT_UPLOAD_KEY_PREFIX,
        presigned_key=os.getenv("PRESIGNED_UPLOAD_KEY") or DEFAULT_PRESIGNED_UPLOAD_KEY,
        rollback_on_failure=_env_flag("UPLOAD_ROLLBACK_ON_FAILURE", True),
    )


def get_upload_rate_limit() -> str:
    return os.getenv("UPLOAD_RATE_LIMIT") or DEFAULT_UPLOAD_RATE_LIMIT


def get_cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_upload_service_url() -> str:
    return (os.getenv("UPLOAD_SERVICE_URL") or DEFAULT_UPLOAD_SERVICE_URL).rstrip("/")

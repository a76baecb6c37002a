"""
Rate Limiting Module

This module provides rate limiting for the upload endpoints using slowapi.
Limits are tracked per remote address.

Features:
- Per-IP limiting
- Configurable upload limit
- Pluggable storage backend (memory by default)

Security:
- Burst protection on uploads
- Error handling
- Logging
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
import os
import logging

from .config import DEFAULT_UPLOAD_RATE_LIMIT, get_upload_rate_limit

# Configure logging
logger = logging.getLogger(__name__)

# Storage for counters; a redis:// URI shares limits across instances
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=RATE_LIMIT_STORAGE_URI
)


def upload_rate_limit() -> str:
    """
    Get the rate limit for upload routes.

    Read on every request so UPLOAD_RATE_LIMIT changes apply without a restart.

    Returns:
        str: Rate limit string (e.g. "50/minute")
    """
    limit = get_upload_rate_limit()
    if limit != DEFAULT_UPLOAD_RATE_LIMIT:
        logger.debug(f"Using configured upload rate limit: {limit}")
    return limit

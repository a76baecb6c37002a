"""
Image Upload Constants Module

This module defines constants used throughout the image upload feature
for limits, status codes, and user-facing messages.

Features:
- Status codes
- File limits
- Error messages

Dependencies:
- None (pure Python)

Author: Snapped Development Team
"""

# Form status codes
FORM_STATUS_IDLE = "idle"  # Waiting for user input
FORM_STATUS_SUBMITTING = "submitting"  # Upload request in flight
FORM_STATUS_SUCCESS = "success"  # Last submission completed
FORM_STATUS_FAILED = "failed"  # Last submission failed

# Configuration values
MAX_FILE_SIZE = 300 * 1024  # Maximum image size in bytes (300KB)
MAX_IMAGES = 5  # Maximum number of images per submission
PRESIGNED_URL_EXPIRES_IN = 60 * 60  # Presigned upload URL lifetime (1 hour)
RANDOM_KEY_BYTES = 16  # Random bytes per object key (32 hex chars)

# Multipart field names
FIELD_USERNAME = "username"
FIELD_IMAGES = "images"

# Error messages
ERROR_FILE_TOO_LARGE = "Image must be less than 300KB"
ERROR_MISSING_FIELDS = "Please fill all fields"
ERROR_TOO_MANY_IMAGES = f"No more than {MAX_IMAGES} images per upload"
ERROR_UPLOAD_FAILED = "Failed to upload image to S3"
ERROR_SUBMIT_IN_PROGRESS = "Upload already in progress"

# Success messages
MESSAGE_UPLOAD_SUCCESS = "Upload successful!"

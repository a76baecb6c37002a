"""
Pytest Configuration File

This module provides fixtures and configuration for all tests.
"""

import pytest
import os
import sys
from fastapi.testclient import TestClient
from typing import Dict, List, Optional

# Add app directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Import app modules
from app.main import create_app
from app.shared.config import StorageSettings
from app.shared.rate_limit import limiter
from app.features.imageupload.form_controller import CandidateFile
from app.features.imageupload.upload_client import build_multipart_fields

TEST_BUCKET = "test-bucket"


class FakeS3Client:
    """Records S3 calls; put_object fails on the configured call numbers."""

    def __init__(self, fail_on: Optional[List[int]] = None, fail_deletes: bool = False):
        self.fail_on = fail_on or []
        self.fail_deletes = fail_deletes
        self.objects: Dict[str, Dict] = {}
        self.put_calls: List[Dict] = []
        self.delete_calls: List[str] = []
        self.presign_calls: List[Dict] = []

    def put_object(self, **kwargs):
        self.put_calls.append(kwargs)
        if len(self.put_calls) in self.fail_on:
            from botocore.exceptions import ClientError
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "PutObject",
            )
        self.objects[kwargs["Key"]] = kwargs
        return {"ETag": '"fake"'}

    def delete_object(self, Bucket, Key):
        self.delete_calls.append(Key)
        if self.fail_deletes:
            raise RuntimeError("delete failed")
        self.objects.pop(Key, None)
        return {}

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        self.presign_calls.append(
            {"ClientMethod": ClientMethod, "Params": Params, "ExpiresIn": ExpiresIn}
        )
        return (
            f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}"
        )


@pytest.fixture
def storage_settings():
    """Fixture providing valid storage settings"""
    return StorageSettings(
        bucket_name=TEST_BUCKET,
        access_key_id="AKIATESTKEY",
        secret_access_key="test-secret",
        region="ap-southeast-1",
    )


@pytest.fixture
def fake_s3():
    """Fixture for mocking the S3 client"""
    return FakeS3Client()


@pytest.fixture
def fake_s3_factory():
    """Fixture returning the fake client class for custom failure setups"""
    return FakeS3Client


@pytest.fixture
def test_client(storage_settings, fake_s3):
    """Fixture for FastAPI test client with startup run"""
    app = create_app(settings=storage_settings, s3_client=fake_s3)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_file():
    """Factory for candidate files of a given size in KiB"""
    def _make(name: str = "photo.jpg", size_kib: float = 100, content_type: str = "image/jpeg"):
        return CandidateFile(name=name, content_type=content_type, data=b"x" * int(size_kib * 1024))
    return _make


class TestClientTransport:
    """Form transport that posts through the FastAPI test client."""

    def __init__(self, client: TestClient):
        self.client = client
        self.requests: List[Dict] = []

    async def __call__(self, username, files):
        from app.features.imageupload.form_controller import UploadRequestError
        data, parts = build_multipart_fields(username, files)
        self.requests.append({"data": data, "files": parts})
        response = self.client.post("/api/upload", data=data, files=parts)
        if response.status_code != 200:
            raise UploadRequestError(response.json().get("detail", "Upload failed"))
        return response.json()["file_names"]


@pytest.fixture
def transport_factory():
    return TestClientTransport


@pytest.fixture
def client_transport(test_client):
    return TestClientTransport(test_client)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Start every test with empty rate limit counters"""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(autouse=True)
def setup_test_env():
    """Automatically set up test environment variables"""
    os.environ["TESTING"] = "true"
    os.environ["ENVIRONMENT"] = "test"
    yield
    os.environ.pop("TESTING", None)
    os.environ.pop("ENVIRONMENT", None)

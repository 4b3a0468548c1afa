"""Shared fixtures for the API and adapter tests."""

from __future__ import annotations

import base64
from typing import Callable, Iterator, Optional

import boto3
import pytest
from botocore.stub import Stubber
from fastapi.testclient import TestClient

from face_gateway.core.config import Settings
from face_gateway.main import create_app
from face_gateway.services.adapters.face_adapter import FaceAdapter
from face_gateway.services.adapters.face_mock_adapter import FaceMockAdapter

# Not a real JPEG, but non-blank bytes are a "face" for the mock adapter
FACE_IMAGE = b"\xff\xd8\xff\xe0" + bytes(range(256)) * 4
OTHER_FACE_IMAGE = b"\xff\xd8\xff\xe1" + bytes(reversed(range(256))) * 4
BLANK_IMAGE = b"\x00" * 512


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        collection_id="test-faces",
        rate_limit="1000/minute",
    )


@pytest.fixture
def make_client() -> Iterator[Callable[..., TestClient]]:
    clients: list[TestClient] = []

    def _make(settings: Settings, adapter: Optional[FaceAdapter] = None) -> TestClient:
        app = create_app(settings, adapter=adapter or FaceMockAdapter())
        client = TestClient(app, raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(settings: Settings, make_client: Callable[..., TestClient]) -> TestClient:
    return make_client(settings)


@pytest.fixture
def rekognition_client(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    return boto3.client("rekognition", region_name="us-east-1")


@pytest.fixture
def stubber(rekognition_client) -> Iterator[Stubber]:
    with Stubber(rekognition_client) as stub:
        yield stub
        stub.assert_no_pending_responses()

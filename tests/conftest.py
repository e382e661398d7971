"""
Pytest configuration and fixtures for restbase / edutrail tests.

HTTP never leaves the process: every client is wired to an
httpx.MockTransport that records requests and replays queued responses.
"""

import email.parser
import json
from typing import Any

import httpx
import pytest

from restbase.client import ApiClient
from restbase.config import RestbaseSettings

ORIGIN = "http://api.example.com"


class RecordingBackend:
    """MockTransport handler: records each request, replays queued responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._queue: list[Any] = []

    def respond(self, status: int = 200, json_body: Any = None, **kwargs) -> "RecordingBackend":
        """Queue a response. json_body=None with no content sends an empty JSON-less body."""
        if json_body is not None:
            kwargs["json"] = json_body
        self._queue.append(httpx.Response(status, **kwargs))
        return self

    def fail(self, exc: Exception) -> "RecordingBackend":
        """Queue a transport-level failure."""
        self._queue.append(exc)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            return httpx.Response(200, json=[])
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def multipart_parts(request: httpx.Request) -> dict[str, tuple[str | None, bytes]]:
    """Parse a multipart request body into {name: (filename, content)}."""
    content_type = request.headers["content-type"]
    raw = b"Content-Type: " + content_type.encode() + b"\r\n\r\n" + request.content
    message = email.parser.BytesParser().parsebytes(raw)
    parts = {}
    for part in message.get_payload():
        name = part.get_param("name", header="content-disposition")
        filename = part.get_param("filename", header="content-disposition")
        parts[name] = (filename, part.get_payload(decode=True))
    return parts


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def settings() -> RestbaseSettings:
    return RestbaseSettings(_env_file=None, api_base="/api", api_origin=ORIGIN)


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def http_client(backend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend), base_url=ORIGIN)


@pytest.fixture
def client(settings, http_client) -> ApiClient:
    return ApiClient(settings, http_client=http_client)


@pytest.fixture
def parse_multipart():
    return multipart_parts


@pytest.fixture
def parse_json():
    return json_body

"""
Tests for payload encoding.

Tests cover:
- Binary detection (bytes, binary streams, FileUpload)
- JSON vs multipart decision
- Nested values tunneled as JSON strings in multipart
"""

import io
import json
from datetime import date

import pytest

from restbase.encoding import (
    contains_binary,
    encode,
    encode_multipart,
    form_value,
    is_binary,
)
from restbase.errors import ConfigurationError
from restbase.models import FileUpload


class TestBinaryDetection:
    """Test the single predicate that picks the wire format."""

    def test_bytes_and_streams_are_binary(self):
        assert is_binary(b"\x89PNG")
        assert is_binary(bytearray(b"x"))
        assert is_binary(io.BytesIO(b"x"))
        assert is_binary(FileUpload(b"x", "a.png", "image/png"))

    def test_text_and_structures_are_not_binary(self):
        assert not is_binary("hello")
        assert not is_binary(io.StringIO("hello"))
        assert not is_binary({"a": 1})
        assert not is_binary([1, 2])
        assert not is_binary(None)

    def test_contains_binary_checks_any_field(self):
        assert contains_binary({"name": "x", "image": b"data"})
        assert not contains_binary({"name": "x", "tags": ["a"]})
        assert not contains_binary({})
        assert not contains_binary(None)


class TestJsonEncoding:
    """Payloads without binary values go out as JSON."""

    def test_plain_payload_is_json(self):
        body = encode({"name": "Math", "checklist": [{"done": False}]})

        assert body.kind == "json"
        assert body.headers == {"Content-Type": "application/json"}
        assert json.loads(body.content) == {"name": "Math", "checklist": [{"done": False}]}

    def test_dates_serialize_as_iso(self):
        body = encode({"due": date(2026, 3, 1)})
        assert json.loads(body.content) == {"due": "2026-03-01"}

    def test_request_kwargs_carry_raw_content(self):
        body = encode({"a": 1})
        assert body.request_kwargs() == {"content": b'{"a": 1}'}


class TestMultipartEncoding:
    """Any binary value switches the whole payload to multipart."""

    def test_mixed_payload_is_multipart(self):
        image = FileUpload(b"png-bytes", "photo.png", "image/png")
        body = encode({"description": "X", "image": image, "checklist": [{"item": "a"}]})

        assert body.kind == "multipart"
        assert body.headers == {}
        assert body.field_dict() == {
            "description": "X",
            "checklist": '[{"item": "a"}]',
        }
        assert body.files == (("image", ("photo.png", b"png-bytes", "image/png")),)

    def test_nested_object_becomes_json_string(self):
        body = encode_multipart({"meta": {"a": 1}, "file": b"x"})
        assert json.loads(body.field_dict()["meta"]) == {"a": 1}

    def test_none_values_are_dropped(self):
        body = encode_multipart({"notes": None, "file": b"x"})
        assert "notes" not in body.field_dict()

    def test_scalars_are_stringified(self):
        assert form_value(True) == "true"
        assert form_value(False) == "false"
        assert form_value(3) == "3"
        assert form_value(2.5) == "2.5"
        assert form_value("x") == "x"

    def test_raw_bytes_get_default_filename(self):
        body = encode_multipart({"file": b"abc"})
        assert body.files == (("file", ("upload", b"abc")),)

    def test_stream_uses_its_name(self):
        stream = io.BytesIO(b"abc")
        stream.name = "/tmp/report.pdf"
        body = encode_multipart({"file": stream})
        assert body.files[0][1][0] == "report.pdf"

    def test_with_field_appends_text_field(self):
        body = encode_multipart({"file": b"x"}).with_field("_method", "PATCH")
        assert body.field_dict() == {"_method": "PATCH"}

    def test_with_field_rejects_json_body(self):
        with pytest.raises(ValueError):
            encode({"a": 1}).with_field("_method", "PATCH")


class TestFileUpload:
    def test_size_of_bytes(self):
        assert FileUpload(b"12345").size == 5

    def test_size_of_stream_keeps_position(self):
        stream = io.BytesIO(b"123456789")
        stream.seek(2)
        upload = FileUpload(stream)
        assert upload.size == 9
        assert stream.tell() == 2


class TestEncodingErrors:
    """Payloads that cannot go on the wire fail before any request."""

    def test_nested_binary_is_rejected(self):
        with pytest.raises(ConfigurationError, match="top-level"):
            encode({"files": [FileUpload(b"x", "a.png")]})
        with pytest.raises(ConfigurationError, match="top-level"):
            encode({"meta": {"thumb": b"x"}, "image": b"y"})

    def test_unserializable_value_is_rejected(self):
        with pytest.raises(ConfigurationError):
            encode({"owner": object()})

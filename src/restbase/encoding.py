"""
Restbase - Payload encoding.

One predicate decides the wire format for the whole payload:
- No binary values: JSON body, Content-Type: application/json
- Any binary value: multipart form; nested lists/objects are sent as JSON
  strings, binary values as file parts. No Content-Type is set here, the
  HTTP client generates the multipart boundary.
"""

import io
import json
import os
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Literal, Mapping
from uuid import UUID

from restbase.errors import ConfigurationError
from restbase.models import FileUpload

JSON_CONTENT_TYPE = "application/json"

BodyKind = Literal["json", "multipart"]


def is_binary(value: Any) -> bool:
    """True for bytes-like values, open binary streams, and FileUpload."""
    if isinstance(value, (bytes, bytearray, memoryview, FileUpload)):
        return True
    return isinstance(value, io.IOBase) and not isinstance(value, io.TextIOBase)


def contains_binary(payload: Mapping[str, Any] | None) -> bool:
    """True iff any top-level field value is binary."""
    if not payload:
        return False
    return any(is_binary(v) for v in payload.values())


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (UUID, os.PathLike)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    return json.dumps(value, default=_json_default)


def form_value(value: Any) -> str:
    """Stringify a non-binary value for a multipart text field."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        return to_json(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def file_part(value: Any) -> tuple:
    """Build an httpx file tuple for a binary value."""
    if isinstance(value, FileUpload):
        content = value.content
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        if value.content_type:
            return (value.filename, content, value.content_type)
        return (value.filename, content)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ("upload", bytes(value))
    name = os.path.basename(str(getattr(value, "name", "") or "")) or "upload"
    return (name, value)


@dataclass(frozen=True)
class EncodedBody:
    """A request body ready to hand to the transport."""

    kind: BodyKind
    content: bytes | None = None
    fields: tuple[tuple[str, str], ...] = ()
    files: tuple[tuple[str, tuple], ...] = ()

    @property
    def headers(self) -> dict[str, str]:
        if self.kind == "json":
            return {"Content-Type": JSON_CONTENT_TYPE}
        return {}

    @property
    def is_multipart(self) -> bool:
        return self.kind == "multipart"

    def with_field(self, name: str, value: str) -> "EncodedBody":
        """Return a copy with one more text field (multipart only)."""
        if self.kind != "multipart":
            raise ValueError("Extra form fields only apply to multipart bodies")
        return replace(self, fields=(*self.fields, (name, value)))

    def field_dict(self) -> dict[str, str]:
        return dict(self.fields)

    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for httpx.AsyncClient.request()."""
        if self.kind == "json":
            return {"content": self.content}
        return {"data": self.field_dict(), "files": list(self.files)}


def encode_json(payload: Any) -> EncodedBody:
    return EncodedBody(kind="json", content=to_json(payload).encode("utf-8"))


def encode_multipart(payload: Mapping[str, Any]) -> EncodedBody:
    """
    Encode a flat mapping as multipart.

    None values are dropped. Binary values become file parts,
    everything else a text field.
    """
    fields: list[tuple[str, str]] = []
    files: list[tuple[str, tuple]] = []
    for key, value in payload.items():
        if value is None:
            continue
        if is_binary(value):
            files.append((key, file_part(value)))
        else:
            fields.append((key, form_value(value)))
    return EncodedBody(kind="multipart", fields=tuple(fields), files=tuple(files))


def _nested_binary(value: Any) -> bool:
    if is_binary(value):
        return True
    if isinstance(value, Mapping):
        return any(_nested_binary(v) for v in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return any(_nested_binary(v) for v in value)
    return False


def encode(payload: Mapping[str, Any]) -> EncodedBody:
    """
    Pick JSON or multipart for a payload.

    Raises:
        ConfigurationError: binary value below the top level, or a value
            that cannot be serialized
    """
    for key, value in payload.items():
        if not is_binary(value) and _nested_binary(value):
            raise ConfigurationError(f"Binary values must be top-level fields (found under '{key}')")
    try:
        if contains_binary(payload):
            return encode_multipart(payload)
        return encode_json(dict(payload))
    except TypeError as e:
        raise ConfigurationError(f"Payload is not serializable: {e}") from e

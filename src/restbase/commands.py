"""
Restbase - Table commands.

A Command is an immutable description of one pending table operation:
table, equality filters, at most one mutating intent, and its payload.
Builder methods return new Commands. resolve() turns a Command into the
single HTTP request it stands for, without doing any I/O.

Resolution rules:
- no intent: GET  base/table?filters&select
- insert:    POST base/table (never filtered; filters set before insert
             are ignored because inserts target the collection)
- update:    PATCH base/table?filters with JSON, or POST + _method=PATCH
             with multipart when the payload carries a binary value
- delete:    DELETE base/table?filters
"""

import weakref
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from restbase.encoding import EncodedBody, encode
from restbase.errors import ConfigurationError


class Intent(str, Enum):
    """Mutating operation queued on a Command."""

    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


def _single_row(payload: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Accept a row or a one-row list (the supabase-style insert([row]) call)."""
    if isinstance(payload, Mapping):
        return payload
    if isinstance(payload, (list, tuple)):
        if len(payload) == 1 and isinstance(payload[0], Mapping):
            return payload[0]
        raise ConfigurationError(
            f"insert() takes a single row; got a list of {len(payload)} rows"
        )
    raise ConfigurationError(f"Payload must be a mapping, got {type(payload).__name__}")


# eq=False keeps identity hashing, so executed commands can be tracked
@dataclass(frozen=True, eq=False)
class Command:
    """One pending table operation. Build it, execute it once."""

    table: str
    filters: Mapping[str, Any] = field(default_factory=dict)
    intent: Intent = Intent.NONE
    payload: Mapping[str, Any] | None = None
    columns: str = "*"

    def __post_init__(self) -> None:
        if not isinstance(self.table, str) or not self.table.strip():
            raise ConfigurationError("A command needs a non-empty table name")
        object.__setattr__(self, "filters", _frozen(self.filters))
        if self.payload is not None:
            object.__setattr__(self, "payload", _frozen(self.payload))
        if self.intent is Intent.DELETE and self.payload is not None:
            raise ConfigurationError("delete() takes no payload")
        if self.intent in (Intent.INSERT, Intent.UPDATE) and self.payload is None:
            raise ConfigurationError(f"{self.intent.value}() needs a payload")

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def eq(self, field_name: str, value: Any) -> "Command":
        """Add an equality filter. Last value per field wins."""
        return replace(self, filters={**self.filters, field_name: value})

    def select(self, columns: str = "*") -> "Command":
        return replace(self, columns=columns or "*")

    def insert(self, payload: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> "Command":
        return self._with_intent(Intent.INSERT, dict(_single_row(payload)))

    def update(self, payload: Mapping[str, Any]) -> "Command":
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"update() takes a mapping, got {type(payload).__name__}")
        return self._with_intent(Intent.UPDATE, dict(payload))

    def delete(self) -> "Command":
        return self._with_intent(Intent.DELETE, None)

    def _with_intent(self, intent: Intent, payload: Mapping[str, Any] | None) -> "Command":
        if self.intent is not Intent.NONE:
            raise ConfigurationError(
                f"Command on '{self.table}' already has a pending {self.intent.value}; "
                f"cannot also {intent.value}"
            )
        return replace(self, intent=intent, payload=payload)

    def describe(self) -> str:
        verb = "read" if self.intent is Intent.NONE else self.intent.value
        filters = ", ".join(f"{k}={v!r}" for k, v in self.filters.items())
        return f"{verb} {self.table}" + (f" where {filters}" if filters else "")

    def __repr__(self) -> str:
        return (
            f"Command(table={self.table!r}, intent={self.intent.value}, "
            f"filters={dict(self.filters)!r}, columns={self.columns!r})"
        )


# =============================================================================
# Resolution
# =============================================================================


@dataclass(frozen=True)
class PreparedRequest:
    """The single HTTP request a Command resolves to."""

    method: str
    url: str
    params: tuple[tuple[str, str], ...] = ()
    body: EncodedBody | None = None


def query_value(value: Any) -> str:
    """Stringify a filter value the way browsers serialize query params."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def query_params(command: Command) -> tuple[tuple[str, str], ...]:
    params = [(name, query_value(value)) for name, value in command.filters.items()]
    if command.columns and command.columns != "*":
        params.append(("select", command.columns))
    return tuple(params)


def resolve(
    command: Command,
    api_base: str,
    method_override_field: str = "_method",
) -> PreparedRequest:
    """Resolve a Command into exactly one request description."""
    url = f"{api_base.rstrip('/')}/{command.table}"
    params = query_params(command)

    match command.intent:
        case Intent.NONE:
            return PreparedRequest("GET", url, params)

        case Intent.INSERT:
            return PreparedRequest("POST", url, (), encode(command.payload))

        case Intent.UPDATE:
            body = encode(command.payload)
            if body.is_multipart:
                # Intermediaries may refuse PATCH with multipart, tunnel it through POST
                return PreparedRequest(
                    "POST", url, params, body.with_field(method_override_field, "PATCH")
                )
            return PreparedRequest("PATCH", url, params, body)

        case Intent.DELETE:
            return PreparedRequest("DELETE", url, params)

    raise ConfigurationError(f"Unknown intent: {command.intent!r}")


# =============================================================================
# Single-use guard
# =============================================================================

_executed: "weakref.WeakSet[Command]" = weakref.WeakSet()


def claim(command: Command) -> None:
    """Mark a command as executed; a second claim is a caller bug."""
    if command in _executed:
        raise ConfigurationError(
            f"{command.describe()} was already executed; build a new command"
        )
    _executed.add(command)

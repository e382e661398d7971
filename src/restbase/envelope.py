"""
Restbase - Response envelope decoders.

The backend sometimes returns a payload directly and sometimes wraps it
under a "data" key. Facades pass raw parsed bodies through; these helpers
are the one place that knows both shapes.
"""

import logging
from typing import Any

from pydantic import ValidationError

from restbase.models import Result, Session, User

logger = logging.getLogger(__name__)


def unwrap_envelope(body: Any) -> Any:
    """Return body["data"] when the body is a {"data": ...} envelope, else the body."""
    if isinstance(body, dict) and body.get("data"):
        return body["data"]
    return body


def decode_rows(result: Result) -> list[dict[str, Any]]:
    """Rows from a table read. Error results and empty bodies give []."""
    if not result.ok:
        return []
    body = unwrap_envelope(result.data)
    if isinstance(body, list):
        return [row for row in body if isinstance(row, dict)]
    if isinstance(body, dict):
        return [body]
    return []


def decode_user(result: Result) -> User | None:
    """User from /auth/user or a sign-in response."""
    if not result.ok:
        return None
    body = unwrap_envelope(result.data)
    if isinstance(body, dict) and isinstance(body.get("user"), dict):
        body = body["user"]
    if not isinstance(body, dict) or body.get("id") in (None, ""):
        return None
    try:
        return User.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Unrecognized user payload: {e}")
        return None


def decode_session(result: Result) -> Session | None:
    """
    Session from /auth/session.

    Accepts {"session": {...}}, {"data": {"session": {...}}}, or the
    session object itself. Anything without a user means signed out.
    """
    if not result.ok:
        return None
    body = unwrap_envelope(result.data)
    if isinstance(body, dict) and "session" in body:
        body = body["session"]
    if not isinstance(body, dict) or not body.get("user"):
        return None
    try:
        session = Session.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Unrecognized session payload: {e}")
        return None
    return session if session.is_authenticated else None


def decode_public_url(result: Result) -> str | None:
    """publicUrl from a storage response, at top level or under "data"."""
    if not result.ok or not isinstance(result.data, dict):
        return None
    url = result.data.get("publicUrl")
    if not url and isinstance(result.data.get("data"), dict):
        url = result.data["data"].get("publicUrl")
    return url or None

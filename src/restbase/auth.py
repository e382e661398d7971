"""
Restbase - Auth facade.

Session, user, sign-up/in/out over fixed /auth routes. The facade keeps
no session cache; callers own whatever local state sign-out invalidates.

on_auth_state_change() is an emulation: the transport has no push
channel, so the callback fires exactly once with ("INITIAL", session)
and never again. Callers that need live updates use
poll_session_changes(), which polls explicitly.
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping

from restbase.encoding import encode_json
from restbase.envelope import decode_session
from restbase.models import Result, Session
from restbase.transport import USE_DEFAULT, Transport

logger = logging.getLogger(__name__)

AuthEvent = str  # "INITIAL" | "SIGNED_IN" | "SIGNED_OUT" | "USER_UPDATED"
AuthCallback = Callable[[AuthEvent, Session | None], Awaitable[None] | None]

# Both spellings are in use by forms; the backend only knows the first
PASSWORD_CONFIRMATION = "password_confirmation"
PASSWORD_CONFIRMATION_ALIAS = "confirmed_password"


class Subscription:
    """
    Handle returned by on_auth_state_change().

    unsubscribe() is a no-op: nothing is ever delivered after the initial
    emission. `ready` is the task performing that emission.
    """

    def __init__(self, task: "asyncio.Task[None]"):
        self.ready = task

    def unsubscribe(self) -> None:
        return None


def normalize_sign_up(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Pass fields through, folding the confirmation alias into one wire name."""
    payload = {k: v for k, v in fields.items() if k != PASSWORD_CONFIRMATION_ALIAS}
    confirmation = fields.get(PASSWORD_CONFIRMATION)
    if confirmation is None:
        confirmation = fields.get(PASSWORD_CONFIRMATION_ALIAS)
    if confirmation is not None:
        payload[PASSWORD_CONFIRMATION] = confirmation
    else:
        payload.pop(PASSWORD_CONFIRMATION, None)
    return payload


def _user_key(session: Session | None) -> Any:
    if session is None or session.user is None:
        return None
    return session.user.model_dump()


class AuthFacade:
    """Typed auth operations over the transport."""

    def __init__(self, transport: Transport, api_base: str):
        self._transport = transport
        self._base = f"{api_base.rstrip('/')}/auth"

    async def get_session(self, timeout: float | None = USE_DEFAULT) -> Result:
        return await self._transport.send("GET", f"{self._base}/session", timeout=timeout)

    async def get_user(self, timeout: float | None = USE_DEFAULT) -> Result:
        return await self._transport.send("GET", f"{self._base}/user", timeout=timeout)

    async def sign_up(self, fields: Mapping[str, Any]) -> Result:
        body = encode_json(normalize_sign_up(fields))
        return await self._transport.send("POST", f"{self._base}/sign-up", body=body)

    async def sign_in_with_password(self, credentials: Mapping[str, Any]) -> Result:
        body = encode_json(dict(credentials))
        return await self._transport.send("POST", f"{self._base}/sign-in", body=body)

    async def sign_out(self) -> Result:
        """Sign out server-side. Clearing local state is the caller's job."""
        return await self._transport.send("POST", f"{self._base}/sign-out")

    async def update_user(self, fields: Mapping[str, Any]) -> Result:
        body = encode_json(dict(fields))
        return await self._transport.send("POST", f"{self._base}/update", body=body)

    async def is_authenticated(self) -> bool:
        """True iff the session fetch succeeds and carries a signed-in user."""
        session = decode_session(await self.get_session())
        return session is not None and session.is_authenticated

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """
        Emit ("INITIAL", session_or_None) once, asynchronously.

        No later session change is ever delivered through this callback.
        Must be called from inside a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._emit_initial(callback))
        return Subscription(task)

    async def _emit_initial(self, callback: AuthCallback) -> None:
        session = decode_session(await self.get_session())
        try:
            outcome = callback("INITIAL", session)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Auth state callback failed")

    async def poll_session_changes(
        self,
        interval: float = 30.0,
        max_polls: int | None = None,
    ) -> AsyncIterator[tuple[AuthEvent, Session | None]]:
        """
        Poll /auth/session and yield on identity changes.

        Yields ("INITIAL", session) first, then ("SIGNED_IN", s),
        ("SIGNED_OUT", None) or ("USER_UPDATED", s). Error results are
        skipped (the previous state is kept). Stops after max_polls fetches
        when given.
        """
        previous: Session | None = None
        polls = 0
        first = True
        while max_polls is None or polls < max_polls:
            if not first:
                await asyncio.sleep(interval)
            result = await self.get_session()
            polls += 1
            if not result.ok and not first:
                continue
            session = decode_session(result)
            if first:
                first = False
                previous = session
                yield "INITIAL", session
                continue

            was_in = previous is not None and previous.is_authenticated
            is_in = session is not None and session.is_authenticated
            if is_in and not was_in:
                yield "SIGNED_IN", session
            elif was_in and not is_in:
                yield "SIGNED_OUT", None
            elif is_in and _user_key(session) != _user_key(previous):
                yield "USER_UPDATED", session
            previous = session

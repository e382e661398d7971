"""
Restbase - Session context.

Operations that act on behalf of a user take a SessionContext argument
instead of looking the user up in shared state.
"""

import logging

from pydantic import BaseModel, ConfigDict

from restbase.auth import AuthFacade
from restbase.envelope import decode_user
from restbase.errors import ApiRequestError
from restbase.models import Session, User

logger = logging.getLogger(__name__)


class SessionContext(BaseModel):
    """Identity of the caller for one logical operation."""

    model_config = ConfigDict(frozen=True)

    user_id: str | int | None = None
    email: str | None = None
    role: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @classmethod
    def from_user(cls, user: User | None) -> "SessionContext":
        if user is None:
            return cls.anonymous()
        return cls(user_id=user.id, email=user.email or None, role=user.role)

    @classmethod
    def from_session(cls, session: Session | None) -> "SessionContext":
        return cls.from_user(session.user if session else None)


async def resolve_context(auth: AuthFacade) -> SessionContext:
    """
    Fetch /auth/user once and build a context from it.

    Raises:
        ApiRequestError: if the request fails or no user is signed in
    """
    result = await auth.get_user()
    if result.error is not None:
        logger.warning(f"No logged-in user: {result.error.message}")
        raise ApiRequestError(result.error.message, result.error.status, result.error.details)
    user = decode_user(result)
    if user is None:
        raise ApiRequestError("No logged-in user. Please log in again.", status=401)
    return SessionContext.from_user(user)

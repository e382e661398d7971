"""
Restbase - Wire models.

Result is the universal return shape of every terminal operation:
exactly one of data / error is populated.
"""

import io
from dataclasses import dataclass
from typing import Any, BinaryIO, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from restbase.errors import ApiRequestError


# =============================================================================
# Results
# =============================================================================


class ApiError(BaseModel):
    """
    Error half of a Result.

    status 0 means no HTTP response was obtained (transport failure).
    """

    model_config = ConfigDict(frozen=True)

    message: str
    status: int = 0
    details: Any = None

    @property
    def kind(self) -> Literal["transport", "http"]:
        return "transport" if self.status == 0 else "http"


class Result(BaseModel):
    """Uniform {data, error} result."""

    model_config = ConfigDict(frozen=True)

    data: Any = None
    error: ApiError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> "Result":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, message: str, status: int = 0, details: Any = None) -> "Result":
        return cls(data=None, error=ApiError(message=message, status=status, details=details))

    def raise_for_error(self) -> Any:
        """Return data, or raise ApiRequestError if this is an error result."""
        if self.error is not None:
            raise ApiRequestError(self.error.message, self.error.status, self.error.details)
        return self.data


# =============================================================================
# Auth
# =============================================================================


class User(BaseModel):
    """
    Authenticated user profile.

    The backend is inconsistent about profile field names, so both
    spellings are accepted. Unknown fields are kept.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | int
    email: str = ""
    firstname: str = Field(default="", validation_alias=AliasChoices("firstname", "first_name"))
    lastname: str = Field(default="", validation_alias=AliasChoices("lastname", "last_name"))
    user_role: str = Field(default="User", validation_alias=AliasChoices("user_role", "role"))
    branch: str = ""
    image_url: str = ""
    is_admin: bool = False

    @field_validator("email", "firstname", "lastname", "branch", "image_url", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("user_role", mode="before")
    @classmethod
    def _null_role(cls, v: Any) -> Any:
        return v or "User"

    @field_validator("is_admin", mode="before")
    @classmethod
    def _null_admin(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def role(self) -> str:
        return "Super Administrator" if self.is_admin else (self.user_role or "User")


class Session(BaseModel):
    """Presence of user is the only authentication signal."""

    model_config = ConfigDict(extra="allow")

    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


# =============================================================================
# Binary payload values
# =============================================================================


@dataclass(frozen=True)
class FileUpload:
    """
    A named binary value for multipart bodies.

    Plain bytes and open binary files are accepted as payload values too;
    wrap them in FileUpload to control the filename and content type.
    """

    content: bytes | BinaryIO
    filename: str = "upload"
    content_type: str | None = None

    @property
    def size(self) -> int:
        if isinstance(self.content, (bytes, bytearray, memoryview)):
            return len(self.content)
        stream = self.content
        position = stream.tell()
        stream.seek(0, io.SEEK_END)
        size = stream.tell()
        stream.seek(position)
        return size

"""
Restbase - A chainable table/auth/storage client over a plain REST API.

Components:
- Transport: credentialed HTTP with anti-forgery header and {data, error} results
- Payload encoding: JSON vs multipart, decided by the payload's runtime shape
- Commands: immutable table commands resolved into exactly one request
- Facades: auth and storage operations over the same transport
"""

__version__ = "1.0.0"

from restbase.client import ApiClient, QueryBuilder, get_client
from restbase.commands import Command, Intent, resolve
from restbase.errors import ApiRequestError, ConfigurationError
from restbase.models import ApiError, FileUpload, Result, Session, User

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiRequestError",
    "Command",
    "ConfigurationError",
    "FileUpload",
    "Intent",
    "QueryBuilder",
    "Result",
    "Session",
    "User",
    "get_client",
    "resolve",
]

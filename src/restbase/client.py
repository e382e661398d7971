"""
Restbase - Client.

Two ways to run a table command:

    # explicit two-phase
    command = Command("subjects").eq("user_id", 7)
    result = await client.execute(command)

    # fluent, supabase-style
    result = await client.from_("subjects").eq("user_id", 7).select()
    result = await client.from_("projects").update({"status": "finished"}).eq("id", 3).select()
    result = await client.from_("projects").delete().eq("id", 3)

Either way a command resolves into exactly one request, once.
"""

import logging
from typing import Any, Coroutine, Generator, Mapping, Sequence

import httpx

from restbase.auth import AuthFacade
from restbase.commands import Command, PreparedRequest, claim, resolve
from restbase.config import RestbaseSettings, get_settings
from restbase.errors import ConfigurationError
from restbase.models import Result
from restbase.storage import StorageFacade
from restbase.transport import USE_DEFAULT, Transport

logger = logging.getLogger(__name__)


class ApiClient:
    """Entry point: table commands, auth, and storage over one transport."""

    def __init__(
        self,
        settings: RestbaseSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: Transport | None = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport or Transport(self.settings, http_client)
        self.api_base = self.settings.normalized_api_base
        self.auth = AuthFacade(self.transport, self.api_base)
        self.storage = StorageFacade(self.transport, self.api_base)

    # -------------------------------------------------------------------------
    # Table commands
    # -------------------------------------------------------------------------

    def from_(self, table: str) -> "QueryBuilder":
        return QueryBuilder(self, Command(table))

    # supabase-py spelling
    table = from_

    def prepare(self, command: Command) -> PreparedRequest:
        return resolve(command, self.api_base, self.settings.method_override_field)

    async def execute(self, command: Command, timeout: float | None = USE_DEFAULT) -> Result:
        """
        Resolve a command and send it.

        Raises:
            ConfigurationError: if the command was already executed or its
                payload cannot be encoded
        """
        prepared = self.prepare(command)
        claim(command)
        logger.debug(f"Executing {command.describe()} as {prepared.method} {prepared.url}")
        return await self.transport.send(
            prepared.method,
            prepared.url,
            params=prepared.params,
            body=prepared.body,
            timeout=timeout,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class QueryBuilder:
    """
    Fluent wrapper around a Command.

    eq/insert/update/delete accumulate state and return the builder.
    select(), execute(), or awaiting the builder is the terminal call;
    after it the builder accepts nothing else.
    """

    def __init__(self, client: ApiClient, command: Command):
        self._client = client
        self._command = command
        self._resolved = False

    @property
    def command(self) -> Command:
        return self._command

    def _ensure_building(self, operation: str) -> None:
        if self._resolved:
            raise ConfigurationError(
                f"Cannot {operation}(): {self._command.describe()} was already executed"
            )

    def eq(self, field_name: str, value: Any) -> "QueryBuilder":
        self._ensure_building("eq")
        self._command = self._command.eq(field_name, value)
        return self

    def insert(self, payload: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> "QueryBuilder":
        self._ensure_building("insert")
        self._command = self._command.insert(payload)
        return self

    def update(self, payload: Mapping[str, Any]) -> "QueryBuilder":
        self._ensure_building("update")
        self._command = self._command.update(payload)
        return self

    def delete(self) -> "QueryBuilder":
        self._ensure_building("delete")
        self._command = self._command.delete()
        return self

    def select(self, columns: str = "*") -> Coroutine[Any, Any, Result]:
        """Terminal: read, or flush the pending insert/update/delete."""
        self._ensure_building("select")
        self._command = self._command.select(columns)
        return self.execute()

    def execute(self, timeout: float | None = USE_DEFAULT) -> Coroutine[Any, Any, Result]:
        self._ensure_building("execute")
        self._resolved = True
        return self._client.execute(self._command, timeout=timeout)

    def __await__(self) -> Generator[Any, None, Result]:
        return self.execute().__await__()


# Singleton client instance
_client: ApiClient | None = None


def get_client() -> ApiClient:
    """
    Get the default client.

    Uses singleton pattern so the cookie jar (and its anti-forgery
    token) is shared by every caller.
    """
    global _client

    if _client is None:
        _client = ApiClient(get_settings())

    return _client

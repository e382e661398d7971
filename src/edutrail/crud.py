"""
Edutrail - Generic CRUD helpers.

Four operations that handle all dashboard table access:
- db_read: Fetch rows with equality filters
- db_create: Insert one record
- db_update: Update records matching filters
- db_delete: Delete records matching filters

The caller's identity arrives as an explicit SessionContext; user-owned
tables are scoped by it automatically.
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel

from restbase.adapter import TableBackend
from restbase.commands import Command
from restbase.context import SessionContext
from restbase.envelope import decode_rows
from restbase.errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Parameters
# =============================================================================


class DbReadParams(BaseModel):
    """Parameters for db_read. Filters are equality only, combined with AND."""

    table: str
    filters: dict[str, Any] = {}
    columns: list[str] | None = None  # None = all columns


class DbCreateParams(BaseModel):
    """Parameters for db_create. Values may be scalars, lists, dicts, or files."""

    table: str
    data: dict[str, Any]


class DbUpdateParams(BaseModel):
    """Parameters for db_update."""

    table: str
    filters: dict[str, Any]  # Required - no accidental full-table updates
    data: dict[str, Any]


class DbDeleteParams(BaseModel):
    """Parameters for db_delete."""

    table: str
    filters: dict[str, Any]  # Required - no accidental full-table deletes


# =============================================================================
# Tables that are user-scoped (auto-filter by user_id)
# =============================================================================

USER_OWNED_TABLES = {
    "assignments",
    "subjects",
    "projects",
    "security_logs",
}


def _require_user(table: str, context: SessionContext) -> Any:
    if not context.is_authenticated:
        raise ConfigurationError(
            f"'{table}' is user-scoped; a signed-in SessionContext is required"
        )
    return context.user_id


def _scoped(command: Command, context: SessionContext, filters: dict[str, Any]) -> Command:
    """Apply the user_id scope (for user-owned tables) and explicit filters."""
    if command.table in USER_OWNED_TABLES:
        command = command.eq("user_id", _require_user(command.table, context))
    for field_name, value in filters.items():
        command = command.eq(field_name, value)
    return command


# =============================================================================
# CRUD Implementations
# =============================================================================


async def db_read(backend: TableBackend, params: DbReadParams, context: SessionContext) -> list[dict]:
    """
    Read rows from a table with filters.

    Args:
        backend: Executes the command (usually an ApiClient)
        params: Query parameters (table, filters, columns)
        context: Caller identity (auto-applied for user-owned tables)

    Returns:
        List of matching rows as dicts

    Raises:
        ApiRequestError: if the backend returns an error
    """
    select_clause = ",".join(params.columns) if params.columns else "*"
    command = _scoped(Command(params.table).select(select_clause), context, params.filters)

    result = await backend.execute(command)
    result.raise_for_error()
    return decode_rows(result)


async def db_create(backend: TableBackend, params: DbCreateParams, context: SessionContext) -> dict:
    """
    Insert one row into a table.

    Filters never apply to inserts; for user-owned tables the caller's
    user_id is written into the record instead.

    Returns:
        The created row as returned by the backend ({} if none)
    """
    record = dict(params.data)
    if params.table in USER_OWNED_TABLES:
        record["user_id"] = _require_user(params.table, context)

    result = await backend.execute(Command(params.table).insert(record))
    result.raise_for_error()

    rows = decode_rows(result)
    return rows[0] if rows else {}


async def db_update(backend: TableBackend, params: DbUpdateParams, context: SessionContext) -> list[dict]:
    """
    Update rows matching filters.

    Returns:
        List of updated rows
    """
    if params.table not in USER_OWNED_TABLES and not params.filters:
        raise ConfigurationError(f"Cannot update '{params.table}' with empty filters.")

    command = _scoped(Command(params.table).update(params.data), context, params.filters)

    result = await backend.execute(command)
    result.raise_for_error()
    return decode_rows(result)


async def db_delete(backend: TableBackend, params: DbDeleteParams, context: SessionContext) -> Any:
    """
    Delete rows matching filters.

    Returns:
        The backend's response body
    """
    # Safety: prevent unscoped deletes on tables without user_id
    if params.table not in USER_OWNED_TABLES and not params.filters:
        raise ConfigurationError(
            f"Cannot delete from '{params.table}' with empty filters. "
            f"This table isn't user-scoped, so you must specify filters."
        )

    command = _scoped(Command(params.table).delete(), context, params.filters)

    result = await backend.execute(command)
    result.raise_for_error()
    return result.data


# =============================================================================
# Dispatcher
# =============================================================================


async def execute_crud(
    operation: Literal["db_read", "db_create", "db_update", "db_delete"],
    params: dict[str, Any],
    backend: TableBackend,
    context: SessionContext,
) -> Any:
    """
    Execute a CRUD operation by name.

    Args:
        operation: Operation name
        params: Operation parameters as a dict
        backend: Executes the command
        context: Caller identity

    Returns:
        Operation result
    """
    logger.debug(f"{operation} on {params.get('table')}")
    match operation:
        case "db_read":
            return await db_read(backend, DbReadParams(**params), context)
        case "db_create":
            return await db_create(backend, DbCreateParams(**params), context)
        case "db_update":
            return await db_update(backend, DbUpdateParams(**params), context)
        case "db_delete":
            return await db_delete(backend, DbDeleteParams(**params), context)
        case _:
            raise ValueError(f"Unknown operation: {operation}")

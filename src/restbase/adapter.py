"""
Table Backend Protocol.

The narrow interface consumers (e.g., edutrail.crud) depend on, so they
can be driven by ApiClient or by any other object exposing the same
two-phase command API.
"""

from typing import Any, Protocol, runtime_checkable

from restbase.commands import Command
from restbase.models import Result


@runtime_checkable
class TableBackend(Protocol):
    """
    Executes table commands.

    execute() must resolve the command into one request, at most once,
    and return a Result rather than raising for runtime failures.
    """

    async def execute(self, command: Command, timeout: Any = ...) -> Result:
        ...

"""
Edutrail - Security event log.

Records user actions in the security_logs table. The acting user comes
from the SessionContext passed in; recording never raises, a failure is
logged and returned.
"""

import logging

from restbase.adapter import TableBackend
from restbase.commands import Command
from restbase.context import SessionContext
from restbase.models import Result

logger = logging.getLogger(__name__)

SECURITY_LOG_TABLE = "security_logs"


async def log_security_event(
    backend: TableBackend,
    context: SessionContext,
    action: str,
    details: str = "",
) -> Result:
    """
    Insert {user_id, action, details} into security_logs.

    Anonymous contexts are recorded with a null user_id.
    """
    command = Command(SECURITY_LOG_TABLE).insert(
        {"user_id": context.user_id, "action": action, "details": details}
    )
    result = await backend.execute(command)
    if result.error is not None:
        logger.warning(f"Failed to log security event '{action}': {result.error.message}")
    return result

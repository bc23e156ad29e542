"""Audit trail for mutations (cron create/replace/delete)."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ci_api.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


async def log_action(
    session: AsyncSession,
    user_id: int | None,
    action: str,
    resource: str,
    resource_id: str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Add an audit row in the caller's transaction; it commits or rolls back with the mutation."""
    row = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=ip_address,
    )
    session.add(row)
    await session.flush()
    logger.debug("Audit: user_id=%s %s %s/%s", user_id, action, resource, resource_id)
    return row

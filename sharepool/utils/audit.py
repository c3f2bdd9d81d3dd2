"""
Audit trail helpers.

Rows are added to the caller's session and committed with the unit of work
that produced them, so a rolled-back quarter leaves no audit trace either.
"""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models.audit import AuditAction, AuditLog


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


async def log_action(
    db: AsyncSession,
    user_id: Optional[int],
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Append an audit row for a mutation.

    Args:
        db: Session carrying the mutation itself
        user_id: Operator id, None when the engine acted on its own
            (tier change, maxout, KPI award credited at quarter close)
        action: What happened
        target_type: "entity", "staff", "branch", "period", ...
        target_id: Primary key of the affected row
        action_metadata: Extra context; Decimals, enums and dates are
            stored as strings so the JSON column accepts them
        ip_address: Client address for operator-initiated actions
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=_jsonable(action_metadata) if action_metadata else None,
        ip_address=ip_address,
    )
    db.add(entry)
    return entry


def get_client_ip(request) -> Optional[str]:
    """Client address, honouring the first hop of X-Forwarded-For."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    client = getattr(request, "client", None)
    return client.host if client else None

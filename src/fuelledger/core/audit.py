"""Audit logging utilities for ledger lifecycle events."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.models.audit_log import AuditLog
from fuelledger.models.enums import AuditEventType
from fuelledger.utils.datetime import now_utc


def _serialize_value(v: Any) -> Any:
    if isinstance(v, Decimal):
        return str(v)
    if isinstance(v, (UUID, date, datetime)):
        return str(v)
    if isinstance(v, dict):
        return {k: _serialize_value(item) for k, item in v.items()}
    return v


async def log_event(
    db: AsyncSession,
    event_type: AuditEventType,
    action: str,
    performed_by: str | None,
    related_record_type: str | None = None,
    related_record_id: Any = None,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an audit record to the current unit of work.

    Args:
        db: Database session
        event_type: Kind of event (DAY_OPEN, CARD_SETTLED, ...)
        action: Short human-readable summary
        performed_by: Identity stamp from the caller
        related_record_type: Table name of the affected record
        related_record_id: Primary key of the affected record
        details: Extra figures; Decimal/UUID/date values are stringified

    Returns:
        Created AuditLog record (not yet flushed)
    """
    entry = AuditLog(
        event_type=event_type.value,
        action=action,
        performed_by=performed_by,
        related_record_type=related_record_type,
        related_record_id=str(related_record_id) if related_record_id is not None else None,
        details=_serialize_value(details or {}),
        created_at=now_utc(),
    )
    db.add(entry)
    return entry

"""Audit log model for ledger lifecycle events."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fuelledger.core.db import Base
from fuelledger.utils.datetime import now_utc


class AuditLog(Base):
    """Immutable trail of day open/close, settlements and adjustments."""

    __tablename__ = "audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # WHAT
    event_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(200), nullable=False)

    # WHO
    performed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # WHICH RECORD
    related_record_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    related_record_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # WHEN
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog(event_type={self.event_type}, performed_by={self.performed_by})>"

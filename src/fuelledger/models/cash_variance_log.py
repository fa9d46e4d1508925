"""Append-only audit record of counted-vs-expected cash differences."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fuelledger.core.db import Base
from fuelledger.utils.datetime import now_utc


class CashVarianceLogEntry(Base):
    """Written whenever a non-zero variance is observed at open or close."""

    __tablename__ = "cash_variance_log"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    variance_date: Mapped[date_type] = mapped_column(nullable=False, index=True)

    # OPENING_CASH | CLOSING_CASH
    variance_type: Mapped[str] = mapped_column(String(20), nullable=False)

    expected_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    actual_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    difference: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    variance_percentage: Mapped[Decimal] = mapped_column(
        Numeric(9, 4), nullable=False, default=Decimal("0")
    )

    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    reported_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)

    def __repr__(self) -> str:
        return (
            f"<CashVarianceLogEntry(date={self.variance_date}, type={self.variance_type}, "
            f"difference={self.difference})>"
        )

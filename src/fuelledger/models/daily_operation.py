# File: src/fuelledger/models/daily_operation.py
"""DailyOperation model for the start-day / close-day workflow."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fuelledger.core.db import Base
from fuelledger.models.enums import DayState, DayStatus


class DailyOperation(Base):
    """One row per operating day. Created only by start_day."""

    __tablename__ = "daily_operations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    operation_date: Mapped[date_type] = mapped_column(nullable=False, unique=True, index=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DayStatus.OPEN.value,
        index=True,
    )

    day_locked: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Opening: expected (carried forward) vs counted
    opening_cash: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    opening_cash_actual: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    opening_cash_variance: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    opening_cash_variance_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    opening_bank: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    # Closing: expected (opening + cash in - cash out) vs counted
    closing_cash: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    closing_cash_actual: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    closing_cash_variance: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    closing_cash_variance_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    closing_bank: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    total_sales: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    total_expenses: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    # Audit fields
    opened_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    opened_at: Mapped[datetime | None] = mapped_column(nullable=True)
    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def state(self) -> DayState:
        if self.day_locked:
            return DayState.LOCKED
        return DayState(self.status)

    @property
    def carry_forward_cash(self) -> Decimal:
        """Cash figure the next day should expect to find in the drawer."""
        for value in (
            self.closing_cash_actual,
            self.closing_cash,
            self.opening_cash_actual,
            self.opening_cash,
        ):
            if value is not None:
                return value
        return Decimal("0.00")

    @property
    def carry_forward_bank(self) -> Decimal:
        if self.closing_bank is not None:
            return self.closing_bank
        return self.opening_bank if self.opening_bank is not None else Decimal("0.00")

    def __repr__(self) -> str:
        return (
            f"<DailyOperation(date={self.operation_date}, status={self.status}, "
            f"locked={self.day_locked})>"
        )

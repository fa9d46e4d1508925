"""DailyBalance model: per-date cash/bank opening and closing figures."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fuelledger.core.db import Base


class DailyBalance(Base):
    """Date-scoped snapshot, created lazily the first time a date is touched."""

    __tablename__ = "daily_balances"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    balance_date: Mapped[date_type] = mapped_column(nullable=False, unique=True, index=True)

    cash_opening: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    cash_closing: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    bank_opening: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    bank_closing: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    is_closed: Mapped[bool] = mapped_column(default=False, nullable=False, index=True)
    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def effective_cash_closing(self) -> Decimal:
        """Closing figure, falling back to opening when none was recorded."""
        return self.cash_closing if self.cash_closing is not None else self.cash_opening

    @property
    def effective_bank_closing(self) -> Decimal:
        return self.bank_closing if self.bank_closing is not None else self.bank_opening

    def __repr__(self) -> str:
        return f"<DailyBalance(date={self.balance_date}, is_closed={self.is_closed})>"

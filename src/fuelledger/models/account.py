"""Account model: a named cash or bank bucket with a live balance."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fuelledger.core.db import Base
from fuelledger.models.enums import AccountKind
from fuelledger.utils.datetime import now_utc


class Account(Base):
    """Cash or bank account.

    current_balance is a materialized view of the transaction log. Only
    fuelledger.core.ledger.post writes it.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    kind: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)

    @property
    def is_cash(self) -> bool:
        return self.kind == AccountKind.CASH.value

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name}, kind={self.kind})>"

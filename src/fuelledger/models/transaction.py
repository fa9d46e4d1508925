"""LedgerTransaction model: immutable posted ledger entry."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelledger.core.db import Base
from fuelledger.utils.datetime import now_local_naive, now_utc

if TYPE_CHECKING:
    from fuelledger.models.account import Account


class LedgerTransaction(Base):
    """
    A single balance-affecting fact.

    Attributes:
        occurred_at: Station wall-clock time of the business event
        kind: income | expense | transfer
        amount: Always positive; direction comes from the account columns
        from_account_id: Debited account (NULL for income, or the virtual
            card receivable)
        to_account_id: Credited account (NULL for expense)
        reference_kind/reference_id: Originating business record
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("ix_transactions_occurred_created", "occurred_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_local_naive,
        index=True,
    )

    kind: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    category: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    from_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    to_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    from_account: Mapped[Optional["Account"]] = relationship(
        "Account", foreign_keys=[from_account_id], lazy="selectin"
    )
    to_account: Mapped[Optional["Account"]] = relationship(
        "Account", foreign_keys=[to_account_id], lazy="selectin"
    )

    reference_kind: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)

    def __repr__(self) -> str:
        return (
            f"<LedgerTransaction(id={self.id}, kind={self.kind}, amount={self.amount}, "
            f"from={self.from_account_id}, to={self.to_account_id})>"
        )

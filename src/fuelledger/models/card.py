"""Card receivable models: card types and held/settled card payments."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelledger.core.db import Base
from fuelledger.models.enums import CardPaymentStatus
from fuelledger.utils.datetime import now_utc, today_local

if TYPE_CHECKING:
    from fuelledger.models.account import Account


class CardType(Base):
    """Card network configuration. Editing it never touches past payments."""

    __tablename__ = "card_types"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    tax_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0.00")
    )

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)

    def __repr__(self) -> str:
        return f"<CardType(name={self.name}, tax_percentage={self.tax_percentage})>"


class CardPayment(Base):
    """Card sale awaiting (hold) or confirmed (received) bank settlement.

    tax_percentage and tax_amount are captured from the CardType at sale
    time and never recomputed.
    """

    __tablename__ = "card_payments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    payment_date: Mapped[date_type] = mapped_column(
        nullable=False,
        default=today_local,
        index=True,
    )

    card_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("card_types.id"),
        nullable=False,
        index=True,
    )

    card_type: Mapped["CardType"] = relationship("CardType", lazy="selectin")

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CardPaymentStatus.HOLD.value,
        index=True,
    )

    received_at: Mapped[datetime | None] = mapped_column(nullable=True)

    settlement_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("accounts.id"),
        nullable=True,
    )

    settlement_account: Mapped[Optional["Account"]] = relationship("Account", lazy="selectin")

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Originating sale, owned by an external collaborator
    reference_kind: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)

    def __repr__(self) -> str:
        return (
            f"<CardPayment(id={self.id}, amount={self.amount}, net={self.net_amount}, "
            f"status={self.status})>"
        )

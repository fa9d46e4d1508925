# File: src/fuelledger/core/card_settlement.py
"""Card Settlement Workflow: card receivables from HOLD to RECEIVED.

A card sale is recorded on hold with the card type's tax rate captured at
sale time. Settlement happens once per payment:
- status flips hold -> received (compare-and-swap, so a second settle fails)
- the net amount is posted as a transfer from the virtual card receivable
  into the destination account
- the card tax is posted as an expense against the receivable
The destination balance moves only through those ledger postings.
"""

from collections.abc import Awaitable, Callable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.audit import log_event
from fuelledger.core.errors import (
    AlreadySettled,
    ConflictError,
    DestinationRequired,
    NonPositiveAmount,
    NotFoundError,
    ValidationError,
)
from fuelledger.core.ledger import get_account, post
from fuelledger.core.logging import get_logger
from fuelledger.core.validators import percentage_of, sanitize_text, to_money
from fuelledger.models.card import CardPayment, CardType
from fuelledger.models.enums import (
    CARD_PAYMENTS_REFERENCE,
    CATEGORY_CARD_SETTLEMENT,
    CATEGORY_CARD_TAX,
    AuditEventType,
    CardPaymentStatus,
    TransactionKind,
)
from fuelledger.utils.datetime import now_utc, today_local

logger = get_logger(__name__)

ZERO = Decimal("0.00")

SettledCallback = Callable[[AsyncSession, CardPayment], Awaitable[None]]


# --- Card types ---


async def list_card_types(db: AsyncSession, active_only: bool = False) -> list[CardType]:
    stmt = select(CardType).order_by(CardType.name)
    if active_only:
        stmt = stmt.where(CardType.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_card_type(db: AsyncSession, card_type_id: UUID) -> CardType:
    card_type = await db.get(CardType, card_type_id)
    if card_type is None:
        raise NotFoundError("CardType", str(card_type_id))
    return card_type


def _checked_rate(tax_percentage: Decimal | int | str) -> Decimal:
    """Rates run from 0 up to, but not including, 100."""
    rate = to_money(tax_percentage)
    if rate < ZERO or rate >= Decimal("100"):
        raise ValidationError(
            "Tax percentage must be at least 0 and below 100",
            details={"tax_percentage": str(rate)},
            code="INVALID_TAX_PERCENTAGE",
        )
    return rate


async def create_card_type(
    db: AsyncSession,
    name: str,
    tax_percentage: Decimal = ZERO,
    performed_by: str | None = None,
) -> CardType:
    existing = await db.execute(select(CardType).where(CardType.name == name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Card type '{name}' already exists", details={"name": name})

    card_type = CardType(name=name, tax_percentage=_checked_rate(tax_percentage), is_active=True)
    db.add(card_type)
    await db.flush()

    await log_event(
        db,
        AuditEventType.CARD_TYPE_CHANGED,
        "Card type created",
        performed_by,
        related_record_type="card_types",
        related_record_id=card_type.id,
        details={"name": name, "tax_percentage": card_type.tax_percentage},
    )
    return card_type


async def update_card_type(
    db: AsyncSession,
    card_type_id: UUID,
    name: str | None = None,
    tax_percentage: Decimal | None = None,
    performed_by: str | None = None,
) -> CardType:
    """Rename or re-rate a card type. Existing payments keep their captured rate."""
    card_type = await get_card_type(db, card_type_id)
    changes: dict = {}

    if name is not None and name != card_type.name:
        clash = await db.execute(
            select(CardType).where(CardType.name == name, CardType.id != card_type.id)
        )
        if clash.scalar_one_or_none() is not None:
            raise ConflictError(f"Card type '{name}' already exists", details={"name": name})
        changes["name"] = {"old": card_type.name, "new": name}
        card_type.name = name

    if tax_percentage is not None:
        new_rate = _checked_rate(tax_percentage)
        if new_rate != card_type.tax_percentage:
            changes["tax_percentage"] = {"old": card_type.tax_percentage, "new": new_rate}
            card_type.tax_percentage = new_rate

    if changes:
        await log_event(
            db,
            AuditEventType.CARD_TYPE_CHANGED,
            "Card type updated",
            performed_by,
            related_record_type="card_types",
            related_record_id=card_type.id,
            details=changes,
        )
        await db.flush()
    return card_type


async def toggle_card_type(
    db: AsyncSession, card_type_id: UUID, performed_by: str | None = None
) -> CardType:
    card_type = await get_card_type(db, card_type_id)
    card_type.is_active = not card_type.is_active
    await log_event(
        db,
        AuditEventType.CARD_TYPE_CHANGED,
        "Card type activated" if card_type.is_active else "Card type deactivated",
        performed_by,
        related_record_type="card_types",
        related_record_id=card_type.id,
        details={"is_active": card_type.is_active},
    )
    await db.flush()
    return card_type


# --- Payments ---


async def record_sale(
    db: AsyncSession,
    card_type_id: UUID,
    amount: Decimal | int | str,
    payment_date: date | None = None,
    reference_kind: str | None = None,
    reference_id: str | None = None,
    performed_by: str | None = None,
) -> CardPayment:
    """Put a card sale on hold, capturing the card type's current tax rate.

    Raises:
        NotFoundError: unknown card type
        ValidationError: card type is inactive, amount is not numeric, or
            nothing would be left after card tax
        NonPositiveAmount: amount <= 0
    """
    card_type = await get_card_type(db, card_type_id)
    if not card_type.is_active:
        raise ValidationError(
            f"Card type '{card_type.name}' is inactive",
            details={"card_type_id": str(card_type_id)},
            code="CARD_TYPE_INACTIVE",
        )

    try:
        gross = to_money(amount)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"amount": str(amount)}) from exc
    if gross <= ZERO:
        raise NonPositiveAmount(amount)

    tax_amount = percentage_of(gross, card_type.tax_percentage)
    net_amount = gross - tax_amount
    if net_amount <= ZERO:
        raise ValidationError(
            "Sale is too small to leave a positive amount after card tax",
            details={"amount": str(gross), "tax_amount": str(tax_amount)},
            code="NON_POSITIVE_NET",
        )

    payment = CardPayment(
        payment_date=payment_date or today_local(),
        card_type_id=card_type.id,
        amount=gross,
        tax_percentage=card_type.tax_percentage,
        tax_amount=tax_amount,
        net_amount=net_amount,
        status=CardPaymentStatus.HOLD.value,
        reference_kind=reference_kind,
        reference_id=reference_id,
        created_by=performed_by,
    )
    db.add(payment)
    await db.flush()
    await db.refresh(payment, attribute_names=["card_type"])

    logger.info(
        "card.sale_recorded",
        payment_id=str(payment.id),
        card_type=card_type.name,
        amount=str(gross),
        tax_amount=str(tax_amount),
    )
    return payment


async def get_payment(db: AsyncSession, payment_id: UUID) -> CardPayment:
    result = await db.execute(
        select(CardPayment)
        .where(CardPayment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    payment = result.scalar_one_or_none()
    if payment is None:
        raise NotFoundError("CardPayment", str(payment_id))
    return payment


async def settle(
    db: AsyncSession,
    payment_id: UUID,
    destination_account_id: UUID | None,
    note: str | None = None,
    performed_by: str | None = None,
    on_settled: SettledCallback | None = None,
) -> CardPayment:
    """Mark a held card payment as received into a destination account.

    on_settled runs last, inside the same unit of work; if it raises, the
    whole settlement rolls back with the caller's transaction.

    Raises:
        DestinationRequired: no destination account given
        UnknownAccount: destination account doesn't exist
        NotFoundError: unknown payment
        AlreadySettled: payment is not on hold
    """
    if destination_account_id is None:
        raise DestinationRequired()
    destination = await get_account(db, destination_account_id)
    payment = await get_payment(db, payment_id)
    if payment.status != CardPaymentStatus.HOLD.value:
        raise AlreadySettled(payment.id, payment.status)

    # Compare-and-swap: only one settle can move the payment off hold
    result = await db.execute(
        update(CardPayment)
        .where(
            CardPayment.id == payment.id,
            CardPayment.status == CardPaymentStatus.HOLD.value,
        )
        .values(status=CardPaymentStatus.RECEIVED.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AlreadySettled(payment.id, CardPaymentStatus.RECEIVED.value)

    await post(
        db,
        kind=TransactionKind.TRANSFER,
        amount=payment.net_amount,
        category=CATEGORY_CARD_SETTLEMENT,
        description=f"Card settlement ({payment.card_type.name})",
        to_account_id=destination.id,
        reference_kind=CARD_PAYMENTS_REFERENCE,
        reference_id=str(payment.id),
        created_by=performed_by,
        from_receivable=True,
    )
    if payment.tax_amount > ZERO:
        await post(
            db,
            kind=TransactionKind.EXPENSE,
            amount=payment.tax_amount,
            category=CATEGORY_CARD_TAX,
            description=f"Card tax {payment.tax_percentage}% ({payment.card_type.name})",
            reference_kind=CARD_PAYMENTS_REFERENCE,
            reference_id=str(payment.id),
            created_by=performed_by,
            from_receivable=True,
        )

    await db.refresh(payment)
    payment.received_at = now_utc()
    payment.settlement_account_id = destination.id
    cleaned_note = sanitize_text(note)
    if cleaned_note:
        payment.notes = cleaned_note

    await log_event(
        db,
        AuditEventType.CARD_SETTLED,
        "Card payment settled",
        performed_by,
        related_record_type="card_payments",
        related_record_id=payment.id,
        details={
            "destination_account_id": destination.id,
            "net_amount": payment.net_amount,
            "tax_amount": payment.tax_amount,
        },
    )
    await db.flush()

    if on_settled is not None:
        await on_settled(db, payment)

    logger.info(
        "card.settled",
        payment_id=str(payment.id),
        destination_account_id=str(destination.id),
        net_amount=str(payment.net_amount),
        tax_amount=str(payment.tax_amount),
    )
    return payment


async def list_payments(
    db: AsyncSession, status: CardPaymentStatus | None = None, limit: int = 100
) -> list[CardPayment]:
    """Held payments oldest sale first; received ones most recently settled first."""
    stmt = select(CardPayment)
    if status is CardPaymentStatus.HOLD:
        stmt = stmt.where(CardPayment.status == status.value).order_by(
            CardPayment.payment_date, CardPayment.created_at
        )
    elif status is CardPaymentStatus.RECEIVED:
        stmt = stmt.where(CardPayment.status == status.value).order_by(
            CardPayment.received_at.desc()
        )
    else:
        stmt = stmt.order_by(CardPayment.created_at.desc())
    result = await db.execute(stmt.limit(limit))
    return list(result.scalars().all())


async def settlement_summary(db: AsyncSession) -> dict:
    received = (
        await db.execute(
            select(
                func.coalesce(func.sum(CardPayment.net_amount), 0),
                func.coalesce(func.sum(CardPayment.tax_amount), 0),
            ).where(CardPayment.status == CardPaymentStatus.RECEIVED.value)
        )
    ).one()
    held = (
        await db.execute(
            select(
                func.coalesce(func.sum(CardPayment.amount), 0),
                func.coalesce(func.sum(CardPayment.net_amount), 0),
                func.count(CardPayment.id),
            ).where(CardPayment.status == CardPaymentStatus.HOLD.value)
        )
    ).one()

    return {
        "received_net_total": to_money(received[0]),
        "received_tax_total": to_money(received[1]),
        "hold_gross_total": to_money(held[0]),
        "hold_net_total": to_money(held[1]),
        "hold_count": held[2],
    }

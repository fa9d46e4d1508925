"""Card endpoints: card types, held card sales and settlement."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.api.identity import get_current_user_id
from fuelledger.core import card_settlement
from fuelledger.core.db import get_db
from fuelledger.models.card import CardPayment, CardType
from fuelledger.models.card_schemas import (
    CardPaymentRead,
    CardSaleCreate,
    CardSettle,
    CardTypeCreate,
    CardTypeRead,
    CardTypeUpdate,
    SettlementSummary,
)
from fuelledger.models.enums import CardPaymentStatus

router = APIRouter(prefix="/api/v1/cards", tags=["cards"])


# --- Card types ---


@router.get("/types", response_model=list[CardTypeRead])
async def list_card_types(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> list[CardType]:
    return await card_settlement.list_card_types(db, active_only)


@router.post("/types", response_model=CardTypeRead, status_code=status.HTTP_201_CREATED)
async def create_card_type(
    payload: CardTypeCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> CardType:
    return await card_settlement.create_card_type(
        db, payload.name, payload.tax_percentage, performed_by=user_id
    )


@router.patch("/types/{card_type_id}", response_model=CardTypeRead)
async def update_card_type(
    card_type_id: UUID,
    payload: CardTypeUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> CardType:
    """Rename or re-rate. Payments already recorded keep their captured tax."""
    return await card_settlement.update_card_type(
        db,
        card_type_id,
        name=payload.name,
        tax_percentage=payload.tax_percentage,
        performed_by=user_id,
    )


@router.post("/types/{card_type_id}/toggle", response_model=CardTypeRead)
async def toggle_card_type(
    card_type_id: UUID,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> CardType:
    return await card_settlement.toggle_card_type(db, card_type_id, performed_by=user_id)


# --- Payments ---


@router.post(
    "/payments",
    response_model=CardPaymentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a card sale on hold",
)
async def record_sale(
    payload: CardSaleCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> CardPayment:
    return await card_settlement.record_sale(
        db,
        payload.card_type_id,
        payload.amount,
        payment_date=payload.payment_date,
        reference_kind=payload.reference_kind,
        reference_id=payload.reference_id,
        performed_by=user_id,
    )


@router.get("/payments", response_model=list[CardPaymentRead])
async def list_payments(
    status_filter: CardPaymentStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[CardPayment]:
    return await card_settlement.list_payments(db, status_filter, limit)


@router.get("/payments/summary", response_model=SettlementSummary)
async def settlement_summary(db: AsyncSession = Depends(get_db)) -> dict:
    return await card_settlement.settlement_summary(db)


@router.post(
    "/payments/{payment_id}/settle",
    response_model=CardPaymentRead,
    summary="Mark a held card payment as received",
)
async def settle_payment(
    payment_id: UUID,
    payload: CardSettle,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> CardPayment:
    """
    Posts the net amount into the destination account and the card tax as
    an expense.

    Errors:
        422 DESTINATION_REQUIRED
        409 ALREADY_SETTLED
    """
    return await card_settlement.settle(
        db,
        payment_id,
        payload.destination_account_id,
        note=payload.note,
        performed_by=user_id,
    )

"""Transaction endpoints: posting, manual movements and the running balance view."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.api.identity import get_current_user_id
from fuelledger.core import ledger
from fuelledger.core.config import LedgerSettings, get_settings
from fuelledger.core.db import get_db
from fuelledger.core.reconstruction import running_balance_view
from fuelledger.models.enums import TransactionKind
from fuelledger.models.transaction import LedgerTransaction
from fuelledger.models.transaction_schemas import (
    CashDeposit,
    FundsAddition,
    MovementFilters,
    RunningBalanceRead,
    TransactionCreate,
    TransactionRead,
)

router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


@router.post(
    "",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post a ledger transaction",
)
async def post_transaction(
    payload: TransactionCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> LedgerTransaction:
    """
    Record one income, expense or transfer and move account balances.

    Errors:
        422 NON_POSITIVE_AMOUNT, INVALID_TRANSACTION_SHAPE
        404 UNKNOWN_ACCOUNT
    """
    return await ledger.post(
        db,
        kind=payload.kind,
        amount=payload.amount,
        category=payload.category,
        description=payload.description,
        from_account_id=payload.from_account_id,
        to_account_id=payload.to_account_id,
        reference_kind=payload.reference_kind,
        reference_id=payload.reference_id,
        occurred_at=payload.occurred_at,
        created_by=user_id,
    )


@router.get(
    "",
    response_model=list[RunningBalanceRead],
    summary="Transactions with running balances",
    description="Newest first. Each row carries the cash/bank balance right after it.",
)
async def list_transactions(
    kind: TransactionKind | None = Query(None),
    account_id: UUID | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    search: str | None = Query(None, max_length=100),
    limit: int | None = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    settings: LedgerSettings = Depends(get_settings),
) -> list[RunningBalanceRead]:
    filters = MovementFilters(
        kind=kind,
        account_id=account_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        limit=limit or settings.running_balance_limit,
    )
    rows = await running_balance_view(db, filters)
    return [
        RunningBalanceRead(
            **TransactionRead.model_validate(row.transaction).model_dump(),
            running_cash=row.cash,
            running_bank=row.bank,
            running_total=row.total,
        )
        for row in rows
    ]


@router.post(
    "/deposit",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Deposit drawer cash into a bank account",
)
async def deposit_cash(
    payload: CashDeposit,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> LedgerTransaction:
    return await ledger.deposit_cash_to_bank(
        db,
        payload.cash_account_id,
        payload.bank_account_id,
        payload.amount,
        payload.description,
        performed_by=user_id,
    )


@router.post(
    "/add-funds",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add cash or bank funds",
)
async def add_funds(
    payload: FundsAddition,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> LedgerTransaction:
    return await ledger.add_funds(
        db,
        payload.account_id,
        payload.amount,
        payload.description,
        performed_by=user_id,
    )

"""Account endpoints: registration, balances and counted adjustments."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.api.identity import get_current_user_id
from fuelledger.core import ledger
from fuelledger.core.db import get_db
from fuelledger.models.account import Account
from fuelledger.models.account_schemas import (
    AccountCreate,
    AccountRead,
    AggregateBalances,
    BalanceAdjustment,
)
from fuelledger.models.enums import AccountKind
from fuelledger.models.transaction_schemas import TransactionRead

router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.post(
    "",
    response_model=AccountRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a cash or bank account",
)
async def create_account(
    payload: AccountCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> Account:
    """
    Create an account. A non-zero opening balance is posted as an
    `opening_balance` transaction so the log explains it.
    """
    account = await ledger.create_account(
        db,
        name=payload.name,
        kind=payload.kind,
        opening_balance=payload.opening_balance,
        created_by=user_id,
    )
    await db.refresh(account)
    return account


@router.get("", response_model=list[AccountRead])
async def list_accounts(
    kind: AccountKind | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[Account]:
    return await ledger.list_accounts(db, kind)


@router.get("/balances", response_model=AggregateBalances, summary="Cash, bank and total")
async def aggregate_balances(db: AsyncSession = Depends(get_db)) -> AggregateBalances:
    cash, bank = await ledger.aggregate_balances(db)
    return AggregateBalances(cash=cash, bank=bank, total=cash + bank)


@router.get("/{account_id}", response_model=AccountRead)
async def get_account(account_id: UUID, db: AsyncSession = Depends(get_db)) -> Account:
    return await ledger.get_account(db, account_id)


@router.post(
    "/{account_id}/adjust",
    response_model=TransactionRead | None,
    summary="Bring an account to a counted balance",
)
async def adjust_balance(
    account_id: UUID,
    payload: BalanceAdjustment,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    """Posts the difference as a `manual_adjustment`; returns null when nothing moved."""
    return await ledger.adjust_balance(
        db,
        account_id,
        payload.target_balance,
        payload.reason,
        performed_by=user_id,
    )

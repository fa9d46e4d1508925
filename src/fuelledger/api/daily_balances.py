"""DailyBalance endpoints: today's running cash/bank figures and history."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.api.identity import get_current_user_id
from fuelledger.core import day_lifecycle
from fuelledger.core.db import get_db
from fuelledger.models.daily_balance import DailyBalance
from fuelledger.models.day_schemas import DailyBalanceRead, OpeningBalanceSet

router = APIRouter(prefix="/api/v1/daily-balances", tags=["daily-balances"])


@router.get(
    "/today",
    response_model=DailyBalanceRead,
    summary="Today's balance row",
    description=(
        "Closes any earlier unclosed rows, then returns today's row, creating it "
        "from the previous day's closing figures when missing."
    ),
)
async def today_balance(
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> DailyBalance:
    return await day_lifecycle.ensure_daily_balance(db, performed_by=user_id)


@router.put("/today/opening", response_model=DailyBalanceRead)
async def set_opening_balance(
    payload: OpeningBalanceSet,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> DailyBalance:
    return await day_lifecycle.set_opening_balance(
        db, payload.cash_opening, payload.bank_opening, performed_by=user_id
    )


@router.post("/today/close", response_model=DailyBalanceRead)
async def close_today(
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> DailyBalance:
    return await day_lifecycle.close_daily_balance(db, performed_by=user_id)


@router.get("", response_model=list[DailyBalanceRead])
async def balance_history(
    limit: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
) -> list[DailyBalance]:
    return await day_lifecycle.balance_history(db, limit)

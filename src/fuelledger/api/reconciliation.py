"""Reconciliation endpoints: ledger consistency."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.consistency import assert_consistent
from fuelledger.core.db import get_db

router = APIRouter(prefix="/api/v1/reconciliation", tags=["reconciliation"])


@router.get(
    "/consistency",
    summary="Replay the transaction log against stored balances",
    description="200 with the report when balances foot; 500 LEDGER_INCONSISTENT otherwise.",
)
async def consistency(db: AsyncSession = Depends(get_db)) -> dict:
    report = await assert_consistent(db)
    return report.as_dict()

"""Daily operation endpoints: start day, close day and variance history."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.api.identity import get_current_user_id
from fuelledger.core import day_lifecycle
from fuelledger.core.config import LedgerSettings, get_settings
from fuelledger.core.day_lifecycle import VarianceAssessment
from fuelledger.core.db import get_db
from fuelledger.models.cash_variance_log import CashVarianceLogEntry
from fuelledger.models.daily_operation import DailyOperation
from fuelledger.models.day_schemas import (
    CashCount,
    CashVarianceRead,
    DailyOperationRead,
    DayStatusRead,
    VariancePreview,
)

router = APIRouter(prefix="/api/v1/operations", tags=["operations"])


def _preview(assessment: VarianceAssessment) -> VariancePreview:
    return VariancePreview(
        expected=assessment.expected,
        actual=assessment.actual,
        variance=assessment.variance,
        tolerance=assessment.tolerance,
        within_tolerance=assessment.within_tolerance,
        requires_explanation=assessment.requires_explanation,
    )


@router.get("/today", response_model=DayStatusRead, summary="Today's day state")
async def today_status(db: AsyncSession = Depends(get_db)) -> DayStatusRead:
    status_info = await day_lifecycle.day_status(db)
    operation = status_info["operation"]
    return DayStatusRead(
        operation_date=status_info["operation_date"],
        state=status_info["state"],
        operation=DailyOperationRead.model_validate(operation) if operation else None,
        warning=status_info["warning"],
    )


@router.get("/today/start-preview", response_model=VariancePreview)
async def start_preview(
    actual_cash: Decimal = Query(..., ge=0),
    db: AsyncSession = Depends(get_db),
    settings: LedgerSettings = Depends(get_settings),
) -> VariancePreview:
    """Expected opening cash and tolerance for a count, without opening the day."""
    assessment = await day_lifecycle.preview_start(db, actual_cash, settings=settings)
    return _preview(assessment)


@router.get("/today/close-preview", response_model=VariancePreview)
async def close_preview(
    actual_cash: Decimal = Query(..., ge=0),
    db: AsyncSession = Depends(get_db),
    settings: LedgerSettings = Depends(get_settings),
) -> VariancePreview:
    assessment = await day_lifecycle.preview_close(db, actual_cash, settings=settings)
    return _preview(assessment)


@router.post(
    "/start",
    response_model=DailyOperationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start the day with a cash count",
)
async def start_day(
    payload: CashCount,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
    settings: LedgerSettings = Depends(get_settings),
) -> DailyOperation:
    """
    Open today against the counted drawer cash.

    Errors:
        409 DAY_ALREADY_STARTED
        422 EXPLANATION_REQUIRED when the variance exceeds tolerance
    """
    return await day_lifecycle.start_day(
        db,
        payload.actual_cash,
        explanation=payload.explanation,
        performed_by=user_id,
        settings=settings,
    )


@router.post("/close", response_model=DailyOperationRead, summary="Close and lock the day")
async def close_day(
    payload: CashCount,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
    settings: LedgerSettings = Depends(get_settings),
) -> DailyOperation:
    """
    Errors:
        409 DAY_NOT_OPEN
        422 EXPLANATION_REQUIRED
    """
    return await day_lifecycle.close_day(
        db,
        payload.actual_cash,
        explanation=payload.explanation,
        performed_by=user_id,
        settings=settings,
    )


@router.get("/variances", response_model=list[CashVarianceRead])
async def list_variances(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[CashVarianceLogEntry]:
    return await day_lifecycle.variance_log(db, date_from, date_to, limit)

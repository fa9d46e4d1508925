# File: src/fuelledger/models/day_schemas.py
"""Pydantic schemas for the daily open/close workflow."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fuelledger.models.enums import DayState, DayStatus, VarianceType


class CashCount(BaseModel):
    """Physical cash count submitted at start or close of day."""

    actual_cash: Decimal = Field(..., ge=0, decimal_places=2)
    explanation: str | None = Field(None, max_length=1000)


class DailyOperationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    operation_date: date
    status: DayStatus
    state: DayState
    day_locked: bool
    opening_cash: Decimal
    opening_cash_actual: Decimal
    opening_cash_variance: Decimal
    opening_cash_variance_note: str | None
    opening_bank: Decimal
    closing_cash: Decimal | None
    closing_cash_actual: Decimal | None
    closing_cash_variance: Decimal | None
    closing_cash_variance_note: str | None
    closing_bank: Decimal | None
    total_sales: Decimal | None
    total_expenses: Decimal | None
    opened_by: str | None
    opened_at: datetime | None
    closed_by: str | None
    closed_at: datetime | None


class DayStatusRead(BaseModel):
    operation_date: date
    state: DayState
    operation: DailyOperationRead | None = None
    warning: str | None = None


class VariancePreview(BaseModel):
    """What start/close would compute for a given count, without writing."""

    expected: Decimal
    actual: Decimal
    variance: Decimal
    tolerance: Decimal
    within_tolerance: bool
    requires_explanation: bool


class CashVarianceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    variance_date: date
    variance_type: VarianceType
    expected_amount: Decimal
    actual_amount: Decimal
    difference: Decimal
    variance_percentage: Decimal
    explanation: str | None
    reported_by: str | None
    created_at: datetime


class DailyBalanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    balance_date: date
    cash_opening: Decimal
    cash_closing: Decimal | None
    bank_opening: Decimal
    bank_closing: Decimal | None
    is_closed: bool
    closed_by: str | None
    closed_at: datetime | None
    notes: str | None


class OpeningBalanceSet(BaseModel):
    cash_opening: Decimal = Field(..., decimal_places=2)
    bank_opening: Decimal = Field(..., decimal_places=2)

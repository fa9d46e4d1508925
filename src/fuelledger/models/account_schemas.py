"""Pydantic schemas for Account API."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fuelledger.core.validators import sanitize_text
from fuelledger.models.enums import AccountKind


class AccountCreate(BaseModel):
    """Schema for registering a cash or bank account."""

    name: str = Field(..., min_length=1, max_length=100)
    kind: AccountKind
    opening_balance: Decimal = Field(Decimal("0.00"), decimal_places=2)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if not cleaned:
            raise ValueError("Account name cannot be empty")
        return cleaned


class AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    kind: AccountKind
    current_balance: Decimal
    is_active: bool
    created_at: datetime


class BalanceAdjustment(BaseModel):
    """Set an account to a counted balance; the difference is posted."""

    target_balance: Decimal = Field(..., decimal_places=2)
    reason: str = Field(..., min_length=1, max_length=500)


class AggregateBalances(BaseModel):
    cash: Decimal
    bank: Decimal
    total: Decimal

"""Pydantic schemas for ledger transactions and running balances."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fuelledger.core.validators import sanitize_text
from fuelledger.models.enums import TransactionKind


class TransactionCreate(BaseModel):
    """A request to post one transaction.

    Amount sign and account shape are checked by the ledger, not here, so
    that callers receive NON_POSITIVE_AMOUNT / INVALID_TRANSACTION_SHAPE.
    """

    kind: TransactionKind
    category: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=1000)
    amount: Decimal = Field(..., decimal_places=2)
    from_account_id: UUID | None = None
    to_account_id: UUID | None = None
    reference_kind: str | None = Field(None, max_length=50)
    reference_id: str | None = Field(None, max_length=64)
    occurred_at: datetime | None = None

    @field_validator("description")
    @classmethod
    def clean_description(cls, v: str | None) -> str | None:
        return sanitize_text(v)


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    occurred_at: datetime
    kind: TransactionKind
    category: str
    description: str | None
    amount: Decimal
    from_account_id: UUID | None
    to_account_id: UUID | None
    reference_kind: str | None
    reference_id: str | None
    created_by: str | None
    created_at: datetime


class RunningBalanceRead(TransactionRead):
    """Transaction with the balances in effect right after it."""

    running_cash: Decimal
    running_bank: Decimal
    running_total: Decimal


class MovementFilters(BaseModel):
    """Filters for the running balance view."""

    kind: TransactionKind | None = None
    account_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None
    limit: int = Field(200, ge=1, le=1000)


class CashDeposit(BaseModel):
    """Move cash from the drawer to a bank account."""

    cash_account_id: UUID
    bank_account_id: UUID
    amount: Decimal = Field(..., decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)


class FundsAddition(BaseModel):
    """Add funds to a cash or bank account with a reason."""

    account_id: UUID
    amount: Decimal = Field(..., decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)

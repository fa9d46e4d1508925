"""Pydantic schemas for card types and card payments."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fuelledger.core.validators import sanitize_text
from fuelledger.models.enums import CardPaymentStatus


class CardTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    tax_percentage: Decimal = Field(Decimal("0.00"), ge=0, lt=100, decimal_places=2)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if not cleaned:
            raise ValueError("Card name cannot be empty")
        return cleaned


class CardTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    tax_percentage: Decimal | None = Field(None, ge=0, lt=100, decimal_places=2)


class CardTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    tax_percentage: Decimal
    is_active: bool


class CardSaleCreate(BaseModel):
    card_type_id: UUID
    amount: Decimal = Field(..., decimal_places=2)
    payment_date: date | None = None
    reference_kind: str | None = Field(None, max_length=50)
    reference_id: str | None = Field(None, max_length=64)


class CardSettle(BaseModel):
    destination_account_id: UUID | None = None
    note: str | None = Field(None, max_length=500)


class CardPaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_date: date
    card_type_id: UUID
    card_type: CardTypeRead
    amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    net_amount: Decimal
    status: CardPaymentStatus
    received_at: datetime | None
    settlement_account_id: UUID | None
    notes: str | None
    reference_kind: str | None
    reference_id: str | None


class SettlementSummary(BaseModel):
    received_net_total: Decimal
    received_tax_total: Decimal
    hold_gross_total: Decimal
    hold_net_total: Decimal
    hold_count: int

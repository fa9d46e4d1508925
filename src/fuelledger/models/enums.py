"""
Enums for ledger models.
Stored as their string values; the enums validate categorical fields.
"""

import enum


class AccountKind(str, enum.Enum):
    """Where money physically sits."""

    CASH = "cash"
    BANK = "bank"


class TransactionKind(str, enum.Enum):
    """Direction of a ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class DayStatus(str, enum.Enum):
    """Stored DailyOperation status."""

    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"


class DayState(str, enum.Enum):
    """Derived lifecycle state shown to operators (adds the terminal LOCKED)."""

    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


class VarianceType(str, enum.Enum):
    OPENING_CASH = "OPENING_CASH"
    CLOSING_CASH = "CLOSING_CASH"


class CardPaymentStatus(str, enum.Enum):
    """Card receivable lifecycle: HOLD -> RECEIVED, one way."""

    HOLD = "hold"
    RECEIVED = "received"


class AuditEventType(str, enum.Enum):
    DAY_OPEN = "DAY_OPEN"
    DAY_CLOSE = "DAY_CLOSE"
    DAY_AUTO_CLOSE = "DAY_AUTO_CLOSE"
    OPENING_BALANCE_SET = "OPENING_BALANCE_SET"
    BALANCE_ADJUSTED = "BALANCE_ADJUSTED"
    CARD_SETTLED = "CARD_SETTLED"
    CARD_TYPE_CHANGED = "CARD_TYPE_CHANGED"


# Categories the engine itself writes on transactions
CATEGORY_OPENING_BALANCE = "opening_balance"
CATEGORY_MANUAL_ADJUSTMENT = "manual_adjustment"
CATEGORY_BANK_DEPOSIT = "bank_deposit"
CATEGORY_CARD_SETTLEMENT = "card_settlement"
CATEGORY_CARD_TAX = "card_tax"

# reference_kind of transactions drawn on the virtual card-receivable account
CARD_PAYMENTS_REFERENCE = "card_payments"

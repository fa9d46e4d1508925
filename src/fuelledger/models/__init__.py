"""Domain models package."""

from fuelledger.models.account import Account
from fuelledger.models.audit_log import AuditLog
from fuelledger.models.card import CardPayment, CardType
from fuelledger.models.cash_variance_log import CashVarianceLogEntry
from fuelledger.models.daily_balance import DailyBalance
from fuelledger.models.daily_operation import DailyOperation
from fuelledger.models.enums import (
    AccountKind,
    CardPaymentStatus,
    DayState,
    DayStatus,
    TransactionKind,
    VarianceType,
)
from fuelledger.models.transaction import LedgerTransaction

__all__ = [
    "Account",
    "AccountKind",
    "AuditLog",
    "CardPayment",
    "CardPaymentStatus",
    "CardType",
    "CashVarianceLogEntry",
    "DailyBalance",
    "DailyOperation",
    "DayState",
    "DayStatus",
    "LedgerTransaction",
    "TransactionKind",
    "VarianceType",
]

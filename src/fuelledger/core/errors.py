"""Ledger exceptions and error response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to API response schema."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details if self.details else None,
        )


# --- Validation errors: caller-correctable, never retried ---


class ValidationError(AppError):
    """Raised when request validation fails."""

    def __init__(self, message: str, details: Optional[dict] = None, code: str = "VALIDATION_ERROR"):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details,
        )


class InvalidTransactionShape(ValidationError):
    """Account references don't match the transaction kind."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, details=details, code="INVALID_TRANSACTION_SHAPE")


class NonPositiveAmount(ValidationError):
    """Amount must be strictly greater than zero."""

    def __init__(self, amount: Any):
        super().__init__(
            f"Amount must be positive, got {amount}",
            details={"amount": str(amount)},
            code="NON_POSITIVE_AMOUNT",
        )


class ExplanationRequired(ValidationError):
    """Variance exceeds tolerance and no explanation was given."""

    def __init__(self, variance: Any, tolerance: Any):
        super().__init__(
            "Explanation is required for significant variance",
            details={"variance": str(variance), "tolerance": str(tolerance)},
            code="EXPLANATION_REQUIRED",
        )


class DestinationRequired(ValidationError):
    """Settlement needs a destination account."""

    def __init__(self):
        super().__init__(
            "A destination account is required to settle a card payment",
            code="DESTINATION_REQUIRED",
        )


class NotFoundError(AppError):
    """Raised when resource doesn't exist."""

    def __init__(self, resource: str, resource_id: str, code: str = "NOT_FOUND"):
        super().__init__(
            code=code,
            message=f"{resource} with ID {resource_id} not found",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
        )


class UnknownAccount(NotFoundError):
    """Transaction or lookup references a missing account."""

    def __init__(self, account_id: Any):
        super().__init__("Account", str(account_id), code="UNKNOWN_ACCOUNT")


# --- State conflicts: stale view, caller refreshes and retries ---


class ConflictError(AppError):
    """Raised when resource already exists or operation conflicts."""

    def __init__(self, message: str, details: Optional[dict] = None, code: str = "CONFLICT"):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class DayAlreadyStarted(ConflictError):
    def __init__(self, operation_date: Any):
        super().__init__(
            f"Day {operation_date} has already been started",
            details={"operation_date": str(operation_date)},
            code="DAY_ALREADY_STARTED",
        )


class DayNotOpen(ConflictError):
    def __init__(self, operation_date: Any, status: str):
        super().__init__(
            f"Day {operation_date} is not open",
            details={"operation_date": str(operation_date), "status": status},
            code="DAY_NOT_OPEN",
        )


class DayLocked(ConflictError):
    def __init__(self, day: Any):
        super().__init__(
            f"Figures for {day} are closed and cannot be changed",
            details={"date": str(day)},
            code="DAY_LOCKED",
        )


class DuplicateDateRow(ConflictError):
    def __init__(self, table: str, day: Any):
        super().__init__(
            f"A {table} row already exists for {day}",
            details={"table": table, "date": str(day)},
            code="DUPLICATE_DATE_ROW",
        )


class AlreadySettled(ConflictError):
    def __init__(self, payment_id: Any, status: str):
        super().__init__(
            "Card payment is not on hold",
            details={"payment_id": str(payment_id), "status": status},
            code="ALREADY_SETTLED",
        )


# --- Consistency: should never happen, always alert ---


class LedgerConsistencyError(AppError):
    """Stored balances disagree with a replay of the transaction log."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="LEDGER_INCONSISTENT",
            message=message,
            status_code=500,
            details=details,
        )


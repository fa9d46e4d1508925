# File: src/fuelledger/core/day_lifecycle.py
"""Day Lifecycle Controller: open/close cycle, variance policy, rollover.

States: not_started -> open -> closed -> locked. close_day moves a day to
closed and locks it in the same step; nothing re-opens a locked day.

Two date-scoped records are maintained:
- DailyOperation: explicit start_day / close_day with physical cash counts
- DailyBalance: lazily created running cash/bank figures for a date
Both share the backlog rollover in close_backlog().
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.audit import log_event
from fuelledger.core.config import LedgerSettings, get_settings
from fuelledger.core.errors import (
    DayAlreadyStarted,
    DayLocked,
    DayNotOpen,
    DuplicateDateRow,
    ExplanationRequired,
    NotFoundError,
)
from fuelledger.core.ledger import list_accounts
from fuelledger.core.logging import get_logger
from fuelledger.core.reconstruction import transaction_effect
from fuelledger.core.validators import CENT, is_blank, to_money
from fuelledger.models.cash_variance_log import CashVarianceLogEntry
from fuelledger.models.daily_balance import DailyBalance
from fuelledger.models.daily_operation import DailyOperation
from fuelledger.models.enums import AuditEventType, DayState, DayStatus, TransactionKind, VarianceType
from fuelledger.models.transaction import LedgerTransaction
from fuelledger.utils.datetime import day_bounds, now_utc, today_local

logger = get_logger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class VarianceAssessment:
    expected: Decimal
    actual: Decimal
    variance: Decimal
    tolerance: Decimal

    @property
    def within_tolerance(self) -> bool:
        return abs(self.variance) <= self.tolerance

    @property
    def requires_explanation(self) -> bool:
        return not self.within_tolerance

    @property
    def percentage(self) -> Decimal:
        if self.expected <= ZERO:
            return Decimal("0")
        return (self.variance / self.expected * 100).quantize(
            Decimal("0.0001"), rounding=ROUND_HALF_UP
        )


@dataclass(frozen=True)
class DayCashFlows:
    cash_in: Decimal
    cash_out: Decimal
    bank_in: Decimal
    bank_out: Decimal
    total_sales: Decimal
    total_expenses: Decimal


def compute_tolerance(expected: Decimal, settings: LedgerSettings) -> Decimal:
    """max(floor, expected * rate). A zero or negative base gets the floor."""
    if expected <= ZERO:
        return settings.tolerance_floor
    proportional = (expected * settings.tolerance_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return max(settings.tolerance_floor, proportional)


def assess_variance(
    expected: Decimal, actual: Decimal, settings: LedgerSettings | None = None
) -> VarianceAssessment:
    settings = settings or get_settings()
    expected = to_money(expected)
    actual = to_money(actual)
    return VarianceAssessment(
        expected=expected,
        actual=actual,
        variance=actual - expected,
        tolerance=compute_tolerance(expected, settings),
    )


def _check_explanation(assessment: VarianceAssessment, explanation: str | None) -> None:
    if assessment.requires_explanation and is_blank(explanation):
        raise ExplanationRequired(assessment.variance, assessment.tolerance)


def _log_variance(
    db: AsyncSession,
    day: date,
    variance_type: VarianceType,
    assessment: VarianceAssessment,
    explanation: str | None,
    reported_by: str | None,
) -> CashVarianceLogEntry | None:
    if assessment.variance == ZERO:
        return None
    entry = CashVarianceLogEntry(
        variance_date=day,
        variance_type=variance_type.value,
        expected_amount=assessment.expected,
        actual_amount=assessment.actual,
        difference=assessment.variance,
        variance_percentage=assessment.percentage,
        explanation=explanation,
        reported_by=reported_by,
    )
    db.add(entry)
    return entry


# --- Backlog rollover ---


async def close_backlog(
    db: AsyncSession, today: date, performed_by: str | None = None
) -> tuple[int, int]:
    """Close every unclosed row dated before `today`.

    Each row closes with its own closing ?? opening figures. Rows are not
    chained to each other.

    Returns:
        (operations_closed, balances_closed)
    """
    stamp = now_utc()

    ops_result = await db.execute(
        select(DailyOperation)
        .where(
            DailyOperation.operation_date < today,
            DailyOperation.status == DayStatus.OPEN.value,
        )
        .order_by(DailyOperation.operation_date)
        .with_for_update()
    )
    operations = list(ops_result.scalars().all())
    for op in operations:
        if op.closing_cash is None:
            op.closing_cash = op.opening_cash_actual
        if op.closing_bank is None:
            op.closing_bank = op.opening_bank
        op.status = DayStatus.CLOSED.value
        op.day_locked = True
        op.closed_at = stamp
        op.locked_at = stamp
        op.closed_by = performed_by
        await log_event(
            db,
            AuditEventType.DAY_AUTO_CLOSE,
            "Unclosed day closed by rollover",
            performed_by,
            related_record_type="daily_operations",
            related_record_id=op.id,
            details={"operation_date": op.operation_date, "closing_cash": op.closing_cash},
        )

    balances_result = await db.execute(
        select(DailyBalance)
        .where(DailyBalance.balance_date < today, DailyBalance.is_closed.is_(False))
        .order_by(DailyBalance.balance_date)
        .with_for_update()
    )
    balances = list(balances_result.scalars().all())
    for row in balances:
        row.cash_closing = row.effective_cash_closing
        row.bank_closing = row.effective_bank_closing
        row.is_closed = True
        row.closed_at = stamp
        row.closed_by = performed_by

    if operations or balances:
        await db.flush()
        logger.info(
            "day.backlog_closed",
            operations=[str(op.operation_date) for op in operations],
            balances=[str(row.balance_date) for row in balances],
        )
    return len(operations), len(balances)


# --- DailyOperation workflow ---


async def get_operation(db: AsyncSession, day: date) -> DailyOperation | None:
    result = await db.execute(
        select(DailyOperation)
        .where(DailyOperation.operation_date == day)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def last_closed_operation(db: AsyncSession, before: date) -> DailyOperation | None:
    result = await db.execute(
        select(DailyOperation)
        .where(
            DailyOperation.operation_date < before,
            DailyOperation.status == DayStatus.CLOSED.value,
        )
        .order_by(DailyOperation.operation_date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def expected_opening(db: AsyncSession, day: date) -> tuple[Decimal, Decimal]:
    """Cash and bank carried forward from the last closed day, or zero."""
    previous = await last_closed_operation(db, day)
    if previous is None:
        return ZERO, ZERO
    return previous.carry_forward_cash, previous.carry_forward_bank


async def day_cash_flows(db: AsyncSession, day: date) -> DayCashFlows:
    """Sum same-day movements through cash and bank accounts.

    Transfers count too: a cash -> bank deposit leaves the drawer.
    """
    start, end = day_bounds(day)
    result = await db.execute(
        select(LedgerTransaction).where(
            LedgerTransaction.occurred_at >= start,
            LedgerTransaction.occurred_at < end,
        )
    )
    transactions = list(result.scalars().all())
    account_kinds = {account.id: account.kind for account in await list_accounts(db)}

    cash_in = cash_out = bank_in = bank_out = ZERO
    total_sales = total_expenses = ZERO
    for txn in transactions:
        cash_effect, bank_effect = transaction_effect(txn, account_kinds)
        if cash_effect > ZERO:
            cash_in += cash_effect
        else:
            cash_out -= cash_effect
        if bank_effect > ZERO:
            bank_in += bank_effect
        else:
            bank_out -= bank_effect
        if txn.kind == TransactionKind.INCOME.value:
            total_sales += txn.amount
        elif txn.kind == TransactionKind.EXPENSE.value:
            total_expenses += txn.amount

    return DayCashFlows(
        cash_in=cash_in,
        cash_out=cash_out,
        bank_in=bank_in,
        bank_out=bank_out,
        total_sales=total_sales,
        total_expenses=total_expenses,
    )


async def preview_start(
    db: AsyncSession,
    actual_cash: Decimal,
    on_date: date | None = None,
    settings: LedgerSettings | None = None,
) -> VarianceAssessment:
    day = on_date or today_local()
    expected, _ = await expected_opening(db, day)
    return assess_variance(expected, actual_cash, settings)


async def start_day(
    db: AsyncSession,
    actual_cash: Decimal,
    explanation: str | None = None,
    performed_by: str | None = None,
    on_date: date | None = None,
    settings: LedgerSettings | None = None,
) -> DailyOperation:
    """Open the day against a physical cash count.

    Raises:
        DayAlreadyStarted: a row already exists for the date
        ExplanationRequired: |variance| > tolerance with no explanation
    """
    day = on_date or today_local()
    await close_backlog(db, day, performed_by)

    if await get_operation(db, day) is not None:
        raise DayAlreadyStarted(day)

    expected, opening_bank = await expected_opening(db, day)
    assessment = assess_variance(expected, actual_cash, settings)
    _check_explanation(assessment, explanation)

    stamp = now_utc()
    operation = DailyOperation(
        operation_date=day,
        status=DayStatus.OPEN.value,
        day_locked=False,
        opening_cash=assessment.expected,
        opening_cash_actual=assessment.actual,
        opening_cash_variance=assessment.variance,
        opening_cash_variance_note=explanation,
        opening_bank=opening_bank,
        opened_by=performed_by,
        opened_at=stamp,
    )
    db.add(operation)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DayAlreadyStarted(day) from exc

    _log_variance(db, day, VarianceType.OPENING_CASH, assessment, explanation, performed_by)
    await log_event(
        db,
        AuditEventType.DAY_OPEN,
        "Day started",
        performed_by,
        related_record_type="daily_operations",
        related_record_id=operation.id,
        details={
            "expected": assessment.expected,
            "actual": assessment.actual,
            "variance": assessment.variance,
        },
    )
    await db.flush()

    logger.info(
        "day.started",
        operation_date=str(day),
        expected=str(assessment.expected),
        actual=str(assessment.actual),
        variance=str(assessment.variance),
    )
    return operation


async def preview_close(
    db: AsyncSession,
    actual_cash: Decimal,
    on_date: date | None = None,
    settings: LedgerSettings | None = None,
) -> VarianceAssessment:
    day = on_date or today_local()
    operation = await _require_open(db, day)
    flows = await day_cash_flows(db, day)
    expected = operation.opening_cash_actual + flows.cash_in - flows.cash_out
    return assess_variance(expected, actual_cash, settings)


async def _require_open(db: AsyncSession, day: date) -> DailyOperation:
    operation = await get_operation(db, day)
    if operation is None:
        raise DayNotOpen(day, DayState.NOT_STARTED.value)
    if operation.status != DayStatus.OPEN.value:
        raise DayNotOpen(day, operation.state.value)
    return operation


async def close_day(
    db: AsyncSession,
    actual_cash: Decimal,
    explanation: str | None = None,
    performed_by: str | None = None,
    on_date: date | None = None,
    settings: LedgerSettings | None = None,
) -> DailyOperation:
    """Close and lock the open day against a physical cash count.

    expected = opening counted cash + same-day cash in - cash out.

    Raises:
        DayNotOpen: no row for the date, or it is already closed
        ExplanationRequired: |variance| > tolerance with no explanation
    """
    day = on_date or today_local()
    operation = await _require_open(db, day)

    flows = await day_cash_flows(db, day)
    expected = operation.opening_cash_actual + flows.cash_in - flows.cash_out
    assessment = assess_variance(expected, actual_cash, settings)
    _check_explanation(assessment, explanation)

    stamp = now_utc()
    # Compare-and-swap on status: a concurrent close loses here
    result = await db.execute(
        update(DailyOperation)
        .where(
            DailyOperation.id == operation.id,
            DailyOperation.status == DayStatus.OPEN.value,
        )
        .values(
            status=DayStatus.CLOSED.value,
            day_locked=True,
            closing_cash=assessment.expected,
            closing_cash_actual=assessment.actual,
            closing_cash_variance=assessment.variance,
            closing_cash_variance_note=explanation,
            closing_bank=operation.opening_bank + flows.bank_in - flows.bank_out,
            total_sales=flows.total_sales,
            total_expenses=flows.total_expenses,
            closed_by=performed_by,
            closed_at=stamp,
            locked_at=stamp,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise DayNotOpen(day, DayStatus.CLOSED.value)
    await db.refresh(operation)

    _log_variance(db, day, VarianceType.CLOSING_CASH, assessment, explanation, performed_by)
    await log_event(
        db,
        AuditEventType.DAY_CLOSE,
        "Day closed",
        performed_by,
        related_record_type="daily_operations",
        related_record_id=operation.id,
        details={
            "expected": assessment.expected,
            "actual": assessment.actual,
            "variance": assessment.variance,
            "cash_in": flows.cash_in,
            "cash_out": flows.cash_out,
        },
    )
    await db.flush()

    logger.info(
        "day.closed",
        operation_date=str(day),
        expected=str(assessment.expected),
        actual=str(assessment.actual),
        variance=str(assessment.variance),
    )
    return operation


async def day_status(db: AsyncSession, on_date: date | None = None) -> dict:
    """Derived state for the date, warning when an earlier day is still open."""
    day = on_date or today_local()
    operation = await get_operation(db, day)

    previous = (
        await db.execute(
            select(DailyOperation)
            .where(DailyOperation.operation_date < day)
            .order_by(DailyOperation.operation_date.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    warning = None
    if previous is not None and previous.status == DayStatus.OPEN.value:
        warning = f"Previous day ({previous.operation_date}) is still open"

    return {
        "operation_date": day,
        "state": operation.state if operation else DayState.NOT_STARTED,
        "operation": operation,
        "warning": warning,
    }


async def variance_log(
    db: AsyncSession,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 100,
) -> list[CashVarianceLogEntry]:
    stmt = select(CashVarianceLogEntry).order_by(
        CashVarianceLogEntry.variance_date.desc(), CashVarianceLogEntry.created_at.desc()
    )
    if date_from is not None:
        stmt = stmt.where(CashVarianceLogEntry.variance_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(CashVarianceLogEntry.variance_date <= date_to)
    result = await db.execute(stmt.limit(limit))
    return list(result.scalars().all())


# --- DailyBalance workflow ---


async def get_daily_balance(db: AsyncSession, day: date) -> DailyBalance | None:
    result = await db.execute(
        select(DailyBalance)
        .where(DailyBalance.balance_date == day)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ensure_daily_balance(
    db: AsyncSession, on_date: date | None = None, performed_by: str | None = None
) -> DailyBalance:
    """Today's DailyBalance row, created from the previous row's closing figures."""
    day = on_date or today_local()
    await close_backlog(db, day, performed_by)

    row = await get_daily_balance(db, day)
    if row is not None:
        return row

    previous = (
        await db.execute(
            select(DailyBalance)
            .where(DailyBalance.balance_date < day)
            .order_by(DailyBalance.balance_date.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    cash = previous.effective_cash_closing if previous else ZERO
    bank = previous.effective_bank_closing if previous else ZERO
    row = DailyBalance(
        balance_date=day,
        cash_opening=cash,
        cash_closing=cash,
        bank_opening=bank,
        bank_closing=bank,
        is_closed=False,
    )
    db.add(row)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateDateRow("daily_balances", day) from exc

    logger.info("daily_balance.created", balance_date=str(day), cash=str(cash), bank=str(bank))
    return row


async def set_opening_balance(
    db: AsyncSession,
    cash_opening: Decimal,
    bank_opening: Decimal,
    performed_by: str | None = None,
    on_date: date | None = None,
) -> DailyBalance:
    """Re-base today's opening figures, keeping same-day movements intact."""
    row = await ensure_daily_balance(db, on_date, performed_by)
    if row.is_closed:
        raise DayLocked(row.balance_date)

    cash_opening = to_money(cash_opening)
    bank_opening = to_money(bank_opening)
    cash_delta = cash_opening - row.cash_opening
    bank_delta = bank_opening - row.bank_opening

    row.cash_opening = cash_opening
    row.bank_opening = bank_opening
    if row.cash_closing is not None:
        row.cash_closing = row.cash_closing + cash_delta
    if row.bank_closing is not None:
        row.bank_closing = row.bank_closing + bank_delta

    await log_event(
        db,
        AuditEventType.OPENING_BALANCE_SET,
        "Opening balance set",
        performed_by,
        related_record_type="daily_balances",
        related_record_id=row.id,
        details={"cash_opening": cash_opening, "bank_opening": bank_opening},
    )
    await db.flush()
    return row


async def close_daily_balance(
    db: AsyncSession, performed_by: str | None = None, on_date: date | None = None
) -> DailyBalance:
    day = on_date or today_local()
    row = await get_daily_balance(db, day)
    if row is None:
        raise NotFoundError("DailyBalance", str(day))
    if row.is_closed:
        raise DayLocked(day)

    row.cash_closing = row.effective_cash_closing
    row.bank_closing = row.effective_bank_closing
    row.is_closed = True
    row.closed_at = now_utc()
    row.closed_by = performed_by
    await db.flush()

    logger.info(
        "daily_balance.closed",
        balance_date=str(day),
        cash_closing=str(row.cash_closing),
        bank_closing=str(row.bank_closing),
    )
    return row


async def balance_history(db: AsyncSession, limit: int = 30) -> list[DailyBalance]:
    result = await db.execute(
        select(DailyBalance).order_by(DailyBalance.balance_date.desc()).limit(limit)
    )
    return list(result.scalars().all())

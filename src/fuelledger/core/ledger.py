# File: src/fuelledger/core/ledger.py
"""Ledger Store: the single place balance-affecting facts are recorded.

Every change to Account.current_balance goes through post(), which inserts
the LedgerTransaction, moves the account balances and nudges the open
DailyBalance row for the transaction's date, all inside the caller's unit
of work. The Balance Reconstructor and the consistency check rely on this.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.audit import log_event
from fuelledger.core.errors import (
    ConflictError,
    InvalidTransactionShape,
    NonPositiveAmount,
    UnknownAccount,
    ValidationError,
)
from fuelledger.core.logging import get_logger
from fuelledger.core.validators import to_money
from fuelledger.models.account import Account
from fuelledger.models.daily_balance import DailyBalance
from fuelledger.models.enums import (
    CATEGORY_BANK_DEPOSIT,
    CATEGORY_MANUAL_ADJUSTMENT,
    CATEGORY_OPENING_BALANCE,
    AccountKind,
    AuditEventType,
    TransactionKind,
)
from fuelledger.models.transaction import LedgerTransaction
from fuelledger.utils.datetime import now_local_naive, to_local_naive

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def validate_shape(
    kind: TransactionKind,
    from_account_id: UUID | None,
    to_account_id: UUID | None,
    from_receivable: bool = False,
) -> None:
    """Check account references against the transaction kind.

    transfer: from and to; income: only to; expense: only from.
    With from_receivable the source is the virtual card-receivable account,
    stored as a NULL from_account_id. Only card settlement sets it.
    """
    details = {
        "kind": kind.value,
        "from_account_id": str(from_account_id) if from_account_id else None,
        "to_account_id": str(to_account_id) if to_account_id else None,
    }

    if kind is TransactionKind.TRANSFER:
        if to_account_id is None:
            raise InvalidTransactionShape("Transfer requires to_account", details)
        if from_account_id is None and not from_receivable:
            raise InvalidTransactionShape("Transfer requires from_account", details)
        if from_account_id is not None and from_account_id == to_account_id:
            raise InvalidTransactionShape("Transfer accounts must differ", details)
    elif kind is TransactionKind.INCOME:
        if to_account_id is None or from_account_id is not None:
            raise InvalidTransactionShape("Income requires only to_account", details)
    elif kind is TransactionKind.EXPENSE:
        if to_account_id is not None:
            raise InvalidTransactionShape("Expense requires only from_account", details)
        if from_account_id is None and not from_receivable:
            raise InvalidTransactionShape("Expense requires from_account", details)


def _parse_amount(amount: Decimal | int | str) -> Decimal:
    try:
        value = to_money(amount)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"amount": str(amount)}) from exc
    if value <= ZERO:
        raise NonPositiveAmount(amount)
    return value


async def _lock_accounts(db: AsyncSession, account_ids: Iterable[UUID]) -> dict[UUID, Account]:
    """Load accounts FOR UPDATE, refreshing any copies already in the session."""
    ids = {account_id for account_id in account_ids if account_id is not None}
    if not ids:
        return {}

    stmt = (
        select(Account)
        .where(Account.id.in_(ids))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    accounts = {account.id: account for account in result.scalars().all()}

    missing = ids - accounts.keys()
    if missing:
        raise UnknownAccount(sorted(str(m) for m in missing)[0])
    return accounts


def _kind_deltas(account: Account | None, delta: Decimal) -> tuple[Decimal, Decimal]:
    if account is None:
        return ZERO, ZERO
    if account.kind == AccountKind.CASH.value:
        return delta, ZERO
    return ZERO, delta


async def _apply_to_daily_balance(
    db: AsyncSession, day: date, cash_delta: Decimal, bank_delta: Decimal
) -> None:
    """Drift the unclosed DailyBalance row for `day`, if one exists."""
    if cash_delta == ZERO and bank_delta == ZERO:
        return

    stmt = (
        select(DailyBalance)
        .where(DailyBalance.balance_date == day, DailyBalance.is_closed.is_(False))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = (await db.execute(stmt)).scalar_one_or_none()
    if row is None:
        return

    if cash_delta != ZERO:
        row.cash_closing = row.effective_cash_closing + cash_delta
    if bank_delta != ZERO:
        row.bank_closing = row.effective_bank_closing + bank_delta


async def post(
    db: AsyncSession,
    *,
    kind: TransactionKind | str,
    amount: Decimal | int | str,
    category: str,
    description: str | None = None,
    from_account_id: UUID | None = None,
    to_account_id: UUID | None = None,
    reference_kind: str | None = None,
    reference_id: str | None = None,
    occurred_at: datetime | None = None,
    created_by: str | None = None,
    from_receivable: bool = False,
) -> LedgerTransaction:
    """Record one transaction and apply its effect to account balances.

    from_receivable lets a transfer or expense omit from_account_id; the
    HTTP posting path never sets it.

    Raises:
        NonPositiveAmount: amount <= 0
        InvalidTransactionShape: account references don't match kind
        UnknownAccount: a referenced account doesn't exist
    """
    kind = TransactionKind(kind)
    value = _parse_amount(amount)
    validate_shape(kind, from_account_id, to_account_id, from_receivable)

    accounts = await _lock_accounts(db, (from_account_id, to_account_id))
    from_account = accounts.get(from_account_id) if from_account_id else None
    to_account = accounts.get(to_account_id) if to_account_id else None

    when = to_local_naive(occurred_at) if occurred_at else now_local_naive()
    txn = LedgerTransaction(
        occurred_at=when,
        kind=kind.value,
        category=category,
        description=description,
        amount=value,
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        reference_kind=reference_kind,
        reference_id=str(reference_id) if reference_id is not None else None,
        created_by=created_by,
    )
    db.add(txn)

    cash_delta, bank_delta = ZERO, ZERO
    if from_account is not None:
        from_account.current_balance = from_account.current_balance - value
        c, b = _kind_deltas(from_account, -value)
        cash_delta, bank_delta = cash_delta + c, bank_delta + b
    if to_account is not None:
        to_account.current_balance = to_account.current_balance + value
        c, b = _kind_deltas(to_account, value)
        cash_delta, bank_delta = cash_delta + c, bank_delta + b

    await _apply_to_daily_balance(db, when.date(), cash_delta, bank_delta)
    await db.flush()

    logger.info(
        "ledger.posted",
        transaction_id=str(txn.id),
        kind=kind.value,
        category=category,
        amount=str(value),
        from_account_id=str(from_account_id) if from_account_id else None,
        to_account_id=str(to_account_id) if to_account_id else None,
    )
    return txn


async def get_account(db: AsyncSession, account_id: UUID) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        raise UnknownAccount(account_id)
    return account


async def current_balance(db: AsyncSession, account_id: UUID) -> Decimal:
    """Live balance as stored; post() keeps it consistent."""
    account = await get_account(db, account_id)
    return account.current_balance


async def list_accounts(db: AsyncSession, kind: AccountKind | None = None) -> list[Account]:
    stmt = select(Account).order_by(Account.kind, Account.name)
    if kind is not None:
        stmt = stmt.where(Account.kind == kind.value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def sum_by_kind(accounts: Iterable[Account]) -> tuple[Decimal, Decimal]:
    """(cash, bank) sums of current_balance."""
    cash, bank = ZERO, ZERO
    for account in accounts:
        if account.kind == AccountKind.CASH.value:
            cash += account.current_balance
        elif account.kind == AccountKind.BANK.value:
            bank += account.current_balance
    return cash, bank


async def aggregate_balances(db: AsyncSession) -> tuple[Decimal, Decimal]:
    return sum_by_kind(await list_accounts(db))


async def create_account(
    db: AsyncSession,
    name: str,
    kind: AccountKind | str,
    opening_balance: Decimal | int | str = ZERO,
    created_by: str | None = None,
) -> Account:
    """Register an account. A non-zero starting balance is posted, not written."""
    kind = AccountKind(kind)
    existing = await db.execute(select(Account).where(Account.name == name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Account '{name}' already exists", details={"name": name})

    account = Account(name=name, kind=kind.value, current_balance=ZERO)
    db.add(account)
    await db.flush()

    opening = to_money(opening_balance)
    if opening > ZERO:
        await post(
            db,
            kind=TransactionKind.INCOME,
            amount=opening,
            category=CATEGORY_OPENING_BALANCE,
            description=f"Opening balance for {name}",
            to_account_id=account.id,
            created_by=created_by,
        )
    elif opening < ZERO:
        await post(
            db,
            kind=TransactionKind.EXPENSE,
            amount=-opening,
            category=CATEGORY_OPENING_BALANCE,
            description=f"Opening overdraft for {name}",
            from_account_id=account.id,
            created_by=created_by,
        )

    logger.info("account.created", account_id=str(account.id), kind=kind.value)
    return account


async def adjust_balance(
    db: AsyncSession,
    account_id: UUID,
    target_balance: Decimal | int | str,
    reason: str,
    performed_by: str | None = None,
) -> LedgerTransaction | None:
    """Bring an account to a counted balance by posting the difference.

    Returns None when the account already holds the target balance.
    """
    account = await get_account(db, account_id)
    target = to_money(target_balance)
    delta = target - account.current_balance
    if delta == ZERO:
        return None

    if delta > ZERO:
        txn = await post(
            db,
            kind=TransactionKind.INCOME,
            amount=delta,
            category=CATEGORY_MANUAL_ADJUSTMENT,
            description=reason,
            to_account_id=account.id,
            created_by=performed_by,
        )
    else:
        txn = await post(
            db,
            kind=TransactionKind.EXPENSE,
            amount=-delta,
            category=CATEGORY_MANUAL_ADJUSTMENT,
            description=reason,
            from_account_id=account.id,
            created_by=performed_by,
        )

    await log_event(
        db,
        AuditEventType.BALANCE_ADJUSTED,
        "Account balance adjusted",
        performed_by,
        related_record_type="accounts",
        related_record_id=account.id,
        details={"target": target, "delta": delta, "reason": reason},
    )
    return txn


async def deposit_cash_to_bank(
    db: AsyncSession,
    cash_account_id: UUID,
    bank_account_id: UUID,
    amount: Decimal | int | str,
    description: str,
    performed_by: str | None = None,
) -> LedgerTransaction:
    """Move drawer cash into a bank account."""
    cash_account = await get_account(db, cash_account_id)
    bank_account = await get_account(db, bank_account_id)
    if cash_account.kind != AccountKind.CASH.value or bank_account.kind != AccountKind.BANK.value:
        raise InvalidTransactionShape(
            "Deposit must go from a cash account to a bank account",
            {"from_kind": cash_account.kind, "to_kind": bank_account.kind},
        )

    return await post(
        db,
        kind=TransactionKind.TRANSFER,
        amount=amount,
        category=CATEGORY_BANK_DEPOSIT,
        description=description,
        from_account_id=cash_account.id,
        to_account_id=bank_account.id,
        created_by=performed_by,
    )


async def add_funds(
    db: AsyncSession,
    account_id: UUID,
    amount: Decimal | int | str,
    description: str,
    performed_by: str | None = None,
) -> LedgerTransaction:
    """Add cash or bank funds with a written reason."""
    return await post(
        db,
        kind=TransactionKind.INCOME,
        amount=amount,
        category=CATEGORY_MANUAL_ADJUSTMENT,
        description=description,
        to_account_id=account_id,
        created_by=performed_by,
    )

"""Balance Reconstructor: running balances without stored snapshots.

Starting from today's aggregate cash/bank balances, walk the transaction log
newest-first. Each transaction is stamped with the running balance, then its
effect is undone to get the balance that held just before it, which is the
"after" balance of the next (older) transaction.

Correct only while every balance change is a posted, unedited transaction
(see fuelledger.core.consistency).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.ledger import list_accounts, sum_by_kind
from fuelledger.models.enums import AccountKind, TransactionKind
from fuelledger.models.transaction import LedgerTransaction
from fuelledger.models.transaction_schemas import MovementFilters
from fuelledger.utils.datetime import day_bounds

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class RunningBalance:
    transaction: LedgerTransaction
    cash: Decimal
    bank: Decimal

    @property
    def total(self) -> Decimal:
        return self.cash + self.bank


def transaction_effect(
    txn: LedgerTransaction, account_kinds: Mapping[UUID, str]
) -> tuple[Decimal, Decimal]:
    """Forward (cash, bank) effect of one transaction.

    Accounts missing from account_kinds (the virtual card receivable)
    contribute nothing.
    """
    cash, bank = ZERO, ZERO
    amount = txn.amount

    def shift(account_id: UUID | None, delta: Decimal) -> None:
        nonlocal cash, bank
        kind = account_kinds.get(account_id) if account_id is not None else None
        if kind == AccountKind.CASH.value:
            cash += delta
        elif kind == AccountKind.BANK.value:
            bank += delta

    if txn.kind == TransactionKind.TRANSFER.value:
        shift(txn.from_account_id, -amount)
        shift(txn.to_account_id, amount)
    elif txn.kind == TransactionKind.INCOME.value:
        shift(txn.to_account_id, amount)
    elif txn.kind == TransactionKind.EXPENSE.value:
        shift(txn.from_account_id, -amount)
    return cash, bank


def reconstruct_running_balances(
    transactions: Sequence[LedgerTransaction],
    account_kinds: Mapping[UUID, str],
    current_cash: Decimal,
    current_bank: Decimal,
) -> list[RunningBalance]:
    """
    Compute the balance in effect immediately after each transaction.

    Args:
        transactions: Newest first
        account_kinds: account id -> "cash" | "bank"
        current_cash: Sum of current_balance over cash accounts
        current_bank: Sum of current_balance over bank accounts

    Returns:
        One RunningBalance per input transaction, same order. The first
        entry always equals (current_cash, current_bank).
    """
    running_cash, running_bank = current_cash, current_bank
    rows: list[RunningBalance] = []

    for txn in transactions:
        rows.append(RunningBalance(transaction=txn, cash=running_cash, bank=running_bank))
        cash_effect, bank_effect = transaction_effect(txn, account_kinds)
        running_cash -= cash_effect
        running_bank -= bank_effect

    return rows


def opening_state(
    rows: Sequence[RunningBalance], account_kinds: Mapping[UUID, str]
) -> tuple[Decimal, Decimal]:
    """Balance that held just before the oldest reconstructed transaction."""
    if not rows:
        raise ValueError("No reconstructed rows")
    oldest = rows[-1]
    cash_effect, bank_effect = transaction_effect(oldest.transaction, account_kinds)
    return oldest.cash - cash_effect, oldest.bank - bank_effect


def replay_forward(
    opening_cash: Decimal,
    opening_bank: Decimal,
    transactions: Sequence[LedgerTransaction],
    account_kinds: Mapping[UUID, str],
) -> tuple[Decimal, Decimal]:
    """Apply transactions (newest first, as stored) oldest to newest."""
    cash, bank = opening_cash, opening_bank
    for txn in reversed(transactions):
        cash_effect, bank_effect = transaction_effect(txn, account_kinds)
        cash += cash_effect
        bank += bank_effect
    return cash, bank


def _history_query(date_from: date | None):
    """Everything newer than date_from, newest first. Later transactions are
    always needed: they must be undone to reach older balances."""
    stmt = select(LedgerTransaction).order_by(
        LedgerTransaction.occurred_at.desc(),
        LedgerTransaction.created_at.desc(),
    )
    if date_from is not None:
        start, _ = day_bounds(date_from)
        stmt = stmt.where(LedgerTransaction.occurred_at >= start)
    return stmt


def _matches_search(txn: LedgerTransaction, query: str) -> bool:
    q = query.lower()
    return q in (txn.description or "").lower() or q in (txn.category or "").lower()


async def running_balance_view(
    db: AsyncSession, filters: MovementFilters | None = None
) -> list[RunningBalance]:
    """Load the newest transactions with their running balances.

    Balances and the transaction list are read in the same session
    transaction so the reconstruction foots to the balances it starts from.
    Filtering happens after reconstruction: a filtered row still shows the
    balance of the whole ledger at that point.
    """
    filters = filters or MovementFilters()

    accounts = await list_accounts(db)
    current_cash, current_bank = sum_by_kind(accounts)
    account_kinds = {account.id: account.kind for account in accounts}

    result = await db.execute(_history_query(filters.date_from))
    history = list(result.scalars().all())

    rows = reconstruct_running_balances(history, account_kinds, current_cash, current_bank)

    selected: list[RunningBalance] = []
    for row in rows:
        txn = row.transaction
        if filters.kind is not None and txn.kind != filters.kind.value:
            continue
        if filters.account_id is not None and filters.account_id not in (
            txn.from_account_id,
            txn.to_account_id,
        ):
            continue
        if filters.date_to is not None and txn.occurred_at.date() > filters.date_to:
            continue
        if filters.search and not _matches_search(txn, filters.search.strip()):
            continue
        selected.append(row)
        if len(selected) >= filters.limit:
            break
    return selected

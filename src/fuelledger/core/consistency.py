# File: src/fuelledger/core/consistency.py
"""Ledger consistency check.

Replays the whole transaction log from zero and compares the result with
the stored Account.current_balance values. Running balances shown by the
reconstructor are only trustworthy while this check passes.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.errors import LedgerConsistencyError
from fuelledger.core.ledger import list_accounts, sum_by_kind
from fuelledger.core.logging import get_logger
from fuelledger.core.sentry import report_consistency_alert
from fuelledger.models.transaction import LedgerTransaction

logger = get_logger(__name__)

ZERO = Decimal("0.00")


@dataclass
class AccountDrift:
    account_id: UUID
    name: str
    stored: Decimal
    replayed: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored - self.replayed


@dataclass
class ConsistencyReport:
    stored_cash: Decimal
    stored_bank: Decimal
    replayed_cash: Decimal
    replayed_bank: Decimal
    transaction_count: int
    drifts: list[AccountDrift] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.drifts

    def as_dict(self) -> dict:
        return {
            "consistent": self.is_consistent,
            "stored_cash": str(self.stored_cash),
            "stored_bank": str(self.stored_bank),
            "replayed_cash": str(self.replayed_cash),
            "replayed_bank": str(self.replayed_bank),
            "transaction_count": self.transaction_count,
            "drifts": [
                {
                    "account_id": str(d.account_id),
                    "name": d.name,
                    "stored": str(d.stored),
                    "replayed": str(d.replayed),
                    "difference": str(d.difference),
                }
                for d in self.drifts
            ],
        }


async def _sums_by_account(db: AsyncSession, column) -> dict[UUID, Decimal]:
    result = await db.execute(
        select(column, func.sum(LedgerTransaction.amount))
        .where(column.is_not(None))
        .group_by(column)
    )
    return {account_id: Decimal(str(total)) for account_id, total in result.all()}


async def check_consistency(db: AsyncSession) -> ConsistencyReport:
    """Per account: stored balance == sum(inflows) - sum(outflows).

    Entries against the virtual card receivable (NULL account) are skipped.
    """
    accounts = await list_accounts(db)
    inflows = await _sums_by_account(db, LedgerTransaction.to_account_id)
    outflows = await _sums_by_account(db, LedgerTransaction.from_account_id)
    count = (await db.execute(select(func.count(LedgerTransaction.id)))).scalar_one()

    stored_cash, stored_bank = sum_by_kind(accounts)
    replayed_cash, replayed_bank = ZERO, ZERO
    drifts: list[AccountDrift] = []

    for account in accounts:
        replayed = (inflows.get(account.id, ZERO) - outflows.get(account.id, ZERO)).quantize(
            Decimal("0.01")
        )
        if account.is_cash:
            replayed_cash += replayed
        else:
            replayed_bank += replayed
        if replayed != account.current_balance:
            drifts.append(
                AccountDrift(
                    account_id=account.id,
                    name=account.name,
                    stored=account.current_balance,
                    replayed=replayed,
                )
            )

    return ConsistencyReport(
        stored_cash=stored_cash,
        stored_bank=stored_bank,
        replayed_cash=replayed_cash,
        replayed_bank=replayed_bank,
        transaction_count=count,
        drifts=drifts,
    )


async def assert_consistent(db: AsyncSession) -> ConsistencyReport:
    """Run the check; log, alert and raise on drift."""
    report = await check_consistency(db)
    if report.is_consistent:
        logger.info("consistency.ok", transactions=report.transaction_count)
        return report

    details = report.as_dict()
    logger.error("consistency.drift", **details)
    report_consistency_alert("Ledger balances drifted from the transaction log", details)
    raise LedgerConsistencyError(
        f"{len(report.drifts)} account(s) disagree with the transaction log",
        details=details,
    )

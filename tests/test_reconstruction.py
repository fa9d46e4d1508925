# File: tests/test_reconstruction.py
"""Tests for running balance reconstruction."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from fuelledger.core import ledger
from fuelledger.core.reconstruction import (
    opening_state,
    reconstruct_running_balances,
    replay_forward,
    running_balance_view,
    transaction_effect,
)
from fuelledger.models import LedgerTransaction, TransactionKind
from fuelledger.models.transaction_schemas import MovementFilters
from tests.factories import AccountFactory

CASH_ID = uuid4()
BANK_ID = uuid4()
KINDS = {CASH_ID: "cash", BANK_ID: "bank"}


def _txn(kind: str, amount: str, from_id=None, to_id=None) -> LedgerTransaction:
    return LedgerTransaction(
        id=uuid4(),
        kind=kind,
        category="test",
        amount=Decimal(amount),
        from_account_id=from_id,
        to_account_id=to_id,
    )


class TestTransactionEffect:
    def test_income_to_cash(self):
        assert transaction_effect(_txn("income", "100", to_id=CASH_ID), KINDS) == (
            Decimal("100"),
            Decimal("0.00"),
        )

    def test_expense_from_bank(self):
        assert transaction_effect(_txn("expense", "40", from_id=BANK_ID), KINDS) == (
            Decimal("0.00"),
            Decimal("-40"),
        )

    def test_transfer_cash_to_bank(self):
        assert transaction_effect(
            _txn("transfer", "300", from_id=CASH_ID, to_id=BANK_ID), KINDS
        ) == (Decimal("-300"), Decimal("300"))

    def test_receivable_side_contributes_nothing(self):
        assert transaction_effect(_txn("transfer", "980", to_id=BANK_ID), KINDS) == (
            Decimal("0.00"),
            Decimal("980"),
        )
        assert transaction_effect(_txn("expense", "20"), KINDS) == (
            Decimal("0.00"),
            Decimal("0.00"),
        )


class TestReconstructRunningBalances:
    """Pure reconstruction over newest-first transactions."""

    def test_empty_input(self):
        assert reconstruct_running_balances([], KINDS, Decimal("10"), Decimal("20")) == []

    def test_first_row_equals_current_balances(self):
        txns = [
            _txn("expense", "1200", from_id=CASH_ID),
            _txn("income", "5000", to_id=CASH_ID),
        ]

        rows = reconstruct_running_balances(txns, KINDS, Decimal("3800"), Decimal("0"))

        assert rows[0].cash == Decimal("3800")
        assert rows[0].total == Decimal("3800")
        # Before the expense the drawer held 5000
        assert rows[1].cash == Decimal("5000")

    def test_same_length_and_order(self):
        txns = [
            _txn("transfer", "300", from_id=CASH_ID, to_id=BANK_ID),
            _txn("income", "500", to_id=BANK_ID),
            _txn("income", "700", to_id=CASH_ID),
        ]

        rows = reconstruct_running_balances(txns, KINDS, Decimal("400"), Decimal("800"))

        assert [r.transaction for r in rows] == txns
        assert [(r.cash, r.bank) for r in rows] == [
            (Decimal("400"), Decimal("800")),
            (Decimal("700"), Decimal("500")),
            (Decimal("700"), Decimal("0")),
        ]

    def test_round_trip_replays_to_current(self):
        txns = [
            _txn("expense", "125.50", from_id=BANK_ID),
            _txn("transfer", "2000", from_id=CASH_ID, to_id=BANK_ID),
            _txn("income", "980", to_id=BANK_ID),
            _txn("expense", "75", from_id=CASH_ID),
            _txn("income", "4000", to_id=CASH_ID),
        ]
        current_cash, current_bank = Decimal("1925.00"), Decimal("2854.50")

        rows = reconstruct_running_balances(txns, KINDS, current_cash, current_bank)
        start_cash, start_bank = opening_state(rows, KINDS)

        assert replay_forward(start_cash, start_bank, txns, KINDS) == (current_cash, current_bank)

    def test_opening_state_requires_rows(self):
        with pytest.raises(ValueError):
            opening_state([], KINDS)


class TestRunningBalanceView:
    """Reconstruction against the database."""

    async def test_view_matches_worked_example(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash")
        base = datetime(2026, 3, 1, 9, 0)
        await ledger.post(
            db_session,
            kind=TransactionKind.INCOME,
            amount=Decimal("5000"),
            category="fuel_sale",
            to_account_id=drawer.id,
            occurred_at=base,
        )
        await ledger.post(
            db_session,
            kind=TransactionKind.EXPENSE,
            amount=Decimal("1200"),
            category="generator_fuel",
            description="Diesel for generator",
            from_account_id=drawer.id,
            occurred_at=base + timedelta(hours=2),
        )

        rows = await running_balance_view(db_session)

        assert [r.transaction.amount for r in rows] == [Decimal("1200.00"), Decimal("5000.00")]
        assert rows[0].cash == Decimal("3800.00")
        assert rows[1].cash == Decimal("5000.00")

    async def test_filters_keep_whole_ledger_balances(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash")
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        base = datetime(2026, 3, 1, 9, 0)
        await ledger.post(
            db_session,
            kind=TransactionKind.INCOME,
            amount=Decimal("1000"),
            category="fuel_sale",
            to_account_id=drawer.id,
            occurred_at=base,
        )
        await ledger.post(
            db_session,
            kind=TransactionKind.INCOME,
            amount=Decimal("400"),
            category="rent",
            to_account_id=bank.id,
            occurred_at=base + timedelta(hours=1),
        )
        await ledger.post(
            db_session,
            kind=TransactionKind.EXPENSE,
            amount=Decimal("100"),
            category="repairs",
            from_account_id=drawer.id,
            occurred_at=base + timedelta(hours=2),
        )

        rows = await running_balance_view(
            db_session, MovementFilters(account_id=bank.id)
        )

        assert len(rows) == 1
        # Balance after the bank income still includes the earlier cash sale
        assert rows[0].cash == Decimal("1000.00")
        assert rows[0].bank == Decimal("400.00")

    async def test_search_date_and_limit_filters(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash")
        for day in range(1, 6):
            await ledger.post(
                db_session,
                kind=TransactionKind.INCOME,
                amount=Decimal("100"),
                category="fuel_sale",
                description=f"Pump sales day {day}",
                to_account_id=drawer.id,
                occurred_at=datetime(2026, 3, day, 20, 0),
            )

        by_search = await running_balance_view(db_session, MovementFilters(search="day 3"))
        assert [r.cash for r in by_search] == [Decimal("300.00")]

        by_dates = await running_balance_view(
            db_session,
            MovementFilters(date_from=datetime(2026, 3, 2).date(), date_to=datetime(2026, 3, 3).date()),
        )
        assert [r.cash for r in by_dates] == [Decimal("300.00"), Decimal("200.00")]

        limited = await running_balance_view(db_session, MovementFilters(limit=2))
        assert [r.cash for r in limited] == [Decimal("500.00"), Decimal("400.00")]

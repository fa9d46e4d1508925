# File: tests/test_consistency.py
"""Tests for the replay-from-zero ledger consistency check."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from fuelledger.core import card_settlement, ledger
from fuelledger.core.consistency import assert_consistent, check_consistency
from fuelledger.core.errors import LedgerConsistencyError
from fuelledger.models import TransactionKind
from tests.factories import AccountFactory, CardTypeFactory


class TestCheckConsistency:
    async def test_empty_ledger_is_consistent(self, db_session):
        report = await check_consistency(db_session)

        assert report.is_consistent
        assert report.transaction_count == 0

    async def test_posted_activity_foots(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash", Decimal("5000"))
        bank = await AccountFactory.create(db_session, "Bank", "bank", Decimal("50000"))
        await ledger.post(
            db_session,
            kind=TransactionKind.EXPENSE,
            amount=Decimal("1200"),
            category="generator_fuel",
            from_account_id=drawer.id,
        )
        await ledger.deposit_cash_to_bank(db_session, drawer.id, bank.id, Decimal("3000"), "Deposit")
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))
        payment = await card_settlement.record_sale(db_session, visa.id, Decimal("10000"))
        await card_settlement.settle(db_session, payment.id, bank.id)

        report = await check_consistency(db_session)

        assert report.is_consistent
        assert report.stored_cash == report.replayed_cash == Decimal("800.00")
        assert report.stored_bank == report.replayed_bank == Decimal("62800.00")

    async def test_direct_balance_write_is_flagged(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash", Decimal("5000"))
        drawer.current_balance = Decimal("5100.00")
        await db_session.flush()

        report = await check_consistency(db_session)

        assert not report.is_consistent
        assert len(report.drifts) == 1
        assert report.drifts[0].difference == Decimal("100.00")


class TestAssertConsistent:
    async def test_drift_raises_and_alerts(self, db_session):
        drawer = await AccountFactory.create(db_session, "Drawer", "cash", Decimal("5000"))
        drawer.current_balance = Decimal("4000.00")
        await db_session.flush()

        with patch("fuelledger.core.consistency.report_consistency_alert") as alert:
            with pytest.raises(LedgerConsistencyError) as exc_info:
                await assert_consistent(db_session)

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["drifts"][0]["difference"] == "-1000.00"
        alert.assert_called_once()

    async def test_consistent_returns_report(self, db_session):
        await AccountFactory.create(db_session, "Drawer", "cash", Decimal("5000"))

        report = await assert_consistent(db_session)

        assert report.transaction_count == 1

# File: tests/test_card_settlement.py
"""Tests for card sales on hold and their settlement into the ledger."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from fuelledger.core import card_settlement, ledger
from fuelledger.core.errors import (
    AlreadySettled,
    ConflictError,
    DestinationRequired,
    NonPositiveAmount,
    NotFoundError,
    UnknownAccount,
    ValidationError,
)
from fuelledger.models import CardPaymentStatus, LedgerTransaction
from fuelledger.models.audit_log import AuditLog
from tests.factories import AccountFactory, CardPaymentFactory, CardTypeFactory


class TestRecordSale:
    async def test_tax_split_captured(self, db_session):
        """10000 @ 2% -> tax 200, net 9800."""
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))

        payment = await card_settlement.record_sale(db_session, visa.id, Decimal("10000"))

        assert payment.tax_percentage == Decimal("2.00")
        assert payment.tax_amount == Decimal("200.00")
        assert payment.net_amount == Decimal("9800.00")
        assert payment.status == CardPaymentStatus.HOLD.value
        assert payment.card_type.name == "Visa"

    async def test_tax_rounded_half_up(self, db_session):
        card = await CardTypeFactory.create(db_session, "UnionPay", Decimal("1.50"))

        payment = await card_settlement.record_sale(db_session, card.id, Decimal("333"))

        # 333 * 1.5% = 4.995
        assert payment.tax_amount == Decimal("5.00")
        assert payment.net_amount == Decimal("328.00")

    async def test_rate_change_does_not_touch_existing_payment(self, db_session):
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))
        payment = await card_settlement.record_sale(db_session, visa.id, Decimal("10000"))

        await card_settlement.update_card_type(db_session, visa.id, tax_percentage=Decimal("3.00"))

        await db_session.refresh(payment)
        assert payment.tax_amount == Decimal("200.00")
        later = await card_settlement.record_sale(db_session, visa.id, Decimal("10000"))
        assert later.tax_amount == Decimal("300.00")

    async def test_unknown_card_type(self, db_session):
        with pytest.raises(NotFoundError):
            await card_settlement.record_sale(db_session, uuid4(), Decimal("100"))

    async def test_inactive_card_type(self, db_session):
        card = await CardTypeFactory.create(db_session, "Amex", is_active=False)

        with pytest.raises(ValidationError) as exc_info:
            await card_settlement.record_sale(db_session, card.id, Decimal("100"))

        assert exc_info.value.code == "CARD_TYPE_INACTIVE"

    async def test_sale_leaving_nothing_after_tax_rejected(self, db_session):
        card = await CardTypeFactory.create(db_session, "Promo", Decimal("50.00"))

        # 0.01 * 50% = 0.005, rounds up to the whole cent
        with pytest.raises(ValidationError) as exc_info:
            await card_settlement.record_sale(db_session, card.id, Decimal("0.01"))

        assert exc_info.value.code == "NON_POSITIVE_NET"
        assert await card_settlement.list_payments(db_session) == []

    async def test_non_positive_amount(self, db_session):
        card = await CardTypeFactory.create(db_session, "Visa")

        with pytest.raises(NonPositiveAmount):
            await card_settlement.record_sale(db_session, card.id, Decimal("0"))


class TestSettle:
    async def test_worked_example(self, db_session):
        """Bank 50000 + settle 10000 @ 2% -> 59800, two transactions."""
        bank = await AccountFactory.create(db_session, "Bank", "bank", Decimal("50000"))
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))
        payment = await card_settlement.record_sale(db_session, visa.id, Decimal("10000"))

        settled = await card_settlement.settle(
            db_session, payment.id, bank.id, note="Batch 42", performed_by="manager"
        )

        assert settled.status == CardPaymentStatus.RECEIVED.value
        assert settled.received_at is not None
        assert settled.settlement_account_id == bank.id
        assert settled.notes == "Batch 42"
        assert await ledger.current_balance(db_session, bank.id) == Decimal("59800.00")

        result = await db_session.execute(
            select(LedgerTransaction).where(LedgerTransaction.reference_id == str(payment.id))
        )
        txns = {t.category: t for t in result.scalars().all()}
        assert set(txns) == {"card_settlement", "card_tax"}
        assert txns["card_settlement"].kind == "transfer"
        assert txns["card_settlement"].amount == Decimal("9800.00")
        assert txns["card_settlement"].from_account_id is None
        assert txns["card_settlement"].to_account_id == bank.id
        assert txns["card_tax"].kind == "expense"
        assert txns["card_tax"].amount == Decimal("200.00")
        assert all(t.reference_kind == "card_payments" for t in txns.values())

    async def test_zero_tax_posts_single_transaction(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        debit = await CardTypeFactory.create(db_session, "Debit", Decimal("0.00"))
        payment = await card_settlement.record_sale(db_session, debit.id, Decimal("1500"))

        await card_settlement.settle(db_session, payment.id, bank.id)

        result = await db_session.execute(
            select(LedgerTransaction).where(LedgerTransaction.reference_id == str(payment.id))
        )
        assert [t.category for t in result.scalars().all()] == ["card_settlement"]
        assert await ledger.current_balance(db_session, bank.id) == Decimal("1500.00")

    async def test_second_settle_rejected(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))
        payment = await CardPaymentFactory.create(db_session, visa, Decimal("10000"))

        await card_settlement.settle(db_session, payment.id, bank.id)
        with pytest.raises(AlreadySettled) as exc_info:
            await card_settlement.settle(db_session, payment.id, bank.id)

        assert exc_info.value.status_code == 409
        assert await ledger.current_balance(db_session, bank.id) == Decimal("9800.00")
        rows = await db_session.execute(
            select(func.count(LedgerTransaction.id)).where(
                LedgerTransaction.reference_id == str(payment.id)
            )
        )
        assert rows.scalar_one() == 2

    async def test_destination_required(self, db_session):
        visa = await CardTypeFactory.create(db_session, "Visa")
        payment = await CardPaymentFactory.create(db_session, visa)

        with pytest.raises(DestinationRequired):
            await card_settlement.settle(db_session, payment.id, None)

        await db_session.refresh(payment)
        assert payment.status == CardPaymentStatus.HOLD.value

    async def test_unknown_destination(self, db_session):
        visa = await CardTypeFactory.create(db_session, "Visa")
        payment = await CardPaymentFactory.create(db_session, visa)

        with pytest.raises(UnknownAccount):
            await card_settlement.settle(db_session, payment.id, uuid4())

    async def test_unknown_payment(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")

        with pytest.raises(NotFoundError):
            await card_settlement.settle(db_session, uuid4(), bank.id)

    async def test_callback_runs_after_settlement(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        visa = await CardTypeFactory.create(db_session, "Visa")
        payment = await CardPaymentFactory.create(db_session, visa, Decimal("500"))
        seen = []

        async def mark_sale_paid(db, settled_payment):
            seen.append((settled_payment.id, settled_payment.status))

        await card_settlement.settle(db_session, payment.id, bank.id, on_settled=mark_sale_paid)

        assert seen == [(payment.id, CardPaymentStatus.RECEIVED.value)]

    async def test_settled_is_audited(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        visa = await CardTypeFactory.create(db_session, "Visa")
        payment = await CardPaymentFactory.create(db_session, visa)

        await card_settlement.settle(db_session, payment.id, bank.id, performed_by="manager")

        events = (await db_session.execute(select(AuditLog))).scalars().all()
        assert [e.event_type for e in events] == ["CARD_SETTLED"]
        assert events[0].related_record_id == str(payment.id)


class TestCardTypes:
    async def test_create_and_list(self, db_session):
        await card_settlement.create_card_type(db_session, "Visa", Decimal("2.00"))
        await card_settlement.create_card_type(db_session, "Amex", Decimal("3.50"))

        names = [c.name for c in await card_settlement.list_card_types(db_session)]

        assert names == ["Amex", "Visa"]

    async def test_duplicate_name_rejected(self, db_session):
        await card_settlement.create_card_type(db_session, "Visa")

        with pytest.raises(ConflictError):
            await card_settlement.create_card_type(db_session, "Visa")

    @pytest.mark.parametrize("rate", [Decimal("100"), Decimal("120.50"), Decimal("-1")])
    async def test_rate_outside_range_rejected(self, db_session, rate):
        with pytest.raises(ValidationError) as exc_info:
            await card_settlement.create_card_type(db_session, "Promo", rate)

        assert exc_info.value.code == "INVALID_TAX_PERCENTAGE"

    async def test_rerate_to_full_tax_rejected(self, db_session):
        visa = await card_settlement.create_card_type(db_session, "Visa", Decimal("2.00"))

        with pytest.raises(ValidationError):
            await card_settlement.update_card_type(db_session, visa.id, tax_percentage=Decimal("100"))

        assert visa.tax_percentage == Decimal("2.00")

    async def test_toggle_hides_from_active_list(self, db_session):
        visa = await card_settlement.create_card_type(db_session, "Visa")

        toggled = await card_settlement.toggle_card_type(db_session, visa.id)

        assert toggled.is_active is False
        assert await card_settlement.list_card_types(db_session, active_only=True) == []


class TestListing:
    async def test_summary_and_status_lists(self, db_session):
        bank = await AccountFactory.create(db_session, "Bank", "bank")
        visa = await CardTypeFactory.create(db_session, "Visa", Decimal("2.00"))
        settled = await CardPaymentFactory.create(db_session, visa, Decimal("10000"))
        await CardPaymentFactory.create(db_session, visa, Decimal("5000"))
        await card_settlement.settle(db_session, settled.id, bank.id)

        summary = await card_settlement.settlement_summary(db_session)
        held = await card_settlement.list_payments(db_session, CardPaymentStatus.HOLD)
        received = await card_settlement.list_payments(db_session, CardPaymentStatus.RECEIVED)

        assert summary["received_net_total"] == Decimal("9800.00")
        assert summary["received_tax_total"] == Decimal("200.00")
        assert summary["hold_gross_total"] == Decimal("5000.00")
        assert summary["hold_net_total"] == Decimal("4900.00")
        assert summary["hold_count"] == 1
        assert [p.amount for p in held] == [Decimal("5000.00")]
        assert [p.id for p in received] == [settled.id]

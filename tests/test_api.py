# File: tests/test_api.py
"""HTTP tests for the ledger, day and card endpoints."""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from httpx import AsyncClient
from sqlalchemy import func, select

from fuelledger.core import card_settlement
from fuelledger.core.errors import ConflictError
from fuelledger.models import Account, CardPayment, CardPaymentStatus, LedgerTransaction
from fuelledger.utils.datetime import today_local
from tests.conftest import TEST_USER_ID
from tests.factories import AccountFactory, CardTypeFactory, DailyOperationFactory


class TestAccountsAPI:
    async def test_create_account_with_opening_balance(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/accounts",
            json={"name": "Main Drawer", "kind": "cash", "opening_balance": "5000.00"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Main Drawer"
        assert data["kind"] == "cash"
        assert Decimal(data["current_balance"]) == Decimal("5000.00")

    async def test_duplicate_account_conflict(self, client: AsyncClient):
        await client.post("/api/v1/accounts", json={"name": "Drawer", "kind": "cash"})

        response = await client.post("/api/v1/accounts", json={"name": "Drawer", "kind": "cash"})

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    async def test_aggregate_balances(self, client: AsyncClient):
        await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("1500"))
        await AccountFactory.create(client.db_session, "Bank", "bank", Decimal("2500"))

        response = await client.get("/api/v1/accounts/balances")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["cash"]) == Decimal("1500")
        assert Decimal(data["bank"]) == Decimal("2500")
        assert Decimal(data["total"]) == Decimal("4000")

    async def test_unknown_account_404(self, client: AsyncClient):
        response = await client.get("/api/v1/accounts/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["code"] == "UNKNOWN_ACCOUNT"

    async def test_adjust_balance(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("1000"))

        response = await client.post(
            f"/api/v1/accounts/{drawer.id}/adjust",
            json={"target_balance": "1250.00", "reason": "Found in safe"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "income"
        assert Decimal(data["amount"]) == Decimal("250.00")
        assert data["created_by"] == TEST_USER_ID


class TestTransactionsAPI:
    async def test_post_expense_and_running_balance(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("5000"))

        response = await client.post(
            "/api/v1/transactions",
            json={
                "kind": "expense",
                "category": "generator_fuel",
                "amount": "1200.00",
                "from_account_id": str(drawer.id),
            },
        )
        assert response.status_code == 201
        assert response.json()["created_by"] == TEST_USER_ID

        listing = await client.get("/api/v1/transactions")

        assert listing.status_code == 200
        rows = listing.json()
        assert len(rows) == 2
        assert Decimal(rows[0]["running_cash"]) == Decimal("3800.00")
        assert Decimal(rows[1]["running_cash"]) == Decimal("5000.00")
        assert Decimal(rows[0]["running_total"]) == Decimal("3800.00")

    async def test_non_positive_amount_422(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash")

        response = await client.post(
            "/api/v1/transactions",
            json={
                "kind": "income",
                "category": "fuel_sale",
                "amount": "-10.00",
                "to_account_id": str(drawer.id),
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "NON_POSITIVE_AMOUNT"

    async def test_invalid_shape_422(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash")

        response = await client.post(
            "/api/v1/transactions",
            json={
                "kind": "transfer",
                "category": "bank_deposit",
                "amount": "10.00",
                "from_account_id": str(drawer.id),
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_TRANSACTION_SHAPE"

    async def test_card_reference_cannot_skip_source_account(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash")

        response = await client.post(
            "/api/v1/transactions",
            json={
                "kind": "transfer",
                "category": "card_settlement",
                "amount": "1000000.00",
                "to_account_id": str(drawer.id),
                "reference_kind": "card_payments",
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_TRANSACTION_SHAPE"
        account = await client.get(f"/api/v1/accounts/{drawer.id}")
        assert Decimal(account.json()["current_balance"]) == Decimal("0.00")

    async def test_deposit_endpoint(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("9000"))
        bank = await AccountFactory.create(client.db_session, "Bank", "bank")

        response = await client.post(
            "/api/v1/transactions/deposit",
            json={
                "cash_account_id": str(drawer.id),
                "bank_account_id": str(bank.id),
                "amount": "4000.00",
                "description": "Evening deposit",
            },
        )

        assert response.status_code == 201
        assert response.json()["category"] == "bank_deposit"

    async def test_filter_by_kind(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("100"))
        await client.post(
            "/api/v1/transactions/add-funds",
            json={"account_id": str(drawer.id), "amount": "50.00", "description": "Top-up"},
        )

        response = await client.get("/api/v1/transactions", params={"kind": "income", "limit": 1})

        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["description"] == "Top-up"
        assert Decimal(rows[0]["running_cash"]) == Decimal("150.00")


class TestOperationsAPI:
    async def test_start_and_close_day(self, client: AsyncClient):
        start = await client.post(
            "/api/v1/operations/start",
            json={"actual_cash": "0.00"},
        )
        assert start.status_code == 201
        assert start.json()["state"] == "open"
        assert start.json()["opened_by"] == TEST_USER_ID

        status = await client.get("/api/v1/operations/today")
        assert status.json()["state"] == "open"

        close = await client.post("/api/v1/operations/close", json={"actual_cash": "0.00"})
        assert close.status_code == 200
        assert close.json()["state"] == "locked"
        assert close.json()["day_locked"] is True

    async def test_start_requires_explanation(self, client: AsyncClient):
        await DailyOperationFactory.create(
            client.db_session,
            today_local() - timedelta(days=1),
            closing_cash_actual=Decimal("10000"),
        )

        preview = await client.get(
            "/api/v1/operations/today/start-preview", params={"actual_cash": "9000"}
        )
        assert preview.status_code == 200
        assert preview.json()["requires_explanation"] is True
        assert Decimal(preview.json()["tolerance"]) == Decimal("500")

        response = await client.post("/api/v1/operations/start", json={"actual_cash": "9000.00"})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "EXPLANATION_REQUIRED"
        assert body["details"]["variance"] == "-1000.00"

    async def test_close_without_start_conflict(self, client: AsyncClient):
        response = await client.post("/api/v1/operations/close", json={"actual_cash": "0.00"})

        assert response.status_code == 409
        assert response.json()["code"] == "DAY_NOT_OPEN"

    async def test_second_start_conflict(self, client: AsyncClient):
        await client.post("/api/v1/operations/start", json={"actual_cash": "0.00"})

        response = await client.post("/api/v1/operations/start", json={"actual_cash": "0.00"})

        assert response.status_code == 409
        assert response.json()["code"] == "DAY_ALREADY_STARTED"

    async def test_negative_count_rejected_by_schema(self, client: AsyncClient):
        response = await client.post("/api/v1/operations/start", json={"actual_cash": "-1"})

        assert response.status_code == 422

    async def test_variance_list(self, client: AsyncClient):
        await client.post(
            "/api/v1/operations/start",
            json={"actual_cash": "800.00", "explanation": "Float from owner"},
        )

        response = await client.get("/api/v1/operations/variances")

        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["variance_type"] == "OPENING_CASH"
        assert entries[0]["reported_by"] == TEST_USER_ID


class TestDailyBalancesAPI:
    async def test_today_then_set_opening_then_close(self, client: AsyncClient):
        today = await client.get("/api/v1/daily-balances/today")
        assert today.status_code == 200
        assert today.json()["balance_date"] == str(today_local())

        opening = await client.put(
            "/api/v1/daily-balances/today/opening",
            json={"cash_opening": "1000.00", "bank_opening": "2000.00"},
        )
        assert opening.status_code == 200
        assert Decimal(opening.json()["cash_closing"]) == Decimal("1000.00")

        closed = await client.post("/api/v1/daily-balances/today/close")
        assert closed.status_code == 200
        assert closed.json()["is_closed"] is True

        locked = await client.put(
            "/api/v1/daily-balances/today/opening",
            json={"cash_opening": "1.00", "bank_opening": "1.00"},
        )
        assert locked.status_code == 409
        assert locked.json()["code"] == "DAY_LOCKED"


class TestCardsAPI:
    async def test_sale_and_settlement_flow(self, client: AsyncClient):
        bank = await AccountFactory.create(client.db_session, "Bank", "bank", Decimal("50000"))
        card_type = await client.post(
            "/api/v1/cards/types", json={"name": "Visa", "tax_percentage": "2.00"}
        )
        assert card_type.status_code == 201

        sale = await client.post(
            "/api/v1/cards/payments",
            json={"card_type_id": card_type.json()["id"], "amount": "10000.00"},
        )
        assert sale.status_code == 201
        assert Decimal(sale.json()["net_amount"]) == Decimal("9800.00")
        payment_id = sale.json()["id"]

        missing_destination = await client.post(
            f"/api/v1/cards/payments/{payment_id}/settle", json={}
        )
        assert missing_destination.status_code == 422
        assert missing_destination.json()["code"] == "DESTINATION_REQUIRED"

        settle = await client.post(
            f"/api/v1/cards/payments/{payment_id}/settle",
            json={"destination_account_id": str(bank.id), "note": "Batch 7"},
        )
        assert settle.status_code == 200
        assert settle.json()["status"] == "received"

        again = await client.post(
            f"/api/v1/cards/payments/{payment_id}/settle",
            json={"destination_account_id": str(bank.id)},
        )
        assert again.status_code == 409
        assert again.json()["code"] == "ALREADY_SETTLED"

        account = await client.get(f"/api/v1/accounts/{bank.id}")
        assert Decimal(account.json()["current_balance"]) == Decimal("59800.00")

        summary = await client.get("/api/v1/cards/payments/summary")
        assert Decimal(summary.json()["received_tax_total"]) == Decimal("200.00")

    async def test_list_held_payments(self, client: AsyncClient):
        card = await CardTypeFactory.create(client.db_session, "Visa")
        await client.post(
            "/api/v1/cards/payments",
            json={"card_type_id": str(card.id), "amount": "700.00"},
        )

        response = await client.get("/api/v1/cards/payments", params={"status": "hold"})

        assert response.status_code == 200
        assert [p["status"] for p in response.json()] == ["hold"]


class TestCardTypeValidationAPI:
    async def test_full_tax_rate_rejected_by_schema(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/cards/types", json={"name": "Promo", "tax_percentage": "100.00"}
        )

        assert response.status_code == 422


class TestReconciliationAPI:
    async def test_consistency_ok(self, client: AsyncClient):
        await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("1000"))

        response = await client.get("/api/v1/reconciliation/consistency")

        assert response.status_code == 200
        assert response.json()["consistent"] is True

    async def test_consistency_drift_500(self, client: AsyncClient):
        drawer = await AccountFactory.create(client.db_session, "Drawer", "cash", Decimal("1000"))
        drawer.current_balance = Decimal("999.00")
        await client.db_session.flush()

        response = await client.get("/api/v1/reconciliation/consistency")

        assert response.status_code == 500
        assert response.json()["code"] == "LEDGER_INCONSISTENT"


class TestUnitOfWork:
    """A request that fails part-way leaves nothing behind."""

    async def test_failed_settlement_callback_rolls_back_everything(
        self, committing_client: AsyncClient, monkeypatch
    ):
        bank = await committing_client.post(
            "/api/v1/accounts",
            json={"name": "Bank", "kind": "bank", "opening_balance": "50000.00"},
        )
        card_type = await committing_client.post(
            "/api/v1/cards/types", json={"name": "Visa", "tax_percentage": "2.00"}
        )
        sale = await committing_client.post(
            "/api/v1/cards/payments",
            json={"card_type_id": card_type.json()["id"], "amount": "10000.00"},
        )
        payment_id = sale.json()["id"]

        async def linked_sale_already_paid(db, payment):
            raise ConflictError("Linked sale is already marked paid")

        original_settle = card_settlement.settle

        async def settle_with_linked_sale(*args, **kwargs):
            return await original_settle(*args, on_settled=linked_sale_already_paid, **kwargs)

        monkeypatch.setattr(card_settlement, "settle", settle_with_linked_sale)

        response = await committing_client.post(
            f"/api/v1/cards/payments/{payment_id}/settle",
            json={"destination_account_id": bank.json()["id"]},
        )

        assert response.status_code == 409
        async with committing_client.session_maker() as session:
            payment = await session.get(CardPayment, UUID(payment_id))
            assert payment.status == CardPaymentStatus.HOLD.value
            assert payment.received_at is None
            settlement_rows = (
                await session.execute(
                    select(func.count(LedgerTransaction.id)).where(
                        LedgerTransaction.reference_kind == "card_payments"
                    )
                )
            ).scalar_one()
            assert settlement_rows == 0
            account = await session.get(Account, UUID(bank.json()["id"]))
            assert account.current_balance == Decimal("50000.00")

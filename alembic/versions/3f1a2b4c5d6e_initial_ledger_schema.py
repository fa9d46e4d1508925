"""initial_ledger_schema

Accounts, transaction log, daily balances and operations, cash variance
log, card types and payments, audit log.

Revision ID: 3f1a2b4c5d6e
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a2b4c5d6e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("current_balance", sa.Numeric(14, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_accounts_kind", "accounts", ["kind"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("from_account_id", sa.Uuid(), nullable=True),
        sa.Column("to_account_id", sa.Uuid(), nullable=True),
        sa.Column("reference_kind", sa.String(50), nullable=True),
        sa.Column("reference_id", sa.String(64), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.ForeignKeyConstraint(["from_account_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["to_account_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_occurred_at", "transactions", ["occurred_at"])
    op.create_index("ix_transactions_kind", "transactions", ["kind"])
    op.create_index("ix_transactions_from_account_id", "transactions", ["from_account_id"])
    op.create_index("ix_transactions_to_account_id", "transactions", ["to_account_id"])
    op.create_index("ix_transactions_reference_id", "transactions", ["reference_id"])
    op.create_index(
        "ix_transactions_occurred_created", "transactions", ["occurred_at", "created_at"]
    )

    op.create_table(
        "daily_balances",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("balance_date", sa.Date(), nullable=False),
        sa.Column("cash_opening", sa.Numeric(14, 2), nullable=False),
        sa.Column("cash_closing", sa.Numeric(14, 2), nullable=True),
        sa.Column("bank_opening", sa.Numeric(14, 2), nullable=False),
        sa.Column("bank_closing", sa.Numeric(14, 2), nullable=True),
        sa.Column("is_closed", sa.Boolean(), nullable=False),
        sa.Column("closed_by", sa.String(100), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_daily_balances_balance_date", "daily_balances", ["balance_date"], unique=True)
    op.create_index("ix_daily_balances_is_closed", "daily_balances", ["is_closed"])

    op.create_table(
        "daily_operations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("operation_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("day_locked", sa.Boolean(), nullable=False),
        sa.Column("opening_cash", sa.Numeric(14, 2), nullable=False),
        sa.Column("opening_cash_actual", sa.Numeric(14, 2), nullable=False),
        sa.Column("opening_cash_variance", sa.Numeric(14, 2), nullable=False),
        sa.Column("opening_cash_variance_note", sa.Text(), nullable=True),
        sa.Column("opening_bank", sa.Numeric(14, 2), nullable=False),
        sa.Column("closing_cash", sa.Numeric(14, 2), nullable=True),
        sa.Column("closing_cash_actual", sa.Numeric(14, 2), nullable=True),
        sa.Column("closing_cash_variance", sa.Numeric(14, 2), nullable=True),
        sa.Column("closing_cash_variance_note", sa.Text(), nullable=True),
        sa.Column("closing_bank", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_sales", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_expenses", sa.Numeric(14, 2), nullable=True),
        sa.Column("opened_by", sa.String(100), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=True),
        sa.Column("closed_by", sa.String(100), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_daily_operations_operation_date", "daily_operations", ["operation_date"], unique=True
    )
    op.create_index("ix_daily_operations_status", "daily_operations", ["status"])

    op.create_table(
        "cash_variance_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("variance_date", sa.Date(), nullable=False),
        sa.Column("variance_type", sa.String(20), nullable=False),
        sa.Column("expected_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("actual_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("difference", sa.Numeric(14, 2), nullable=False),
        sa.Column("variance_percentage", sa.Numeric(9, 4), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("reported_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cash_variance_log_variance_date", "cash_variance_log", ["variance_date"])

    op.create_table(
        "card_types",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("tax_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "card_payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("card_type_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("tax_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("net_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("received_at", sa.DateTime(), nullable=True),
        sa.Column("settlement_account_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reference_kind", sa.String(50), nullable=True),
        sa.Column("reference_id", sa.String(64), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["card_type_id"], ["card_types.id"]),
        sa.ForeignKeyConstraint(["settlement_account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_card_payments_payment_date", "card_payments", ["payment_date"])
    op.create_index("ix_card_payments_card_type_id", "card_payments", ["card_type_id"])
    op.create_index("ix_card_payments_status", "card_payments", ["status"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_type", sa.String(40), nullable=False),
        sa.Column("action", sa.String(200), nullable=False),
        sa.Column("performed_by", sa.String(100), nullable=True),
        sa.Column("related_record_type", sa.String(50), nullable=True),
        sa.Column("related_record_id", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_event_type", "audit_log", ["event_type"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("card_payments")
    op.drop_table("card_types")
    op.drop_table("cash_variance_log")
    op.drop_table("daily_operations")
    op.drop_table("daily_balances")
    op.drop_table("transactions")
    op.drop_table("accounts")

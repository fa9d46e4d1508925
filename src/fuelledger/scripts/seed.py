"""Seed script for FuelLedger demo data."""

import asyncio
from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select

from fuelledger.core import card_settlement, ledger
from fuelledger.core.db import AsyncSessionLocal
from fuelledger.models import Account, AccountKind, CardType, TransactionKind
from fuelledger.utils.datetime import today_local

ACCOUNTS = [
    ("Main Drawer", AccountKind.CASH, Decimal("25000")),
    ("Meezan Bank", AccountKind.BANK, Decimal("150000")),
]

CARD_TYPES = [
    ("Visa", Decimal("2.00")),
    ("Mastercard", Decimal("2.00")),
    ("UnionPay", Decimal("1.50")),
]

SEED_USER = "seed"


async def seed_accounts(db) -> dict[str, Account]:
    result = await db.execute(select(Account))
    existing = {a.name: a for a in result.scalars().all()}
    if existing:
        print("ℹ️  Accounts already exist, skipping...")
        return existing

    accounts = {}
    for name, kind, opening in ACCOUNTS:
        accounts[name] = await ledger.create_account(db, name, kind, opening, created_by=SEED_USER)
    print(f"✅ Created {len(accounts)} accounts")
    return accounts


async def seed_card_types(db) -> list[CardType]:
    existing = await card_settlement.list_card_types(db)
    if existing:
        print("ℹ️  Card types already exist, skipping...")
        return existing

    card_types = [
        await card_settlement.create_card_type(db, name, pct, performed_by=SEED_USER)
        for name, pct in CARD_TYPES
    ]
    print(f"✅ Created {len(card_types)} card types")
    return card_types


async def seed_activity(db, accounts: dict[str, Account], card_types: list[CardType]) -> int:
    """A week of fuel sales, expenses and card payments."""
    drawer = accounts["Main Drawer"]
    today = today_local()
    count = 0

    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        await ledger.post(
            db,
            kind=TransactionKind.INCOME,
            amount=Decimal("42000") + offset * 1500,
            category="fuel_sale",
            description=f"Pump sales {day}",
            occurred_at=datetime.combine(day, time(21, 0)),
            to_account_id=drawer.id,
            created_by=SEED_USER,
        )
        await ledger.post(
            db,
            kind=TransactionKind.EXPENSE,
            amount=Decimal("3500"),
            category="wages",
            description=f"Attendant wages {day}",
            occurred_at=datetime.combine(day, time(21, 30)),
            from_account_id=drawer.id,
            created_by=SEED_USER,
        )
        card_type = card_types[offset % len(card_types)]
        await card_settlement.record_sale(
            db, card_type.id, Decimal("10000") + offset * 250, payment_date=day, performed_by=SEED_USER
        )
        count += 3

    print(f"✅ Recorded {count} transactions and card sales")
    return count


async def main():
    print("🌱 Starting FuelLedger seed script...\n")

    async with AsyncSessionLocal() as db:
        accounts = await seed_accounts(db)
        card_types = await seed_card_types(db)
        count = await seed_activity(db, accounts, card_types)
        await db.commit()

    print("\n🎉 Seed complete!")
    print(f"   🏦 Accounts: {len(accounts)}")
    print(f"   💳 Card types: {len(card_types)}")
    print(f"   📒 Entries: {count}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

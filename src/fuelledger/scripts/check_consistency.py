# File: src/fuelledger/scripts/check_consistency.py
"""Replay the transaction log against stored balances from the command line.

Exit code 0 when every account foots, 1 on drift.
"""

import asyncio
import sys

from fuelledger.core.consistency import check_consistency
from fuelledger.core.db import AsyncSessionLocal
from fuelledger.core.logging import configure_logging, get_logger
from fuelledger.core.sentry import init_sentry, report_consistency_alert

logger = get_logger(__name__)


async def run_check() -> bool:
    async with AsyncSessionLocal() as db:
        report = await check_consistency(db)

    print(f"Transactions replayed: {report.transaction_count}")
    print(f"Cash  stored {report.stored_cash:>14}  replayed {report.replayed_cash:>14}")
    print(f"Bank  stored {report.stored_bank:>14}  replayed {report.replayed_bank:>14}")

    if report.is_consistent:
        print("✅ Ledger is consistent")
        return True

    for drift in report.drifts:
        print(
            f"❌ {drift.name}: stored {drift.stored}, replayed {drift.replayed} "
            f"(off by {drift.difference})"
        )
    details = report.as_dict()
    logger.error("consistency.drift", **details)
    report_consistency_alert("Ledger balances drifted from the transaction log", details)
    return False


def main() -> None:
    configure_logging()
    init_sentry()
    ok = asyncio.run(run_check())
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()

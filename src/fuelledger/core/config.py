"""Runtime settings for the ledger engine, read from the environment."""

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache


@dataclass(frozen=True)
class LedgerSettings:
    """Tunable ledger policy.

    Attributes:
        tolerance_floor: Minimum cash variance allowed without explanation
        tolerance_rate: Fraction of the expected amount allowed as variance
        running_balance_limit: Default page size for running balance views
        environment: Deployment environment name
    """

    tolerance_floor: Decimal = Decimal("500")
    tolerance_rate: Decimal = Decimal("0.005")
    running_balance_limit: int = 200
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        return cls(
            tolerance_floor=Decimal(os.getenv("VARIANCE_TOLERANCE_FLOOR", "500")),
            tolerance_rate=Decimal(os.getenv("VARIANCE_TOLERANCE_RATE", "0.005")),
            running_balance_limit=int(os.getenv("RUNNING_BALANCE_LIMIT", "200")),
            environment=os.getenv("ENVIRONMENT", "development"),
        )


@lru_cache
def get_settings() -> LedgerSettings:
    """FastAPI dependency returning process-wide settings."""
    return LedgerSettings.from_env()

# File: tests/test_config.py
"""Tests for settings, database URL handling and station time."""

from datetime import date, datetime
from decimal import Decimal

from fuelledger.core.config import LedgerSettings
from fuelledger.core.db import normalize_database_url
from fuelledger.utils.datetime import APP_TIMEZONE, day_bounds, now_local


class TestLedgerSettings:
    def test_defaults(self):
        settings = LedgerSettings()

        assert settings.tolerance_floor == Decimal("500")
        assert settings.tolerance_rate == Decimal("0.005")
        assert settings.running_balance_limit == 200

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("VARIANCE_TOLERANCE_FLOOR", "250")
        monkeypatch.setenv("VARIANCE_TOLERANCE_RATE", "0.01")
        monkeypatch.setenv("RUNNING_BALANCE_LIMIT", "50")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = LedgerSettings.from_env()

        assert settings.tolerance_floor == Decimal("250")
        assert settings.tolerance_rate == Decimal("0.01")
        assert settings.running_balance_limit == 50
        assert settings.environment == "production"


class TestDatabaseUrl:
    def test_postgres_scheme_rewritten(self):
        assert normalize_database_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
        assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_empty_falls_back_to_sqlite(self):
        assert normalize_database_url("").startswith("sqlite+aiosqlite://")

    def test_explicit_driver_kept(self):
        url = "sqlite+aiosqlite:///:memory:"
        assert normalize_database_url(url) == url


class TestStationTime:
    def test_now_local_is_station_timezone(self):
        assert now_local().tzinfo == APP_TIMEZONE

    def test_day_bounds_half_open(self):
        start, end = day_bounds(date(2026, 2, 28))

        assert start == datetime(2026, 2, 28, 0, 0)
        assert end == datetime(2026, 3, 1, 0, 0)

    def test_aware_datetime_converted_to_station_time(self):
        from datetime import timezone

        from fuelledger.utils.datetime import to_local_naive

        aware = datetime(2026, 3, 1, 19, 30, tzinfo=timezone.utc)

        assert to_local_naive(aware) == datetime(2026, 3, 2, 0, 30)
        assert to_local_naive(datetime(2026, 3, 1, 9, 0)) == datetime(2026, 3, 1, 9, 0)

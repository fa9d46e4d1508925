"""Sentry error tracking configuration and ledger alerting."""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.utils import BadDsn

from fuelledger.core.logging import get_logger

logger = get_logger(__name__)

_sentry_initialized = False


def init_sentry() -> None:
    """
    Initialize Sentry SDK when SENTRY_DSN holds a usable URL.

    No DSN (local runs, tests) means no init. Safe to call repeatedly.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    sentry_dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not sentry_dsn:
        logger.info("sentry.disabled", message="Sentry DSN not found, error tracking disabled")
        return

    # Placeholder values such as "xxx" in CI are ignored
    if not sentry_dsn.startswith(("https://", "http://")):
        logger.info(
            "sentry.disabled",
            message="Sentry DSN appears to be invalid or placeholder, error tracking disabled",
        )
        return

    environment = os.getenv("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=0.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(level=None, event_level=None),
            ],
            before_send=_strip_sql,
        )
    except BadDsn as exc:
        logger.warning(
            "sentry.init_failed",
            message="Failed to initialize Sentry due to invalid DSN, error tracking disabled",
            error=str(exc),
        )
        return

    _sentry_initialized = True
    logger.info("sentry.initialized", environment=environment)


def _strip_sql(event: dict, hint: dict) -> dict:
    """Drop breadcrumbs carrying SQL text before sending."""
    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        values = breadcrumbs.get("values", [])
        breadcrumbs["values"] = [
            b for b in values if "sql" not in str(b.get("category", "")).lower()
        ]
    return event


def report_consistency_alert(message: str, details: dict[str, Any]) -> None:
    """Send a ledger drift alert. A no-op when Sentry is not initialized."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("alert", "ledger_consistency")
        scope.set_context("drift", details)
        sentry_sdk.capture_message(message, level="error")

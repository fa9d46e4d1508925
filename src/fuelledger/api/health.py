"""
Health check endpoint for monitoring and orchestration.

Besides database connectivity it reports whether today's station day has
been started and whether an earlier day was left open, so a probe can flag
a missed close before the attendants notice.
"""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fuelledger.core.db import get_db
from fuelledger.core.day_lifecycle import day_status

router = APIRouter(tags=["health"])

# Set in lifespan
_app_start_time: datetime | None = None


def set_app_start_time(start_time: datetime) -> None:
    global _app_start_time
    _app_start_time = start_time


def get_uptime_seconds() -> int:
    if _app_start_time is None:
        return 0
    return int((datetime.now() - _app_start_time).total_seconds())


async def check_database(db: AsyncSession) -> dict[str, Any]:
    """
    Run SELECT 1 and time it.

    Returns: {"status": "ok"|"down", "response_time_ms": N, "error": str (if down)}
    """
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return {
            "status": "down",
            "response_time_ms": int((time.time() - start) * 1000),
            "error": type(e).__name__,
        }
    return {"status": "ok", "response_time_ms": int((time.time() - start) * 1000)}


async def check_station_day(db: AsyncSession) -> dict[str, Any]:
    """Today's day state; "warn" when a previous day is still open."""
    current = await day_status(db)
    return {
        "status": "warn" if current["warning"] else "ok",
        "operation_date": current["operation_date"].isoformat(),
        "state": current["state"].value,
        "warning": current["warning"],
    }


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Always answers 200; "degraded" means the database is unreachable.

    Example response:
        {
            "status": "ok",
            "uptime_seconds": 3600,
            "checks": {
                "database": {"status": "ok", "response_time_ms": 5},
                "station_day": {"status": "ok", "state": "open", ...}
            }
        }
    """
    checks: dict[str, Any] = {"database": await check_database(db)}
    if checks["database"]["status"] == "ok":
        checks["station_day"] = await check_station_day(db)

    return JSONResponse(
        content={
            "status": "ok" if checks["database"]["status"] == "ok" else "degraded",
            "uptime_seconds": get_uptime_seconds(),
            "checks": checks,
        },
        status_code=status.HTTP_200_OK,
    )

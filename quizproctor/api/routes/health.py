from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from quizproctor.db.session import SessionLocal

router = APIRouter(tags=["health"])


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:
        return {"status": "failed", "error": str(exc)}


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    checks = {"database": await _check_database()}
    is_healthy = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if is_healthy else "degraded",
            "checks": checks,
        },
    )

import logging

import asyncpg
from fastapi import APIRouter, HTTPException

from helpdesk.dependencies.services import DatabaseProbeDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/db", summary="Database connectivity probe")
async def ping_database(probe: DatabaseProbeDep) -> dict[str, object]:
    if not probe.enabled:
        return {"status": "skipped"}
    try:
        result = await probe.check()
    except (OSError, TimeoutError, asyncpg.PostgresError) as exc:
        logger.warning("Database probe failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database is unreachable") from exc
    return {"status": "ok", "database": result.database, "latency_ms": round(result.latency_ms, 2)}

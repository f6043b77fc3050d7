from __future__ import annotations

import time
from dataclasses import dataclass

import asyncpg


def to_plain_dsn(dsn: str) -> str:
    """Strip a SQLAlchemy driver suffix so asyncpg accepts the DSN."""

    scheme, separator, rest = dsn.partition("://")
    if not separator:
        return dsn
    return f"{scheme.split('+', 1)[0]}://{rest}"


@dataclass(slots=True, frozen=True)
class ProbeResult:
    database: str
    latency_ms: float


class DatabaseHealthProbe:
    """Checks that the PostgreSQL backing store answers a trivial query."""

    def __init__(self, dsn: str, *, timeout: float = 5.0) -> None:
        self._dsn = to_plain_dsn(dsn)
        self._timeout = timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def enabled(self) -> bool:
        return self._dsn.startswith(("postgresql://", "postgres://"))

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(dsn=self._dsn, min_size=1, max_size=1, timeout=self._timeout)
        return self._pool

    async def check(self) -> ProbeResult:
        pool = await self._ensure_pool()
        started = time.perf_counter()
        async with pool.acquire() as connection:
            database = await connection.fetchval("SELECT current_database()")
        return ProbeResult(database=str(database), latency_ms=(time.perf_counter() - started) * 1000.0)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

"""Storage layer — key/value save slots on PostgreSQL (asyncpg) or in memory."""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol, runtime_checkable

import asyncpg

log = logging.getLogger(__name__)


@runtime_checkable
class Storage(Protocol):
    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def load(self, key: str) -> bytes | None: ...

    async def save(self, key: str, value: bytes) -> None: ...


class Database:
    """Async PostgreSQL key/value store."""

    def __init__(self, config: dict[str, Any]) -> None:
        self._config = config
        self._table: str = config.get("table", "save_slots")
        self._pool: asyncpg.Pool | None = None

    @property
    def pool(self) -> asyncpg.Pool:
        assert self._pool is not None, "Database not connected"
        return self._pool

    async def connect(self) -> None:
        host = os.environ.get("DB_HOST", self._config["host"])
        dsn = (
            f"postgresql://{self._config['user']}:{self._config['password']}"
            f"@{host}:{self._config['port']}"
            f"/{self._config['database']}"
        )
        self._pool = await asyncpg.create_pool(
            dsn,
            min_size=self._config.get("min_connections", 1),
            max_size=self._config.get("max_connections", 4),
        )
        log.info("Database pool created: %s", self._config["database"])
        await self.ensure_table()

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            log.info("Database pool closed")

    async def ensure_table(self) -> None:
        """Create the save-slot table if it doesn't exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    key         TEXT PRIMARY KEY,
                    value       BYTEA NOT NULL,
                    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)  # noqa: S608

    async def load(self, key: str) -> bytes | None:
        async with self.pool.acquire() as conn:
            value = await conn.fetchval(
                f"SELECT value FROM {self._table} WHERE key = $1", key  # noqa: S608
            )
        return bytes(value) if value is not None else None

    async def save(self, key: str, value: bytes) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"INSERT INTO {self._table} (key, value) VALUES ($1, $2) "  # noqa: S608
                "ON CONFLICT (key) DO UPDATE SET value = $2, updated_at = NOW()",
                key, value,
            )


class MemoryStorage:
    """In-process store; contents are lost when the process exits."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.data: dict[str, bytes] = dict(initial or {})

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def load(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def save(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)


def create_storage(config: dict[str, Any]) -> Storage:
    backend = config.get("backend", "memory")
    if backend == "postgres":
        return Database(config)
    if backend == "memory":
        return MemoryStorage()
    raise ValueError(f"Unknown storage backend: {backend}")

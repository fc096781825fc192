"""
Durable instance state.

Every dispatch instance receives a state handle scoped to its service
name when it is created. The dispatch layer never reads or writes it; the
handle is passed through to the transport so that request handling can
reach it.

Two backends are available, selected by STATE_BACKEND:
  - "memory": a process-local dictionary (the default, and what tests use).
  - "postgres": a table in PostgreSQL, reached through a single shared
    asyncpg connection pool created lazily on first use.
"""

import json
from typing import Any, Dict, Optional, Protocol

import asyncpg

from calc_mcp.config import (
    DB_HOST,
    DB_NAME,
    DB_PASSWORD,
    DB_PORT,
    DB_USER,
    STATE_BACKEND,
)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS instance_state (
    name TEXT NOT NULL,
    key TEXT NOT NULL,
    value JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (name, key)
);
"""


class StateHandle(Protocol):
    name: str

    async def get(self, key: str, default: Any = None) -> Any: ...

    async def put(self, key: str, value: Any) -> None: ...


class StateStore(Protocol):
    async def open(self, name: str) -> StateHandle: ...

    async def close(self) -> None: ...


class MemoryStateHandle:
    def __init__(self, name: str):
        self.name = name
        self._values: Dict[str, Any] = {}

    async def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    async def put(self, key: str, value: Any) -> None:
        self._values[key] = value


class MemoryStateStore:
    """Keeps one handle per name for the lifetime of the process."""

    def __init__(self) -> None:
        self._handles: Dict[str, MemoryStateHandle] = {}

    async def open(self, name: str) -> MemoryStateHandle:
        handle = self._handles.get(name)
        if handle is None:
            handle = self._handles[name] = MemoryStateHandle(name)
        return handle

    async def close(self) -> None:
        self._handles.clear()


class PostgresStateHandle:
    def __init__(self, store: "PostgresStateStore", name: str):
        self.name = name
        self._store = store

    async def get(self, key: str, default: Any = None) -> Any:
        pool = await self._store.get_pool()

        async with pool.acquire() as conn:
            raw = await conn.fetchval(
                "SELECT value::text FROM instance_state WHERE name = $1 AND key = $2;",
                self.name,
                key,
            )

        if raw is None:
            return default
        return json.loads(raw)

    async def put(self, key: str, value: Any) -> None:
        pool = await self._store.get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO instance_state (name, key, value)
                VALUES ($1, $2, $3::jsonb)
                ON CONFLICT (name, key) DO UPDATE SET
                  value = EXCLUDED.value,
                  updated_at = now();
                """,
                self.name,
                key,
                json.dumps(value),
            )


class PostgresStateStore:
    """
    State store backed by PostgreSQL.

    The connection pool is created on the first call to get_pool() and
    released by close(). The table is created if it does not exist yet.
    """

    def __init__(
        self,
        host: str = DB_HOST,
        port: int = DB_PORT,
        database: str = DB_NAME,
        user: str = DB_USER,
        password: str = DB_PASSWORD,
    ):
        self._dsn = dict(
            host=host, port=port, database=database, user=user, password=password
        )
        self._pool: Optional[asyncpg.Pool] = None

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            # Create a new pool with a minimum of 1 and maximum of 5 connections
            pool = await asyncpg.create_pool(**self._dsn, min_size=1, max_size=5)
            async with pool.acquire() as conn:
                await conn.execute(_SCHEMA_SQL)
            self._pool = pool

        return self._pool

    async def open(self, name: str) -> PostgresStateHandle:
        # Connect eagerly so a misconfigured database fails instance
        # creation instead of the first request that touches state.
        await self.get_pool()
        return PostgresStateHandle(self, name)

    async def close(self) -> None:
        """Safe to call even if the pool was never created."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


def create_state_store(backend: str = STATE_BACKEND) -> StateStore:
    if backend == "memory":
        return MemoryStateStore()
    if backend == "postgres":
        return PostgresStateStore()
    raise ValueError(f"Unknown STATE_BACKEND: {backend!r}")

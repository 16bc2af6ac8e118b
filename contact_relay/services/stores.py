"""
Durable key-value stores for rate-limit records.

A store only needs ``get`` / ``put`` on opaque bytes keyed by the hashed
client key; there are no transactional guarantees.  Two backends ship:

  • ``FileRateLimitStore``   – one JSON file per client in a private dir
  • ``SqliteRateLimitStore`` – a single aiosqlite table, upserted on put
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from contact_relay.config import Settings

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Protocol that every rate-limit backend must satisfy."""

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def get(self, key: str) -> bytes | None:
        """Return the stored record, or None if the key has none."""
        ...

    async def put(self, key: str, value: bytes) -> None:
        ...


# ── Filesystem ────────────────────────────────────────────────────────────


class FileRateLimitStore:
    """Stores each record as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    async def open(self) -> None:
        await asyncio.to_thread(self._ensure_dir)
        logger.info("File rate-limit store at %s", self._dir)

    async def close(self) -> None:
        pass

    def _ensure_dir(self) -> None:
        self._dir.mkdir(mode=0o700, parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Keys are hex digests; anything else could escape the directory.
        if not key.isalnum():
            raise ValueError(f"Invalid rate-limit key: {key!r}")
        return self._dir / f"{key}.json"

    def _read(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read rate-limit record %s: %s", key[:12], exc)
            return None

    def _write(self, key: str, value: bytes) -> None:
        self._ensure_dir()
        path = self._path(key)
        tmp = path.with_suffix(f".{os.getpid()}.tmp")
        tmp.write_bytes(value)
        os.replace(tmp, path)

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read, key)

    async def put(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)


# ── SQLite ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS rate_limits (
    client_key  TEXT PRIMARY KEY,
    payload     BLOB NOT NULL,      -- JSON array of epoch seconds
    updated_at  TEXT NOT NULL
);
"""


class SqliteRateLimitStore:
    """aiosqlite-backed store; tables are created on open."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info("SQLite rate-limit store at %s", self._db_path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("SQLite rate-limit store closed")

    def _conn(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not opened, call open() first"
        return self._db

    async def get(self, key: str) -> bytes | None:
        async with self._conn().execute(
            "SELECT payload FROM rate_limits WHERE client_key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        payload = row[0]
        return payload.encode() if isinstance(payload, str) else bytes(payload)

    async def put(self, key: str, value: bytes) -> None:
        db = self._conn()
        await db.execute(
            """
            INSERT INTO rate_limits (client_key, payload, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(client_key) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(timezone.utc).isoformat()),
        )
        await db.commit()


def build_store(settings: Settings) -> RateLimitStore:
    """Pick the backend named by RATE_LIMIT_BACKEND."""
    if settings.rate_limit_backend == "sqlite":
        return SqliteRateLimitStore(settings.rate_limit_db_path)
    if settings.rate_limit_backend == "file":
        return FileRateLimitStore(settings.rate_limit_dir)
    raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {settings.rate_limit_backend!r}")

"""Profile and wealth persistence

Two implementations share one async interface: an in-memory store for tests
and the terminal runner, and an aiosqlite store for the API server. Writes
issued after a generation go through ``fire_and_forget`` so a failing store
never touches the generation path.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Optional

import aiosqlite

from .exceptions import LookupMiss
from .types import UserRecord, parse_fragments

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Keyed store of real-user profiles and their chip balances"""

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord:
        """Return the record for ``user_id`` or raise LookupMiss."""

    @abstractmethod
    async def list_users(self, exclude_id: Optional[str] = None) -> list[UserRecord]:
        ...

    @abstractmethod
    async def upsert_user(self, record: UserRecord) -> None:
        """Insert or update profile fields; an existing balance is kept."""

    @abstractmethod
    async def increment_balance(self, user_id: str, amount: int) -> None:
        ...

    @abstractmethod
    async def update_balance(self, user_id: str, balance: int) -> None:
        ...

    @abstractmethod
    async def top_balances(self, limit: int = 10) -> list[UserRecord]:
        ...

    async def close(self) -> None:
        pass


class InMemoryProfileStore(ProfileStore):
    def __init__(self, records: Optional[list[UserRecord]] = None) -> None:
        self._records: dict[str, UserRecord] = {r.id: r for r in records or []}

    async def get_user(self, user_id: str) -> UserRecord:
        try:
            return self._records[user_id]
        except KeyError:
            raise LookupMiss(user_id) from None

    async def list_users(self, exclude_id: Optional[str] = None) -> list[UserRecord]:
        return [r for r in self._records.values() if r.id != exclude_id]

    async def upsert_user(self, record: UserRecord) -> None:
        existing = self._records.get(record.id)
        if existing is not None:
            record = replace(record, wealth=existing.wealth)
        self._records[record.id] = record

    async def increment_balance(self, user_id: str, amount: int) -> None:
        record = await self.get_user(user_id)
        record.wealth += amount

    async def update_balance(self, user_id: str, balance: int) -> None:
        record = await self.get_user(user_id)
        record.wealth = balance

    async def top_balances(self, limit: int = 10) -> list[UserRecord]:
        ranked = sorted(self._records.values(), key=lambda r: r.wealth, reverse=True)
        return ranked[:limit]


_SCHEMA = """\
CREATE TABLE IF NOT EXISTS users (
    id          TEXT    PRIMARY KEY,
    name        TEXT    NOT NULL,
    avatar      TEXT    NOT NULL DEFAULT '',
    shades      TEXT    NOT NULL DEFAULT '[]',
    wealth      INTEGER NOT NULL DEFAULT 100,
    last_seen   TEXT    NOT NULL
);
"""


class SQLiteProfileStore(ProfileStore):
    """Async wrapper around an SQLite database of user profiles."""

    def __init__(self, db_path: str | Path = "data/profiles.db") -> None:
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open connection and ensure schema exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self.db_path))
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(_SCHEMA)
        await self._conn.commit()
        logger.info("Profile store connected: %s", self.db_path)

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Profile store not connected. Call connect() first.")
        return self._conn

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> UserRecord:
        try:
            shades = json.loads(row["shades"])
        except ValueError:
            shades = []
        return UserRecord(
            id=row["id"],
            name=row["name"],
            avatar=row["avatar"],
            shades=parse_fragments(shades),
            wealth=row["wealth"],
            last_seen=datetime.fromisoformat(row["last_seen"]),
        )

    async def get_user(self, user_id: str) -> UserRecord:
        cur = await self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = await cur.fetchone()
        if row is None:
            raise LookupMiss(user_id)
        return self._row_to_record(row)

    async def list_users(self, exclude_id: Optional[str] = None) -> list[UserRecord]:
        if exclude_id:
            cur = await self.conn.execute("SELECT * FROM users WHERE id != ?", (exclude_id,))
        else:
            cur = await self.conn.execute("SELECT * FROM users")
        rows = await cur.fetchall()
        return [self._row_to_record(r) for r in rows]

    async def upsert_user(self, record: UserRecord) -> None:
        await self.conn.execute(
            "INSERT INTO users (id, name, avatar, shades, wealth, last_seen) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET "
            "name = excluded.name, avatar = excluded.avatar, "
            "shades = excluded.shades, last_seen = excluded.last_seen",
            (
                record.id,
                record.name,
                record.avatar,
                json.dumps([f.to_dict() for f in record.shades], ensure_ascii=False),
                record.wealth,
                record.last_seen.isoformat(),
            ),
        )
        await self.conn.commit()

    async def increment_balance(self, user_id: str, amount: int) -> None:
        await self.conn.execute(
            "UPDATE users SET wealth = wealth + ? WHERE id = ?", (amount, user_id)
        )
        await self.conn.commit()

    async def update_balance(self, user_id: str, balance: int) -> None:
        await self.conn.execute(
            "UPDATE users SET wealth = ? WHERE id = ?", (balance, user_id)
        )
        await self.conn.commit()

    async def top_balances(self, limit: int = 10) -> list[UserRecord]:
        cur = await self.conn.execute(
            "SELECT * FROM users ORDER BY wealth DESC LIMIT ?", (limit,)
        )
        rows = await cur.fetchall()
        return [self._row_to_record(r) for r in rows]


# ----------------------------------------------------------------------
# Best-effort writes
# ----------------------------------------------------------------------

_pending: set[asyncio.Task] = set()


async def _log_failure(awaitable: Awaitable, description: str) -> None:
    try:
        await awaitable
    except Exception as exc:  # noqa: BLE001
        logger.error("Best-effort write failed (%s): %s", description, exc)


def fire_and_forget(awaitable: Awaitable, description: str) -> asyncio.Task:
    """Schedule a store write whose failure is only logged."""
    task = asyncio.ensure_future(_log_failure(awaitable, description))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task

# Filename: utils/database.py

import aiosqlite
import json
import logging
import asyncio
import time
from pathlib import Path
from typing import Any, Iterable, Optional, List, Union, Tuple

from .embed_draft import MessageDraft

logger = logging.getLogger(__name__)

SCHEMA = [
    # Discord snowflakes are kept as TEXT
    '''CREATE TABLE IF NOT EXISTS leveling (
        guild_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        xp INTEGER DEFAULT 0,
        level INTEGER DEFAULT 0,
        PRIMARY KEY (guild_id, user_id)
    )''',
    # Drafts shared through the embed editor's export codes
    '''CREATE TABLE IF NOT EXISTS messages (
        code TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        data TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )''',
]


class DatabaseManager:
    """
    Async SQLite storage for the bot, built on aiosqlite.

    One connection is opened lazily and shared. Writes go through a lock so
    concurrent command handlers never hit 'database is locked'.

    Args:
        db_path: Location of the SQLite file. Parent folders are created on connect.
    """

    def __init__(self, db_path: Union[str, Path]):
        self._path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    async def _connection(self) -> aiosqlite.Connection:
        async with self._write_lock:
            if self._conn is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(self._path)
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA journal_mode=WAL;")
                await conn.commit()
                self._conn = conn
                logger.info(f"Opened SQLite database at {self._path}")
        return self._conn

    async def init(self) -> None:
        """Creates missing tables. Raises if the schema cannot be applied."""
        conn = await self._connection()
        async with self._write_lock:
            try:
                for statement in SCHEMA:
                    await conn.execute(statement)
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error(f"Could not create database tables: {e}")
                raise
        logger.info("Database schema ready.")

    async def execute(self, query: str, params: Iterable[Any] = ()) -> None:
        conn = await self._connection()
        async with self._write_lock:
            await conn.execute(query, params)
            await conn.commit()

    async def fetchone(self, query: str, params: Iterable[Any] = ()) -> Optional[aiosqlite.Row]:
        conn = await self._connection()
        async with conn.execute(query, params) as cursor:
            return await cursor.fetchone()

    async def fetchall(self, query: str, params: Iterable[Any] = ()) -> List[aiosqlite.Row]:
        conn = await self._connection()
        async with conn.execute(query, params) as cursor:
            return await cursor.fetchall()

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed.")

    # --- Embed Editor Methods ---

    async def get_message(self, code: str) -> Optional[MessageDraft]:
        """
        Loads an exported draft by its code. Returns None for unknown codes or unreadable data.
        """
        row = await self.fetchone("SELECT data FROM messages WHERE code = ?", (code,))
        if row is None:
            return None
        try:
            return MessageDraft.from_dict(json.loads(row['data']))
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.warning(f"Stored message '{code}' could not be decoded: {e}")
            return None

    async def update_messages(self, code: str, owner_id: int, draft: MessageDraft) -> None:
        """Stores (or overwrites) a draft under the given export code."""
        await self.execute(
            "INSERT OR REPLACE INTO messages (code, owner_id, data, created_at) VALUES (?, ?, ?, ?)",
            (code, str(owner_id), json.dumps(draft.to_dict()), int(time.time()))
        )

    # --- Leveling Methods ---

    async def get_level(self, guild_id: int, user_id: int) -> Tuple[int, int]:
        """Returns ``(level, xp)`` for a member, ``(0, 0)`` when they have no record yet."""
        row = await self.fetchone(
            "SELECT level, xp FROM leveling WHERE guild_id = ? AND user_id = ?",
            (str(guild_id), str(user_id))
        )
        return (row['level'], row['xp']) if row else (0, 0)

    async def set_level(self, guild_id: int, user_id: int, level: int, xp: int) -> None:
        await self.execute(
            "INSERT OR REPLACE INTO leveling (guild_id, user_id, level, xp) VALUES (?, ?, ?, ?)",
            (str(guild_id), str(user_id), level, xp)
        )

    async def get_rank(self, guild_id: int, user_id: int) -> int:
        """1-based position of a member in the guild's level ranking."""
        level, xp = await self.get_level(guild_id, user_id)
        row = await self.fetchone(
            "SELECT COUNT(*) AS ahead FROM leveling WHERE guild_id = ? AND (level > ? OR (level = ? AND xp > ?))",
            (str(guild_id), level, level, xp)
        )
        return row['ahead'] + 1

    async def count_ranked(self, guild_id: int) -> int:
        row = await self.fetchone("SELECT COUNT(*) AS total FROM leveling WHERE guild_id = ?", (str(guild_id),))
        return row['total']

    async def get_leaderboard(self, guild_id: int, limit: int, offset: int = 0) -> List[aiosqlite.Row]:
        return await self.fetchall(
            "SELECT user_id, level, xp FROM leveling WHERE guild_id = ? ORDER BY level DESC, xp DESC LIMIT ? OFFSET ?",
            (str(guild_id), limit, offset)
        )

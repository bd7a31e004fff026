"""
Сервис для работы с базой данных SQLite.
"""

import asyncio
import logging
import aiosqlite
from pathlib import Path
from typing import Optional, List, Dict, Any, AsyncGenerator
from contextlib import asynccontextmanager

from calbot.app.config import settings
from calbot.app.exceptions import PersistenceError


logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    time TEXT NOT NULL,
    description TEXT NOT NULL,
    participants TEXT,
    message_link TEXT,
    chat_id INTEGER,
    status TEXT NOT NULL DEFAULT 'confirmed',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS reminders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id INTEGER NOT NULL,
    remind_at TEXT NOT NULL,
    FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL,
    username TEXT,
    message_text TEXT NOT NULL,
    timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_date ON events(date);
CREATE INDEX IF NOT EXISTS idx_reminders_remind_at ON reminders(remind_at);
CREATE INDEX IF NOT EXISTS idx_messages_chat_timestamp ON messages(chat_id, timestamp);
"""


class DatabaseService:
    """Асинхронный сервис для работы с SQLite."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.DATABASE_PATH)
        self._connection: Optional[aiosqlite.Connection] = None
        # Записи выполняются строго по одной
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """
        Устанавливает соединение с базой данных и создаёт схему.

        Если файл базы повреждён (пробный запрос падает), он удаляется
        и база создаётся заново.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if self.db_path.exists() and not await self._probe():
            logger.warning("Detected corrupted database %s, recreating...", self.db_path)
            self._remove_files()

        try:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA foreign_keys = ON")
            await self._connection.execute("PRAGMA journal_mode = WAL")
            await self._connection.execute("PRAGMA synchronous = NORMAL")
            await self._connection.executescript(SCHEMA)
            await self._connection.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to initialize database: {e}") from e

        logger.info("Database connected: %s", self.db_path)

    async def _probe(self) -> bool:
        """Пробный запрос к существующему файлу базы."""
        try:
            async with aiosqlite.connect(self.db_path) as probe:
                cursor = await probe.execute("PRAGMA quick_check")
                row = await cursor.fetchone()
                return bool(row) and row[0] == "ok"
        except aiosqlite.Error as e:
            logger.warning("Database probe failed: %s", e)
            return False

    def _remove_files(self) -> None:
        """Удаляет файл базы вместе с WAL/SHM."""
        for suffix in ("", "-wal", "-shm"):
            path = Path(f"{self.db_path}{suffix}")
            if path.exists():
                path.unlink()

    async def disconnect(self) -> None:
        """Закрывает соединение с базой данных."""
        if self._connection:
            try:
                await self._connection.close()
            except aiosqlite.Error as e:
                logger.error("Error closing database: %s", e)
            self._connection = None
            logger.info("Database disconnected")

    @property
    def connection(self) -> aiosqlite.Connection:
        """Возвращает текущее соединение."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def execute(
        self,
        query: str,
        params: tuple = ()
    ) -> aiosqlite.Cursor:
        """Выполняет SQL запрос."""
        try:
            return await self.connection.execute(query, params)
        except aiosqlite.Error as e:
            raise PersistenceError(str(e)) from e

    async def commit(self) -> None:
        """Фиксирует транзакцию."""
        await self.connection.commit()

    async def rollback(self) -> None:
        """Откатывает транзакцию."""
        await self.connection.rollback()

    async def fetch_one(
        self,
        query: str,
        params: tuple = ()
    ) -> Optional[Dict[str, Any]]:
        """Выполняет запрос и возвращает одну строку."""
        cursor = await self.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(
        self,
        query: str,
        params: tuple = ()
    ) -> List[Dict[str, Any]]:
        """Выполняет запрос и возвращает все строки."""
        cursor = await self.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def _write(self, query: str, params: tuple) -> aiosqlite.Cursor:
        """Выполняет изменяющий запрос в отдельной транзакции."""
        async with self._write_lock:
            try:
                cursor = await self.connection.execute(query, params)
                await self.commit()
                return cursor
            except aiosqlite.Error as e:
                await self.rollback()
                raise PersistenceError(str(e)) from e

    async def insert(
        self,
        table: str,
        data: Dict[str, Any]
    ) -> int:
        """Вставляет запись и возвращает ID."""
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["?" for _ in data])
        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"

        cursor = await self._write(query, tuple(data.values()))
        return cursor.lastrowid

    async def delete(
        self,
        table: str,
        where: str,
        where_params: tuple = ()
    ) -> int:
        """Удаляет записи и возвращает количество затронутых строк."""
        query = f"DELETE FROM {table} WHERE {where}"
        cursor = await self._write(query, where_params)
        return cursor.rowcount


@asynccontextmanager
async def get_db_context(db_path: Optional[Path] = None) -> AsyncGenerator[DatabaseService, None]:
    """Контекстный менеджер для работы с базой данных."""
    db = DatabaseService(db_path)
    await db.connect()
    try:
        yield db
    finally:
        await db.disconnect()

"""
Скрипт инициализации базы данных SQLite для calbot.
Создаёт схему и выводит статистику.
"""

import argparse
import asyncio
from pathlib import Path
from typing import Dict, Optional

from calbot.app.config import settings
from calbot.app.services.database import get_db_context


TABLES = [
    ("events", "Событий"),
    ("reminders", "Напоминаний"),
    ("messages", "Сообщений в журнале"),
]


async def init_database(db_path: Optional[Path] = None, reset: bool = False) -> Dict[str, int]:
    """
    Инициализирует базу данных.

    Args:
        db_path: Путь к файлу базы (по умолчанию из настроек)
        reset: Если True, удаляет существующую базу и создаёт новую.

    Returns:
        Количество строк в каждой таблице
    """
    db_path = Path(db_path or settings.DATABASE_PATH)
    if reset:
        for suffix in ("", "-wal", "-shm"):
            path = Path(f"{db_path}{suffix}")
            if path.exists():
                path.unlink()
                print(f"[OK] Удалён файл: {path}")

    async with get_db_context(db_path) as db:
        stats = {}
        for table, _ in TABLES:
            row = await db.fetch_one(f"SELECT COUNT(*) AS count FROM {table}")
            stats[table] = row["count"]
    return stats


def print_statistics(stats: Dict[str, int]) -> None:
    """Выводит статистику базы данных."""
    print("\n=== Статистика базы данных ===")
    print("-" * 40)
    for table, label in TABLES:
        print(f"  {label}: {stats.get(table, 0)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Инициализация базы данных")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Удалить существующую базу и создать новую"
    )
    parser.add_argument("--path", type=Path, default=None, help="Путь к файлу базы")
    args = parser.parse_args()

    print("=" * 50)
    print("  calbot - Инициализация БД")
    print("=" * 50)

    stats = asyncio.run(init_database(args.path, reset=args.reset))
    print(f"\n[OK] База данных готова: {args.path or settings.DATABASE_PATH}")
    print_statistics(stats)


if __name__ == "__main__":
    main()

"""
Вспомогательные функции для работы со временем.
"""

from datetime import datetime
from typing import Optional

import pytz

from calbot.app.config import settings


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Текущее время в часовом поясе процесса (naive)."""
    tz = pytz.timezone(tz_name or settings.TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Форматирует время для хранения в SQLite (сортируется как строка)."""
    return value.strftime(TIMESTAMP_FORMAT)


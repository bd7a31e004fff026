"""
Конфигурация приложения.
"""

import logging
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings


# Определяем корень проекта (где лежит .env)
PROJECT_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Настройки приложения."""

    # Приложение
    APP_NAME: str = "calbot"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Секреты (обязательны для запуска бота)
    BOT_TOKEN: str = ""
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # База данных
    DATABASE_PATH: Path = PROJECT_ROOT / "database" / "calbot.db"

    # Время и распознавание дат
    TIMEZONE: str = "UTC"  # один часовой пояс на процесс
    DATE_LANGUAGES: List[str] = ["en"]
    EXTRACT_MAX_CHARS: int = 500  # длина текста, в которой ищется дата

    # Напоминания
    REMINDER_CHECK_INTERVAL: int = 60  # секунды
    REMINDER_LEAD_MINUTES: int = 15

    # Подтверждение событий
    PROPOSAL_TTL_MINUTES: int = 24 * 60
    PROPOSAL_LIMIT: int = 1000

    # Пересказ переписки
    SUMMARY_DEFAULT_HOURS: int = 24

    # Polling
    POLLING_MAX_RESTARTS: int = 5
    POLLING_BACKOFF_MIN: float = 1.0
    POLLING_BACKOFF_MAX: float = 30.0

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"
        extra = "ignore"

    def missing_secrets(self) -> List[str]:
        """Возвращает имена незаданных обязательных секретов."""
        required = {"BOT_TOKEN": self.BOT_TOKEN, "GEMINI_API_KEY": self.GEMINI_API_KEY}
        return [name for name, value in required.items() if not value.strip()]


# Глобальный экземпляр настроек
settings = Settings()

logger.debug("Loading config from %s (exists: %s)", ENV_FILE, ENV_FILE.exists())

"""
Исключения приложения.
"""


class CalbotError(Exception):
    """Базовое исключение calbot."""


class ExtractionNotFound(CalbotError):
    """В тексте не найдено выражение даты/времени."""

    def __init__(self, text: str = ""):
        super().__init__("No date/time found in text")
        self.text = text


class ValidationError(CalbotError):
    """Не заполнено или некорректно обязательное поле (дата, время, id)."""


class PersistenceError(CalbotError):
    """Ошибка хранилища (ввод-вывод, повреждение базы)."""


class DispatchError(CalbotError):
    """Не удалось доставить уведомление о напоминании."""

    def __init__(self, chat_id, reason: str = ""):
        super().__init__(f"Failed to notify chat {chat_id}: {reason}")
        self.chat_id = chat_id
        self.reason = reason


class GenerationError(CalbotError):
    """Генеративная модель не вернула ответ."""

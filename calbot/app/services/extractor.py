"""
Распознавание даты и времени события в свободном тексте.

Используется поиск dateparser по n-граммам: текст просматривается слева
направо, и берётся первое найденное выражение. Это эвристика, а не выбор
"лучшего" совпадения: в тексте "call at 5pm, meeting tomorrow at 3pm"
событием станет "5pm".

Совпадения без явного признака даты (цифры времени, "tomorrow", день
недели, месяц с числом) пропускаются.
"""

import re
from datetime import date, datetime
from typing import Iterable, List, Optional

from dateparser import parse as parse_natural_date
from dateparser.search import search_dates

from calbot.app.config import settings
from calbot.app.exceptions import ExtractionNotFound
from calbot.app.models import Extraction
from calbot.app.utils import local_now


NO_DESCRIPTION = "No description provided"

# Служебные слова, которые поиск может приклеить к выражению даты
_TRAILING_CONNECTORS = re.compile(r"(?:[\s,;]+(?:and|with|by|from|the|about|just))+[\s,;]*$", re.IGNORECASE)
_LEADING_PREPOSITION = re.compile(r"\b(on|at|by)\s+$", re.IGNORECASE)
_MENTION = re.compile(r"@([A-Za-z0-9_]{3,32})")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([,.;:!?])")

_MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
    "|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec"
)
# Совпадение принимается, только если в нём есть явный признак даты или времени.
# Иначе поиск находит "we" (Wednesday), "the sun" (Sunday), "may", "1.2".
_DATE_EVIDENCE = re.compile(
    r"\d{1,2}:\d{2}"
    r"|\d\s*(?:am|pm|a\.m\.|p\.m\.)(?![a-z])"
    r"|\d{4}-\d{1,2}-\d{1,2}"
    r"|\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"
    r"|\b(?:today|tomorrow|tonight|noon|midnight)\b"
    r"|\b(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b"
    rf"|\b(?:{_MONTHS})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?\b"
    rf"|\b\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?(?:{_MONTHS})\b"
    r"|\bin\s+\d+\s+(?:minute|hour|day|week)s?\b",
    re.IGNORECASE,
)


def _search_settings(now: datetime) -> dict:
    return {
        "RELATIVE_BASE": now,
        "PREFER_DATES_FROM": "future",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }


def _matched_span(text: str, matched: str) -> tuple:
    """Границы совпадения в исходном тексте, без хвостовых связок."""
    start = text.find(matched)
    if start == -1:
        start = text.lower().find(matched.lower())
    if start == -1:
        return 0, 0
    trimmed = _TRAILING_CONNECTORS.sub("", matched)
    end = start + len(trimmed)

    # Висящий предлог перед датой ("on March 3") тоже относится к выражению
    prefix = _LEADING_PREPOSITION.search(text[:start])
    if prefix:
        start = prefix.start(1)
    return start, end


def extract(
    text: str,
    now: Optional[datetime] = None,
    languages: Optional[List[str]] = None
) -> Extraction:
    """
    Извлекает дату, время и описание события из текста.

    Args:
        text: Свободный текст сообщения
        now: Момент, от которого считаются "tomorrow", "in 2 hours" (по умолчанию текущее локальное время)
        languages: Языки для распознавания (по умолчанию из настроек)

    Returns:
        Extraction с датой YYYY-MM-DD, временем HH:MM и описанием

    Raises:
        ExtractionNotFound: если в тексте нет выражения даты/времени
    """
    if not text or not text.strip():
        raise ExtractionNotFound(text or "")

    now = now or local_now()
    # Поиск только в начале длинного текста, описание берётся из всего текста
    found = search_dates(
        text[:settings.EXTRACT_MAX_CHARS],
        languages=languages or settings.DATE_LANGUAGES,
        settings=_search_settings(now),
        strategy="ngram",
    )
    candidate = next(
        ((matched, moment) for matched, moment in found or () if _DATE_EVIDENCE.search(matched)),
        None
    )
    if candidate is None:
        raise ExtractionNotFound(text)

    matched, moment = candidate
    start, end = _matched_span(text, matched)

    remainder = f"{text[:start]} {text[end:]}"
    description = _SPACE_BEFORE_PUNCT.sub(r"\1", " ".join(remainder.split())).strip(" ,;:")

    return Extraction(
        date=moment.date().isoformat(),
        time=moment.strftime("%H:%M"),
        description=description or NO_DESCRIPTION,
        matched_text=text[start:end].strip(),
    )


def parse_date(
    text: str,
    now: Optional[datetime] = None,
    languages: Optional[List[str]] = None
) -> Optional[date]:
    """Разбирает аргумент-дату: "2024-01-02", "tomorrow", "March 3"."""
    text = (text or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    now = now or local_now()
    parsed = parse_natural_date(
        text,
        languages=languages or settings.DATE_LANGUAGES,
        settings=_search_settings(now),
    )
    return parsed.date() if parsed else None


def parse_moment(
    text: str,
    now: Optional[datetime] = None,
    languages: Optional[List[str]] = None
) -> Optional[datetime]:
    """Разбирает момент времени целиком ("tomorrow at 9am")."""
    text = (text or "").strip()
    if not text:
        return None
    now = now or local_now()
    parsed = parse_natural_date(
        text,
        languages=languages or settings.DATE_LANGUAGES,
        settings=_search_settings(now),
    )
    return parsed.replace(second=0, microsecond=0) if parsed else None


def extract_participants(text: str, exclude: Iterable[str] = ()) -> Optional[str]:
    """Упоминания @username из текста через запятую, без повторов."""
    skip = {name.lower().lstrip("@") for name in exclude if name}
    names = []
    for name in _MENTION.findall(text or ""):
        if name.lower() not in skip and f"@{name}" not in names:
            names.append(f"@{name}")
    return ", ".join(names) or None

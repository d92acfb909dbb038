"""Locale set and locale-aware formatting helpers."""

from datetime import date
from datetime import datetime
from typing import Literal
from typing import Optional
from typing import Union

Locale = Literal["en", "uk", "ru", "pl"]

LOCALES: tuple[str, ...] = ("en", "uk", "ru", "pl")
DEFAULT_LOCALE: Locale = "en"

CURRENCY_SYMBOL = "₴"

# thousands separator, symbol before the amount
_PRICE_STYLE: dict[str, tuple[str, bool]] = {
    "en": (",", True),
    "uk": (" ", False),
    "ru": (" ", False),
    "pl": (" ", False),
}

_MONTHS: dict[str, tuple[str, ...]] = {
    "en": (
        "January", "February", "March", "April", "May", "June", "July",
        "August", "September", "October", "November", "December",
    ),
    "uk": (
        "січня", "лютого", "березня", "квітня", "травня", "червня", "липня",
        "серпня", "вересня", "жовтня", "листопада", "грудня",
    ),
    "ru": (
        "января", "февраля", "марта", "апреля", "мая", "июня", "июля",
        "августа", "сентября", "октября", "ноября", "декабря",
    ),
    "pl": (
        "stycznia", "lutego", "marca", "kwietnia", "maja", "czerwca", "lipca",
        "sierpnia", "września", "października", "listopada", "grudnia",
    ),
}


def resolve_locale(
    value: Optional[str],
    locales: tuple[str, ...] = LOCALES,
    default: str = DEFAULT_LOCALE,
) -> str:
    """Return ``value`` if it is a supported locale, else ``default``."""
    if value:
        code = value.strip().lower().replace("_", "-").split("-")[0]
        if code in locales:
            return code
    return default if default in locales else locales[0]


def negotiate_locale(
    accept_language: Optional[str],
    locales: tuple[str, ...] = LOCALES,
    default: str = DEFAULT_LOCALE,
) -> str:
    """Pick the best supported locale from an Accept-Language header."""
    if not accept_language:
        return default

    candidates: list[tuple[float, int, str]] = []
    for index, part in enumerate(accept_language.split(",")):
        lang, _, params = part.strip().partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        code = lang.strip().lower().split("-")[0]
        if code in locales and quality > 0:
            candidates.append((-quality, index, code))

    if not candidates:
        return default
    return min(candidates)[2]


def format_price(price: float, locale: str = DEFAULT_LOCALE) -> str:
    """Format a price in whole hryvnias, e.g. ``₴1,250`` or ``1 250 ₴``."""
    separator, symbol_first = _PRICE_STYLE.get(locale, _PRICE_STYLE[DEFAULT_LOCALE])
    amount = f"{round(price):,}".replace(",", separator)
    if symbol_first:
        return f"{CURRENCY_SYMBOL}{amount}"
    return f"{amount} {CURRENCY_SYMBOL}"


def format_date(value: Union[date, datetime, str], locale: str = DEFAULT_LOCALE) -> str:
    """Format a date as a long, locale-specific string.

    Unparseable strings are returned unchanged.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value

    months = _MONTHS.get(locale, _MONTHS[DEFAULT_LOCALE])
    month = months[value.month - 1]
    if locale == "en":
        return f"{month} {value.day}, {value.year}"
    return f"{value.day} {month} {value.year}"

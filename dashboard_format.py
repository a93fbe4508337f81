"""Locale-aware formatting for metric readouts and the live clock."""
from __future__ import annotations

from datetime import datetime

from babel.dates import format_datetime
from babel.numbers import format_decimal

import dashboard_config as cfg


def format_number(value: float, digits: int = 0, locale: str | None = None) -> str:
    """Format ``value`` with exactly ``digits`` fractional digits."""
    pattern = "#,##0"
    if digits > 0:
        pattern += "." + "0" * digits
    return format_decimal(value, format=pattern, locale=locale or cfg.LOCALE)


def format_clock(moment: datetime | None = None, locale: str | None = None) -> str:
    # weekday + HH:mm:ss, e.g. "lundi 14:05:09"
    if moment is None:
        moment = datetime.now().astimezone()
    return format_datetime(
        moment,
        "EEEE HH:mm:ss",
        tzinfo=moment.tzinfo,
        locale=locale or cfg.LOCALE,
    )


def format_hour_minute(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds).strftime("%H:%M")

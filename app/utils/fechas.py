"""Date helpers shared by the access and visitor services."""

from __future__ import annotations

import calendar
from datetime import datetime

import pytz

from app.config import get_settings


def now_local() -> datetime:
    """Current wall-clock time in the campus timezone, as a naive datetime.

    Naive values are what the ``DateTime``/``Date``/``Time`` columns store,
    so every timestamp written by the services goes through here.
    """
    tz = pytz.timezone(get_settings().TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def add_one_month(moment: datetime) -> datetime:
    """Return *moment* one calendar month later.

    The day is clamped to the last day of the target month, so
    January 31 becomes February 28 (or 29 in leap years).
    """
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))

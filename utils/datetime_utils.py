from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from core.constants import DEFAULT_TIMEZONE

MOSCOW_TZ = pytz.timezone(DEFAULT_TIMEZONE)

def get_timezone(name: Optional[str] = None):
    return pytz.timezone(name) if name else MOSCOW_TZ

def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(get_timezone(tz_name))

def today_str(tz_name: Optional[str] = None) -> str:
    """Дата программы (YYYY-MM-DD) в часовом поясе бота"""
    return now_local(tz_name).strftime("%Y-%m-%d")

def current_hour(tz_name: Optional[str] = None) -> int:
    return now_local(tz_name).hour

def format_date(value: str, fmt: str = "%d.%m.%Y") -> str:
    return date.fromisoformat(value).strftime(fmt)

def add_days(value: str, days: int) -> str:
    return (date.fromisoformat(value) + timedelta(days=days)).isoformat()

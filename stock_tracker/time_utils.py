import os
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_LOCAL_TZ = None


def _resolve_local_tz():
    global _LOCAL_TZ
    if _LOCAL_TZ is not None:
        return _LOCAL_TZ
    tz_name = os.environ.get("APP_TIMEZONE") or os.environ.get("TZ")
    if tz_name:
        try:
            _LOCAL_TZ = ZoneInfo(tz_name)
            return _LOCAL_TZ
        except (ZoneInfoNotFoundError, ValueError):
            _LOCAL_TZ = None
    _LOCAL_TZ = datetime.now().astimezone().tzinfo
    return _LOCAL_TZ


def local_now():
    """Waktu lokal tanpa tzinfo, dipakai untuk created_at/updated_at."""
    return datetime.now(_resolve_local_tz()).replace(tzinfo=None)


def local_today():
    return local_now().date()


def parse_date(value):
    """Parse YYYY-MM-DD. Kembalikan None untuk input kosong, ValueError jika salah format."""
    if not value:
        return None
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def day_start(date_value):
    return datetime.combine(date_value, datetime.min.time())


def next_day_start(date_value):
    # batas atas eksklusif supaya end_date tetap inklusif
    return day_start(date_value) + timedelta(days=1)


def isoformat_or_none(value):
    return value.isoformat() if value else None

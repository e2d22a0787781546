# vidvault/utils.py

from datetime import datetime, timezone


def utc_now():
    return datetime.now(timezone.utc)


def utc_now_iso():
    return utc_now().isoformat()


def start_of_today_iso():
    """Midnight (UTC) of the current day as an ISO string"""
    today = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
    return today.isoformat()


def missing_fields(data, required):
    """Names of required fields that are absent or empty"""
    return [field for field in required if not data.get(field)]


def missing_fields_error(missing):
    return f"Missing required fields: {', '.join(missing)}"


def without_password(document):
    return {k: v for k, v in document.items() if k != 'password'}


def format_duration(duration_sec):
    """Seconds to the m:ss display string used by the video library"""
    duration_sec = int(duration_sec or 0)
    minutes = duration_sec // 60
    seconds = duration_sec % 60
    return f"{minutes}:{seconds:02d}"


def to_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)

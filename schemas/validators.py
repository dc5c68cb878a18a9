import re

from services.reminders import parse_reminder_time

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(value: str) -> str:
    value = (value or "").strip()
    if not _EMAIL_RE.match(value):
        raise ValueError("Enter a valid email address")
    return value


def normalize_reminder_time(value: str) -> str:
    minutes = parse_reminder_time(value)
    if minutes is None:
        raise ValueError(f"Invalid reminder time '{value}', expected HH:mm")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"

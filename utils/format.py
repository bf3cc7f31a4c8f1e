from datetime import datetime


def format_date(value: datetime) -> str:
    """Formats a date as e.g. 'Jan 5, 2025'."""
    return f"{value:%b} {value.day}, {value.year}"


def format_date_range(start: datetime, end: datetime) -> str:
    return f"{format_date(start)} - {format_date(end)}"


def mask_secret(secret: str, visible_chars: int = 4) -> str:
    """Replaces all but the last `visible_chars` characters with asterisks."""
    if len(secret) <= visible_chars:
        return "*" * len(secret)
    return "*" * (len(secret) - visible_chars) + secret[-visible_chars:]

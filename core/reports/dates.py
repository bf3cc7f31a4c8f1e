import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from core.contracts.models import DateRange
from utils.errors import ConfigError

Count = Union[int, str, None]

LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _positive_int(value: Union[int, str], flag: str) -> int:
    """Reads the leading integer of `value`, so "2.5" is 2 and "3x" is 3."""
    match = LEADING_INT.match(str(value))
    number = int(match.group(1)) if match else 0
    if number < 1:
        raise ConfigError(f"Invalid {flag} value. Must be a positive number.")
    return number


def calculate_date_range(
    weeks: Count = None,
    months: Count = None,
    *,
    default_weeks: int = 2,
    all_time: bool = False,
    now: Optional[datetime] = None,
) -> Optional[DateRange]:
    """
    Converts --weeks / --months into a window ending now.

    `months` wins when both are given; month arithmetic follows the calendar.
    Returns None for `all_time`, meaning no date filtering.
    """
    if all_time:
        return None

    until = now or datetime.now(timezone.utc)
    if months is not None:
        since = until - relativedelta(months=_positive_int(months, "--months"))
    else:
        count = default_weeks if weeks is None else weeks
        since = until - timedelta(weeks=_positive_int(count, "--weeks"))

    return DateRange(since=since, until=until)

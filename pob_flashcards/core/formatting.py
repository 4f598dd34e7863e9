# core/formatting.py
import math
from datetime import datetime
from typing import Optional, Union

Number = Union[int, float]


def format_duration_ms(duration_ms: Optional[Number]) -> str:
    """Formats a duration as MM:SS. Non-finite input renders as 00:00."""
    if duration_ms is None or not math.isfinite(duration_ms):
        return "00:00"
    total_seconds = int(duration_ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def parse_finite_number(value) -> Optional[float]:
    """Returns the value when it is a finite number, otherwise None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def format_date_ymd(value: Union[datetime, Number]) -> str:
    if not isinstance(value, datetime):
        value = datetime.fromtimestamp(value)
    return value.strftime("%Y-%m-%d")


def format_time_label(epoch_seconds: Optional[Number]) -> str:
    """Short label for chart axes and tables, e.g. 'Mar 4'."""
    if not epoch_seconds:
        return ""
    moment = datetime.fromtimestamp(epoch_seconds)
    return f"{moment.strftime('%b')} {moment.day}"


def format_full_date(epoch_seconds: Optional[Number]) -> str:
    if not epoch_seconds:
        return ""
    return datetime.fromtimestamp(epoch_seconds).strftime("%Y-%m-%d %H:%M")


def format_percent(ratio: Optional[Number]) -> str:
    return f"{math.floor((ratio or 0) * 100 + 0.5)}%"

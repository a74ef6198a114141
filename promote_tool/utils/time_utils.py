"""Timestamp and duration helpers"""

from datetime import datetime, timezone
from typing import Union

from ..api.exceptions import ValidationError
from ..constants import DURATION_PATTERN, DURATION_UNITS, ErrorCode


def utcnow() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 in UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC"""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_duration(value: Union[str, int, float, None]) -> float:
    """Parse a duration into seconds

    Accepts plain numbers (seconds) or strings such as ``90``, ``30m``,
    ``24h``, ``2d`` or ``1w``.

    Examples:
        >>> parse_duration("30m")
        1800.0
        >>> parse_duration(45)
        45.0
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValidationError(f"Invalid duration: {value!r}", ErrorCode.CONFIG_FORMAT_ERROR)
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = DURATION_PATTERN.match(value)
        if not match:
            raise ValidationError(f"Invalid duration: {value!r}", ErrorCode.CONFIG_FORMAT_ERROR)
        seconds = float(match.group('value')) * DURATION_UNITS[match.group('unit')]

    if seconds < 0:
        raise ValidationError(f"Duration must not be negative: {value!r}", ErrorCode.CONFIG_FORMAT_ERROR)
    return seconds


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable format

    Examples:
        >>> format_duration(1.5)
        '1.5s'
        >>> format_duration(65)
        '1m 5s'
    """
    if seconds < 0:
        return "Invalid duration"

    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    elif seconds < 86400:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
    else:
        days = int(seconds // 86400)
        hours = int((seconds % 86400) // 3600)
        return f"{days}d {hours}h"

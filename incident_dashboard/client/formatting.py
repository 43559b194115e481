# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Display helpers for dates on cards and table rows."""
from datetime import datetime, timezone
from typing import Optional

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _parse(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_date(value: Optional[str]) -> str:
    """'19 Jan 2026, 10:30' in local time; '-' when empty; unparseable input is echoed."""
    if not value:
        return "-"
    parsed = _parse(value)
    if parsed is None:
        return value
    local = parsed.astimezone()
    return f"{local.day} {MONTHS[local.month - 1]} {local.year}, {local:%H:%M}"


def relative_time(value: Optional[str], now: Optional[datetime] = None) -> str:
    if not value:
        return "-"
    parsed = _parse(value)
    if parsed is None:
        return value
    now = now or datetime.now(timezone.utc)
    seconds = int((now - parsed).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 604800:
        return f"{seconds // 86400}d ago"
    return format_date(value)

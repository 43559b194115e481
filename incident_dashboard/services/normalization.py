# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Normalisers for loosely typed ingestion payloads.

Bare times of day ("16:40") are read as that time on the current local date,
so re-delivering the same payload after midnight yields a different instant.
"""
import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from incident_dashboard.schemas import IncidentStatus

STATUS_SYNONYMS = {
    "new": IncidentStatus.NEW,
    "open": IncidentStatus.NEW,
    "opened": IncidentStatus.NEW,
    "baru": IncidentStatus.NEW,
    "in progress": IncidentStatus.IN_PROGRESS,
    "in-progress": IncidentStatus.IN_PROGRESS,
    "in_progress": IncidentStatus.IN_PROGRESS,
    "inprogress": IncidentStatus.IN_PROGRESS,
    "progress": IncidentStatus.IN_PROGRESS,
    "ongoing": IncidentStatus.IN_PROGRESS,
    "on progress": IncidentStatus.IN_PROGRESS,
    "proses": IncidentStatus.IN_PROGRESS,
    "resolved": IncidentStatus.RESOLVED,
    "resolve": IncidentStatus.RESOLVED,
    "done": IncidentStatus.RESOLVED,
    "fixed": IncidentStatus.RESOLVED,
    "solved": IncidentStatus.RESOLVED,
    "selesai": IncidentStatus.RESOLVED,
    "closed": IncidentStatus.CLOSED,
    "close": IncidentStatus.CLOSED,
    "tutup": IncidentStatus.CLOSED,
}

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

_FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y %H:%M",
)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def normalize_status(value: Any) -> str:
    """Map a free-form status onto the enumeration; unknown values pass through."""
    if value is None:
        return IncidentStatus.NEW.value
    raw = str(value).strip()
    if not raw:
        return IncidentStatus.NEW.value
    mapped = STATUS_SYNONYMS.get(raw.lower())
    return mapped.value if mapped else raw


def parse_timestamp(value: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Return an aware datetime, or None when the string is not a date/time."""
    now = now or _local_now()
    raw = value.strip()

    match = _TIME_OF_DAY.match(raw)
    if match:
        hour, minute, second = int(match[1]), int(match[2]), int(match[3] or 0)
        try:
            return now.replace(hour=hour, minute=minute, second=second, microsecond=0)
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(raw)
        except (TypeError, ValueError, IndexError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    return parsed


def normalize_timestamp(value: Any, now: Optional[datetime] = None) -> str:
    """ISO-8601 string for value; empty or unparseable input becomes now."""
    now = now or _local_now()
    if isinstance(value, datetime):
        parsed = value if value.tzinfo else value.replace(tzinfo=now.tzinfo)
    elif value is None or not str(value).strip():
        parsed = now
    else:
        parsed = parse_timestamp(str(value), now) or now
    return parsed.isoformat()

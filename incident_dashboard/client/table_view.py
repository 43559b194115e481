# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Table view: search, equality filters and single-column sort over the incident list."""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from incident_dashboard.schemas import VALID_STATUSES

ALL = "all"
ASC = "asc"
DESC = "desc"

SORT_FIELDS = ("incident_id", "project_name", "status", "impact", "waktu_kejadian", "waktu_chat")
SEARCH_FIELDS = ("incident_id", "description", "pic")


@dataclass(frozen=True)
class TableState:
    search: str = ""
    status: str = ALL
    impact: str = ALL
    project: str = ALL
    sort_field: str = "waktu_chat"
    sort_direction: str = DESC


def _matches_search(row: Dict[str, Any], needle: str) -> bool:
    return any(needle in (row.get(f) or "").lower() for f in SEARCH_FIELDS)


def _sort_key(value: Optional[str]):
    # Missing values sort last ascending; reverse=True puts them first descending.
    return (not value, value or "")


def filter_and_sort(rows: List[Dict[str, Any]], state: TableState) -> List[Dict[str, Any]]:
    result = list(rows)

    if state.search:
        needle = state.search.lower()
        result = [r for r in result if _matches_search(r, needle)]
    if state.status != ALL:
        result = [r for r in result if r.get("status") == state.status]
    if state.impact != ALL:
        result = [r for r in result if r.get("impact") == state.impact]
    if state.project != ALL:
        result = [r for r in result if r.get("project_name") == state.project]

    field = state.sort_field
    result.sort(
        key=lambda r: _sort_key(r.get(field)),
        reverse=state.sort_direction == DESC,
    )
    return result


def toggle_sort(state: TableState, field: str) -> TableState:
    """Same column flips direction; a new column starts descending."""
    if field not in SORT_FIELDS:
        raise ValueError(f"cannot sort by {field!r}")
    if state.sort_field == field:
        return replace(state, sort_direction=ASC if state.sort_direction == DESC else DESC)
    return replace(state, sort_field=field, sort_direction=DESC)


def unique_impacts(rows: List[Dict[str, Any]]) -> List[str]:
    return list(dict.fromkeys(r["impact"] for r in rows if r.get("impact")))


def unique_projects(rows: List[Dict[str, Any]]) -> List[str]:
    return list(dict.fromkeys(r["project_name"] for r in rows if r.get("project_name")))


def status_counts(rows: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {status: 0 for status in VALID_STATUSES}
    for r in rows:
        if r.get("status") in counts:
            counts[r["status"]] += 1
    counts["total"] = len(rows)
    return counts

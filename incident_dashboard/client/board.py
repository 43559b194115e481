# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Board view: one column per status; dropping a card on a column changes its status."""
from typing import Any, Dict, List

from incident_dashboard.client.view_state import IncidentViewState
from incident_dashboard.core.logging import get_logger
from incident_dashboard.schemas import VALID_STATUSES

logger = get_logger(__name__)


def group_by_status(incidents: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    columns: Dict[str, List[Dict[str, Any]]] = {status: [] for status in VALID_STATUSES}
    for incident in incidents:
        if incident.get("status") in columns:
            columns[incident["status"]].append(incident)
    return columns


def move_card(view_state: IncidentViewState, id: str, target_status: str) -> bool:
    """Returns True when a status change was sent. Failures are logged, not raised."""
    if target_status not in VALID_STATUSES:
        return False
    incident = view_state.get(id)
    if incident is None or incident["status"] == target_status:
        return False
    try:
        view_state.update_status(id, target_status)
    except Exception as exc:
        logger.error("Failed to update status: %s", exc)
        return False
    return True

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: incident list, fetch, update (status transitions) and delete."""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from incident_dashboard.core.dependencies import get_incident_service
from incident_dashboard.schemas import Incident, IncidentPage, IncidentUpdate, envelope
from incident_dashboard.services.incident_service import IncidentService

router = APIRouter(tags=["Incidents"])


@router.get("/incidents")
def list_incidents(
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: IncidentService = Depends(get_incident_service),
):
    total, incidents = service.list_incidents(status, search, limit, offset)
    page = IncidentPage(
        incidents=[Incident(**i) for i in incidents],
        total=total, limit=limit, offset=offset,
    )
    return envelope(page.model_dump())


@router.get("/incidents/{id}")
def get_incident(id: str, service: IncidentService = Depends(get_incident_service)):
    return envelope(Incident(**service.get_incident(id)).model_dump())


@router.patch("/incidents/{id}")
def update_incident(id: str, body: IncidentUpdate, background_tasks: BackgroundTasks,
                    service: IncidentService = Depends(get_incident_service)):
    """
    Update an incident, usually its status. The sheet-sync and status-change
    webhooks run after the response is sent.
    """
    outcome = service.update_incident(id, body)
    background_tasks.add_task(service.dispatch_update_webhooks, outcome)
    return envelope(Incident(**outcome.incident).model_dump(), outcome.message)


@router.delete("/incidents/{id}")
def delete_incident(id: str, service: IncidentService = Depends(get_incident_service)):
    service.delete_incident(id)
    return envelope(message="Incident deleted successfully")

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: inbound webhook from the workflow engine."""
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from incident_dashboard.core.config import Settings
from incident_dashboard.core.dependencies import get_incident_service, get_settings
from incident_dashboard.core.errors import Unauthorized
from incident_dashboard.schemas import Incident, WebhookIncidentPayload, envelope
from incident_dashboard.services.incident_service import IncidentService

router = APIRouter(prefix="/webhook", tags=["Webhook"])


def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
):
    if settings.WEBHOOK_SECRET and not hmac.compare_digest(
        x_webhook_secret or "", settings.WEBHOOK_SECRET
    ):
        raise Unauthorized()


@router.post("/incident", dependencies=[Depends(verify_webhook_secret)])
def ingest_incident(payload: WebhookIncidentPayload,
                    service: IncidentService = Depends(get_incident_service)):
    """Create or update an incident keyed by its business incident_id."""
    outcome = service.ingest(payload)
    return JSONResponse(
        status_code=201 if outcome.created else 200,
        content=envelope(Incident(**outcome.incident).model_dump(), outcome.message),
    )


@router.get("/incident")
def webhook_probe():
    return envelope(message="Incident webhook endpoint is active")

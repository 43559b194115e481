# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas."""
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class IncidentStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


VALID_STATUSES = tuple(s.value for s in IncidentStatus)

# Columns an operator may change through PATCH.
EDITABLE_FIELDS = (
    "status", "project_name", "description", "incident_type", "impact",
    "pic", "phone_number", "waktu_kejadian", "waktu_chat",
)


class Incident(BaseModel):
    id: str
    incident_id: str
    project_name: Optional[str] = None
    status: str
    description: Optional[str] = None
    incident_type: Optional[str] = None
    impact: Optional[str] = None
    pic: Optional[str] = None
    phone_number: Optional[str] = None
    waktu_kejadian: Optional[str] = None
    waktu_chat: Optional[str] = None
    created_at: str
    updated_at: str


class IncidentUpdate(BaseModel):
    """Partial update. Status is validated by the service, after the row lookup."""
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    project_name: Optional[str] = None
    description: Optional[str] = Field(None, max_length=5000)
    incident_type: Optional[str] = None
    impact: Optional[str] = None
    pic: Optional[str] = None
    phone_number: Optional[str] = None
    waktu_kejadian: Optional[str] = None
    waktu_chat: Optional[str] = None
    expected_updated_at: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually sent, minus the version token."""
        sent = self.model_dump(exclude_unset=True, exclude={"expected_updated_at"})
        if not sent.get("status"):
            sent.pop("status", None)
        return sent


class WebhookIncidentPayload(BaseModel):
    """
    Loosely typed payload from the workflow engine.

    Accepts the workflow's own field names (keterangan, tipe, nomor_wa) as well
    as the column names; values may arrive as numbers.
    """
    model_config = ConfigDict(extra="allow")

    incident_id: Optional[Any] = None
    project_name: Optional[Any] = None
    status: Optional[Any] = None
    keterangan: Optional[Any] = None
    description: Optional[Any] = None
    tipe: Optional[Any] = None
    incident_type: Optional[Any] = None
    impact: Optional[Any] = None
    pic: Optional[Any] = None
    nomor_wa: Optional[Any] = None
    phone_number: Optional[Any] = None
    waktu_kejadian: Optional[Any] = None
    waktu_chat: Optional[Any] = None


class IncidentPage(BaseModel):
    incidents: List[Incident]
    total: int
    limit: int
    offset: int


class StatusChangeNotification(BaseModel):
    incident_id: str
    phone_number: str
    old_status: str
    new_status: str
    description: str


class SheetsSyncPayload(BaseModel):
    """Body for the spreadsheet-sync workflow, which keys on its own field names."""
    incident_id: str
    project_name: Optional[str] = None
    status: str
    keterangan: Optional[str] = None
    tipe: Optional[str] = None
    impact: Optional[str] = None
    waktu_kejadian: Optional[str] = None
    pic: Optional[str] = None
    nomor_wa: Optional[str] = None
    waktu_chat: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SheetsSyncPayload":
        return cls(
            incident_id=row["incident_id"],
            project_name=row.get("project_name"),
            status=row["status"],
            keterangan=row.get("description"),
            tipe=row.get("incident_type"),
            impact=row.get("impact"),
            waktu_kejadian=row.get("waktu_kejadian"),
            pic=row.get("pic"),
            nomor_wa=row.get("phone_number"),
            waktu_chat=row.get("waktu_chat"),
        )


class ChangeEvent(BaseModel):
    event_type: Literal["INSERT", "UPDATE", "DELETE"]
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success body: {success, data?, message?}. Errors are built in core.errors."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body

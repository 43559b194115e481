# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for incidents. Every committed write is published to the change feed."""
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from incident_dashboard.core.errors import (
    DuplicateIncident, IncidentNotFound, StaleIncident, UpstreamFailure,
)
from incident_dashboard.core.logging import get_logger
from incident_dashboard.realtime.change_feed import ChangeFeed
from incident_dashboard.schemas import ChangeEvent, EDITABLE_FIELDS

logger = get_logger(__name__)

COLUMNS = (
    "id", "incident_id", "project_name", "status", "description", "incident_type",
    "impact", "pic", "phone_number", "waktu_kejadian", "waktu_chat",
    "created_at", "updated_at",
)
INCIDENT_COLS = ", ".join(COLUMNS)
INSERTABLE_FIELDS = ("incident_id",) + EDITABLE_FIELDS
UNIQUE_VIOLATION = "23505"


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row[0]),
        "incident_id": row[1],
        "project_name": row[2],
        "status": row[3],
        "description": row[4],
        "incident_type": row[5],
        "impact": row[6],
        "pic": row[7],
        "phone_number": row[8],
        "waktu_kejadian": _iso(row[9]),
        "waktu_chat": _iso(row[10]),
        "created_at": _iso(row[11]) or "",
        "updated_at": _iso(row[12]) or "",
    }


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _only(fields: Dict[str, Any], allowed) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k in allowed}


@contextmanager
def _translate_errors(action: str):
    try:
        yield
    except IntegrityError as exc:
        if _sqlstate(exc) == UNIQUE_VIOLATION:
            raise DuplicateIncident() from exc
        logger.error("Integrity error during %s: %s", action, exc)
        raise UpstreamFailure(f"Failed to {action}") from exc
    except SQLAlchemyError as exc:
        logger.error("Database error during %s: %s", action, exc)
        raise UpstreamFailure(f"Failed to {action}") from exc


class IncidentRepository:
    def __init__(self, engine: Engine, feed: Optional[ChangeFeed] = None):
        self._engine = engine
        self._feed = feed or ChangeFeed()

    @property
    def feed(self) -> ChangeFeed:
        return self._feed

    # ── Read ───────────────────────────────────────────────────────────

    def list_incidents(self, status: Optional[str] = None, search: Optional[str] = None,
                       limit: int = 100, offset: int = 0) -> Tuple[int, List[Dict[str, Any]]]:
        conditions = []
        params: Dict[str, Any] = {}
        if status and status != "all":
            conditions.append("status = :status")
            params["status"] = status
        if search:
            conditions.append("incident_id ILIKE :search")
            params["search"] = f"%{search}%"
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        with _translate_errors("fetch incidents"), self._engine.connect() as conn:
            total = conn.execute(text(f"SELECT COUNT(*) FROM incidents{where}"), params).scalar()
            params["limit"] = limit
            params["offset"] = offset
            rows = conn.execute(
                text(f"SELECT {INCIDENT_COLS} FROM incidents{where} "
                     f"ORDER BY created_at DESC LIMIT :limit OFFSET :offset"),
                params,
            ).fetchall()
        return total or 0, [_row_to_dict(r) for r in rows]

    def get_incident(self, id: str) -> Optional[Dict[str, Any]]:
        with _translate_errors("fetch incident"), self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {INCIDENT_COLS} FROM incidents WHERE id = :id"), {"id": id},
            ).fetchone()
        return _row_to_dict(row) if row else None

    def get_by_incident_id(self, incident_id: str) -> Optional[Dict[str, Any]]:
        with _translate_errors("fetch incident"), self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {INCIDENT_COLS} FROM incidents WHERE incident_id = :key"),
                {"key": incident_id},
            ).fetchone()
        return _row_to_dict(row) if row else None

    def count_by_status(self, status: str) -> int:
        with _translate_errors("count incidents"), self._engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM incidents WHERE status = :s"), {"s": status}
            ).scalar() or 0

    # ── Write ──────────────────────────────────────────────────────────

    def insert_incident(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = _only(fields, INSERTABLE_FIELDS)
        cols = ", ".join(values)
        placeholders = ", ".join(f":{c}" for c in values)
        with _translate_errors("create incident"), self._engine.begin() as conn:
            row = conn.execute(
                text(f"INSERT INTO incidents ({cols}, created_at, updated_at) "
                     f"VALUES ({placeholders}, NOW(), NOW()) RETURNING {INCIDENT_COLS}"),
                values,
            ).fetchone()
        incident = _row_to_dict(row)
        self._feed.publish(ChangeEvent(event_type="INSERT", new=incident))
        return incident

    def update_incident(self, id: str, fields: Dict[str, Any],
                        expected_updated_at: Optional[str] = None) -> Dict[str, Any]:
        """
        Apply fields and refresh updated_at. With expected_updated_at the write only
        lands if the row has not changed since that version was read.
        """
        values = _only(fields, EDITABLE_FIELDS)
        assignments = [f"{c} = :{c}" for c in values] + ["updated_at = NOW()"]
        params = dict(values, id=id)
        where = "id = :id"
        if expected_updated_at:
            where += " AND updated_at = CAST(:expected AS TIMESTAMPTZ)"
            params["expected"] = expected_updated_at

        with _translate_errors("update incident"), self._engine.begin() as conn:
            row = conn.execute(
                text(f"UPDATE incidents SET {', '.join(assignments)} "
                     f"WHERE {where} RETURNING {INCIDENT_COLS}"),
                params,
            ).fetchone()
            if row is None and expected_updated_at:
                exists = conn.execute(
                    text("SELECT 1 FROM incidents WHERE id = :id"), {"id": id}
                ).fetchone()
                if exists:
                    raise StaleIncident()
        if row is None:
            raise IncidentNotFound()
        incident = _row_to_dict(row)
        self._feed.publish(ChangeEvent(event_type="UPDATE", new=incident, old={"id": incident["id"]}))
        return incident

    def update_by_incident_id(self, incident_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = _only(fields, EDITABLE_FIELDS)
        assignments = [f"{c} = :{c}" for c in values] + ["updated_at = NOW()"]
        with _translate_errors("update incident"), self._engine.begin() as conn:
            row = conn.execute(
                text(f"UPDATE incidents SET {', '.join(assignments)} "
                     f"WHERE incident_id = :key RETURNING {INCIDENT_COLS}"),
                dict(values, key=incident_id),
            ).fetchone()
        if row is None:
            raise IncidentNotFound(f"Incident {incident_id} not found")
        incident = _row_to_dict(row)
        self._feed.publish(ChangeEvent(event_type="UPDATE", new=incident, old={"id": incident["id"]}))
        return incident

    def delete_incident(self, id: str) -> Optional[Dict[str, Any]]:
        """Delete a row; returns it, or None if nothing matched."""
        with _translate_errors("delete incident"), self._engine.begin() as conn:
            row = conn.execute(
                text(f"DELETE FROM incidents WHERE id = :id RETURNING {INCIDENT_COLS}"),
                {"id": id},
            ).fetchone()
        if row is None:
            return None
        incident = _row_to_dict(row)
        self._feed.publish(ChangeEvent(event_type="DELETE", old=incident))
        return incident

    # ── Ops ────────────────────────────────────────────────────────────

    def verify_connection(self):
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self._engine.dispose()

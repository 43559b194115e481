# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""SQLAlchemy engine construction and schema bootstrap."""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from incident_dashboard.core.config import Settings

INCIDENTS_DDL = """
CREATE TABLE IF NOT EXISTS incidents (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    incident_id     VARCHAR(64)  NOT NULL UNIQUE,
    project_name    VARCHAR(255),
    status          VARCHAR(32)  NOT NULL DEFAULT 'New'
                    CHECK (status IN ('New', 'In Progress', 'Resolved', 'Closed')),
    description     TEXT,
    incident_type   VARCHAR(255),
    impact          VARCHAR(64),
    pic             VARCHAR(255),
    phone_number    VARCHAR(64),
    waktu_kejadian  TIMESTAMPTZ,
    waktu_chat      TIMESTAMPTZ,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

INCIDENTS_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_incidents_status ON incidents (status)",
    "CREATE INDEX IF NOT EXISTS idx_incidents_created_at ON incidents (created_at DESC)",
)


def create_db_engine(settings: Settings) -> Engine:
    return create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def ensure_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(text(INCIDENTS_DDL))
        for ddl in INCIDENTS_INDEXES:
            conn.execute(text(ddl))

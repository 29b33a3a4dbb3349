from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import inspect, text
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExportStatus(str, Enum):
    READY = "READY"
    FAILED = "FAILED"


class ExportRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    kind: str
    slug: str = Field(index=True)
    filename: Optional[str] = None
    page_count: int = 0
    line_count: int = 0
    used_fallback: bool = False
    status: ExportStatus = Field(default=ExportStatus.READY)
    fail_code: Optional[str] = None
    fail_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class ExportArtifact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    export_id: int = Field(foreign_key="exportrecord.id")
    type: str
    path: str
    created_at: datetime = Field(default_factory=_utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    _migrate_db()


# Columns added after the first ledger release.
_LATE_COLUMNS = {
    "line_count": "INTEGER NOT NULL DEFAULT 0",
    "used_fallback": "BOOLEAN NOT NULL DEFAULT 0",
    "fail_code": "TEXT",
    "fail_detail": "TEXT",
}


def _migrate_db() -> None:
    """Add columns missing from ledgers written by older versions."""
    inspector = inspect(engine)
    if "exportrecord" not in inspector.get_table_names():
        return
    columns = {col["name"] for col in inspector.get_columns("exportrecord")}
    missing = [name for name in _LATE_COLUMNS if name not in columns]
    if not missing:
        return
    with engine.begin() as conn:
        for name in missing:
            conn.execute(text(f"ALTER TABLE exportrecord ADD COLUMN {name} {_LATE_COLUMNS[name]}"))


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)

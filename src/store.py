"""
store.py
--------
Append-only snapshot store for MissionStats records.

Every pipeline run inserts its whole batch in one transaction, all rows
sharing a single capture timestamp. Rows are never updated or deleted.
NaN counts are stored as NULL so a parse failure stays distinguishable
from an observed zero.
"""
from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from sqlalchemy import DateTime, Integer, String, create_engine, func, insert, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src import config
from src.errors import EmptyResultError, PersistenceError
from src.extract_stats import MissionStats

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StatsRow(Base):
    __tablename__ = "stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    mission: Mapped[str] = mapped_column(String, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    year: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date: Mapped[str] = mapped_column(String(10), nullable=False, default="")

    # counts; NULL = unparseable cell
    total_sats_launched: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    failed_to_orbit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    early_deorbit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    disposal_complete: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reentry_after_fail: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_down: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_in_orbit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    screened: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    failed_decaying: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    graveyard: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_working: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    disposal_underway: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    out_of_constellation: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    anomaly: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reserve_relocating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    special: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    drift: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ascent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    operational_orbit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_operational: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    orbit_heights: Mapped[str] = mapped_column(String, nullable=False, default="")
    phase_vs_plane: Mapped[str] = mapped_column(String, nullable=False, default="")
    plane_vs_time: Mapped[str] = mapped_column(String, nullable=False, default="")


# Lazy initialization of the default engine
_engine = None


def _ensure_sqlite_dir(url: str) -> None:
    u = make_url(url)
    if u.get_backend_name() == "sqlite" and u.database and u.database != ":memory:":
        from pathlib import Path
        Path(u.database).parent.mkdir(parents=True, exist_ok=True)


def create_store(url: str, **kwargs) -> Engine:
    """Create an engine for url and make sure the stats table exists."""
    _ensure_sqlite_dir(url)
    engine = create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


def get_engine(url: Optional[str] = None) -> Engine:
    """Engine for url, or the cached engine for config.DATABASE_URL."""
    global _engine
    if url:
        return create_store(url)
    if _engine is None:
        _engine = create_store(config.DATABASE_URL)
        logger.info("Store engine created for %s", make_url(config.DATABASE_URL).render_as_string(hide_password=True))
    return _engine


def save_snapshot(engine: Engine, records: Sequence[MissionStats],
                  timestamp: Optional[datetime.datetime] = None) -> datetime.datetime:
    """Insert all records under one timestamp, in one transaction."""
    if not records:
        raise EmptyResultError("Refusing to store an empty snapshot")
    ts = timestamp or datetime.datetime.now(datetime.timezone.utc)
    rows = [{**r.to_dict(nan_as_none=True), "timestamp": ts} for r in records]
    try:
        with engine.begin() as conn:
            conn.execute(insert(StatsRow), rows)
    except SQLAlchemyError as e:
        logger.error("Bulk insert of %d records failed: %s", len(rows), e)
        raise PersistenceError(f"Failed to store {len(rows)} records: {e}",
                               details={"records": len(rows), "timestamp": ts.isoformat()}) from e
    logger.info("Stored %d records at %s", len(rows), ts.isoformat())
    return ts


def _as_utc(ts: datetime.datetime) -> datetime.datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=datetime.timezone.utc)
    return ts


def latest_rows(engine: Engine, limit: int = 5) -> List[Dict[str, Any]]:
    """Most recently persisted rows, newest first."""
    stmt = (
        select(StatsRow.timestamp, StatsRow.mission, StatsRow.total_operational, StatsRow.total_in_orbit)
        .order_by(StatsRow.timestamp.desc(), StatsRow.id.desc())
        .limit(limit)
    )
    try:
        with engine.connect() as conn:
            result = conn.execute(stmt).mappings().all()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to read latest records: {e}") from e
    return [{**row, "timestamp": _as_utc(row["timestamp"])} for row in result]


def snapshot_timestamps(engine: Engine) -> List[datetime.datetime]:
    stmt = select(StatsRow.timestamp).distinct().order_by(StatsRow.timestamp.desc())
    with engine.connect() as conn:
        return [_as_utc(ts) for ts in conn.execute(stmt).scalars()]


def latest_snapshot(engine: Engine) -> pd.DataFrame:
    """All rows of the newest capture, in table (mission) order."""
    newest = select(func.max(StatsRow.timestamp)).scalar_subquery()
    stmt = select(StatsRow).where(StatsRow.timestamp == newest).order_by(StatsRow.id)
    with engine.connect() as conn:
        return pd.read_sql(stmt, conn)

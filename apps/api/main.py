from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import datetime, json, logging, time
from typing import List, Optional

from sqlalchemy.engine import Engine

from src import config
from src.errors import FetchError, StatsPipelineError
from src.extract_stats import extract_stats
from src.run_pipeline import source_html, run_pipeline
from src.store import get_engine, latest_rows

logger = logging.getLogger("apps.api")

app = FastAPI(title="Starlink Constellation Stats API", version="1.0.0")


class CronRecord(BaseModel):
    timestamp: str
    mission: str
    total_operational: Optional[int] = None
    total_in_orbit: Optional[int] = None


class CronAnalysis(BaseModel):
    totalRecords: int
    shouldRunDaily: str
    expectedNextRun: str


class CronStatus(BaseModel):
    success: bool
    cronStatus: str
    lastRecords: List[CronRecord]
    timeSinceLastRecord: str
    analysis: CronAnalysis


# ---- helpers ----
def get_store() -> Engine:
    return get_engine()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def next_cron_run(now: datetime.datetime) -> datetime.datetime:
    """Next 00:00 UTC strictly after now."""
    tomorrow = (now + datetime.timedelta(days=1)).date()
    return datetime.datetime.combine(tomorrow, datetime.time(0, 0), tzinfo=datetime.timezone.utc)


def _iso(ts: datetime.datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


@app.get("/health")
def health(engine: Engine = Depends(get_store)):
    return {
        "status": "ok",
        "source_url": config.SOURCE_URL,
        "source_file": config.SOURCE_FILE or None,
        "database": engine.url.render_as_string(hide_password=True),
    }


@app.get("/api/current")
def current():
    try:
        records = extract_stats(source_html())
    except FetchError as e:
        logger.error("Current data fetch failed: %s", e)
        return JSONResponse(status_code=502, content={"success": False, "error": e.message})
    except OSError as e:
        logger.error("Current data source unreadable: %s", e)
        return JSONResponse(status_code=500, content={"success": False, "error": f"Cannot read stats source: {e}"})
    return [r.to_dict(nan_as_none=True) for r in records]


@app.api_route("/api/scheduler", methods=["GET", "POST"])
def scheduler(engine: Engine = Depends(get_store)):
    t0 = time.monotonic()
    logger.info("Scheduler triggered at %s", _iso(_utcnow()))
    try:
        result = run_pipeline(engine=engine)
    except Exception as e:
        duration = int((time.monotonic() - t0) * 1000)
        msg = e.message if isinstance(e, StatsPipelineError) else (str(e) or "Unknown error occurred")
        logger.exception("Scheduled run failed after %dms", duration)
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": msg,
            "timestamp": _iso(_utcnow()),
            "duration": duration,
        })
    return {
        "success": True,
        "message": result.message,
        "timestamp": _iso(_utcnow()),
        "duration": result.duration_ms,
        "recordCount": result.record_count,
    }


@app.get("/api/test-scheduler")
def test_scheduler(engine: Engine = Depends(get_store)):
    resp = scheduler(engine)
    if isinstance(resp, JSONResponse):
        body, status = json.loads(resp.body), resp.status_code
    else:
        body, status = resp, 200
    return {
        "schedulerResponse": body,
        "status": status,
        "testRun": True,
        "timestamp": _iso(_utcnow()),
    }


@app.get("/api/cron-status", response_model=CronStatus)
def cron_status(engine: Engine = Depends(get_store)):
    try:
        rows = latest_rows(engine, limit=config.STATUS_LIMIT)
    except StatsPipelineError as e:
        logger.error("Cron status query failed: %s", e)
        return JSONResponse(status_code=500, content={"success": False, "error": e.message})

    now = _utcnow()
    hours = None
    if rows:
        hours = int((now - rows[0]["timestamp"]).total_seconds() // 3600)
    healthy = hours is not None and hours < config.FRESHNESS_HOURS

    return CronStatus(
        success=True,
        cronStatus="healthy" if healthy else "issue_detected",
        lastRecords=[
            CronRecord(
                timestamp=_iso(r["timestamp"]),
                mission=r["mission"],
                total_operational=r["total_operational"],
                total_in_orbit=r["total_in_orbit"],
            )
            for r in rows
        ],
        timeSinceLastRecord=f"{hours} hours" if hours is not None else "No records found",
        analysis=CronAnalysis(
            totalRecords=len(rows),
            shouldRunDaily="Scheduler is expected to run at 00:00 UTC daily",
            expectedNextRun=_iso(next_cron_run(now)),
        ),
    )

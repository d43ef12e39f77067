"""
run_pipeline.py
---------------
One scheduled run: fetch the stats page, extract records, validate them and
append them to the store as a single timestamped snapshot.

No retries and no locking: a failure surfaces as one FetchError,
EmptyResultError or PersistenceError to whoever triggered the run.
"""
from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from sqlalchemy.engine import Engine

from src import config
from src.extract_stats import extract_stats
from src.fetch_raw import fetch_html, load_html
from src.store import get_engine, save_snapshot
from src.utils import setup_logging
from src.validate_stats import validate_records

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    success: bool
    message: str
    timestamp: str
    duration_ms: int
    record_count: int


def source_html() -> str:
    if config.SOURCE_FILE:
        logger.info("Reading stats page from local file %s", config.SOURCE_FILE)
        return load_html(config.SOURCE_FILE)
    return fetch_html()


def run_pipeline(engine: Optional[Engine] = None, html: Optional[str] = None,
                 now: Optional[datetime.datetime] = None) -> RunResult:
    t0 = time.monotonic()
    logger.info("=== PIPELINE START ===")

    if html is None:
        html = source_html()
    records = extract_stats(html)
    report = validate_records(records)  # raises EmptyResultError on 0 rows
    logger.info("Data validation passed - %d records", report.rows)

    ts = save_snapshot(engine or get_engine(), records, timestamp=now)

    duration = int((time.monotonic() - t0) * 1000)
    msg = f"Successfully processed {len(records)} records in {duration}ms"
    logger.info("SUCCESS: %s", msg)
    logger.info("=== PIPELINE END (SUCCESS) ===")
    return RunResult(success=True, message=msg, timestamp=ts.isoformat(),
                     duration_ms=duration, record_count=len(records))


if __name__ == "__main__":
    setup_logging("run_pipeline")
    try:
        result = run_pipeline()
    except Exception as e:
        logger.exception("Pipeline failed")
        console.print(f"[red]Pipeline failed:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]{result.message}[/green] (snapshot {result.timestamp})")

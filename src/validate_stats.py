"""
validate_stats.py
-----------------
Checks extracted MissionStats records for shape and basic types using
pandas + pandera. Row-level anomalies (NaN counts, unmatched mission labels,
negative counts) are reported and logged, never raised: the records still go
to the store, where NaN becomes NULL. Only an empty batch is a failure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

import pandas as pd
import pandera as pa
from pandera import Column, Check
from rich.console import Console

from src.config import IMAGE_COLUMNS, METRIC_COLUMNS
from src.errors import EmptyResultError
from src.extract_stats import MissionStats, records_to_frame

import warnings
warnings.filterwarnings("ignore", category=FutureWarning, module="pandera")

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    rows: int
    nan_counts: Dict[str, int] = field(default_factory=dict)
    unmatched_missions: int = 0
    schema_failures: int = 0

    @property
    def clean(self) -> bool:
        return not self.nan_counts and not self.unmatched_missions and not self.schema_failures


def build_schema() -> pa.DataFrameSchema:
    columns = {
        "mission": Column(pa.String, nullable=False),
        "number": Column(pa.Int, nullable=False, checks=Check.ge(0)),
        "year": Column(pa.Int, nullable=False, checks=Check.ge(0)),
        "day": Column(pa.Int, nullable=False, checks=Check.ge(0)),
        "date": Column(pa.String, nullable=False),
        "total_operational": Column(pa.Float, nullable=True),
    }
    for c in METRIC_COLUMNS:
        columns[c] = Column(pa.Float, nullable=True, checks=Check.ge(0))
    for c in IMAGE_COLUMNS:
        columns[c] = Column(pa.String, nullable=False)
    return pa.DataFrameSchema(columns=columns, coerce=True, strict=False)


def validate_frame(df: pd.DataFrame) -> ValidationReport:
    if df.empty:
        raise EmptyResultError("Extraction produced 0 records; refusing to store an empty snapshot")

    nan_counts = {c: int(n) for c, n in df[METRIC_COLUMNS].isna().sum().items() if n}
    unmatched = int(((df["number"] == 0) & (df["year"] == 0) & (df["day"] == 0)).sum())

    failures = 0
    try:
        build_schema().validate(df, lazy=True)
    except pa.errors.SchemaErrors as err:
        failures = len(err.failure_cases)
        logger.warning("Pandera validation found %d failure cases:\n%s", failures, err.failure_cases)

    report = ValidationReport(rows=len(df), nan_counts=nan_counts,
                              unmatched_missions=unmatched, schema_failures=failures)
    if nan_counts:
        logger.warning("Unparseable counts per column: %s", nan_counts)
    if unmatched:
        logger.warning("%d missions without a 'Launch N, YYYY-DDD' label", unmatched)
    logger.info("Validated %d records (clean=%s)", report.rows, report.clean)
    return report


def validate_records(records: Sequence[MissionStats]) -> ValidationReport:
    return validate_frame(records_to_frame(records))


if __name__ == "__main__":
    from src.extract_stats import extract_stats
    from src.fetch_raw import load_html
    from src.utils import latest_snapshot_entry, setup_logging

    setup_logging("validate_stats")
    try:
        snap = latest_snapshot_entry()
        console.print(f"Validating latest snapshot: [cyan]{snap['file']}[/cyan]")
        report = validate_records(extract_stats(load_html(snap["file"])))
    except Exception as e:
        logger.exception("Validation failed")
        console.print(f"[red]Validation failed[/red]: {e}")
        raise SystemExit(1)
    colour = "green" if report.clean else "yellow"
    console.print(f"[{colour}]{report.rows} records, nan={report.nan_counts}, "
                  f"unmatched={report.unmatched_missions}, "
                  f"schema_failures={report.schema_failures}[/{colour}]")

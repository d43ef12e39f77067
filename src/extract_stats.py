"""
extract_stats.py
----------------
Turns the statistics page HTML into MissionStats records.
- Selects the last <table> in the document (earlier ones are legend/navigation)
- Keeps only rows with exactly 23 <td> cells
- Parses the 19 count columns as base-10 integers, NaN when unparseable
- Derives mission number/year/day/date and total_operational
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import asdict, dataclass, fields
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd
from bs4 import BeautifulSoup
from bs4.element import Tag

from src.config import (
    EXPECTED_CELLS,
    IMAGE_COLUMNS,
    METRIC_COLUMNS,
    MISSION_PATTERN,
    NON_OPERATIONAL_COLUMNS,
)

logger = logging.getLogger(__name__)

Number = Union[int, float]

_MISSION_RE = re.compile(MISSION_PATTERN, re.ASCII)
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?[0-9]+)")
_IMAGE_CELLS = range(len(METRIC_COLUMNS) + 1, EXPECTED_CELLS)


@dataclass(frozen=True)
class MissionStats:
    """One launch row of the stats table at one observation instant."""

    mission: str
    number: int
    year: int
    day: int
    date: str
    total_sats_launched: Number
    failed_to_orbit: Number
    early_deorbit: Number
    disposal_complete: Number
    reentry_after_fail: Number
    total_down: Number
    total_in_orbit: Number
    screened: Number
    failed_decaying: Number
    graveyard: Number
    total_working: Number
    disposal_underway: Number
    out_of_constellation: Number
    anomaly: Number
    reserve_relocating: Number
    special: Number
    drift: Number
    ascent: Number
    operational_orbit: Number
    orbit_heights: str
    phase_vs_plane: str
    plane_vs_time: str
    total_operational: Number

    def to_dict(self, nan_as_none: bool = False) -> Dict[str, Any]:
        d = asdict(self)
        if nan_as_none:
            d = {k: (None if isinstance(v, float) and math.isnan(v) else v) for k, v in d.items()}
        return d


RECORD_COLUMNS = [f.name for f in fields(MissionStats)]

# --- field parsers -----------------------------------------------------------

def parse_int(text: str) -> Number:
    """Parse the leading base-10 integer of text; NaN if there is none.

    "42" -> 42, "12*" -> 12, "" -> nan, "N/A" -> nan
    """
    m = _INT_PREFIX_RE.match(text or "")
    if not m:
        return float("nan")
    return int(m.group(1))


def parse_mission(mission: str) -> Tuple[int, int, int]:
    """Return (number, year, day) from 'Launch <N>, <YYYY>-<DDD>'; zeros if absent."""
    m = _MISSION_RE.search(mission or "")
    if not m:
        return (0, 0, 0)
    return (int(m.group(1)), int(m.group(2)), int(m.group(3)))


def mission_date(year: int, day: int) -> str:
    """YYYY-MM-DD for a 1-based day of year; '' when the year is unknown."""
    if year < 1:
        return ""
    try:
        return (date(year, 1, 1) + timedelta(days=day - 1)).isoformat()
    except (ValueError, OverflowError):
        # year/day outside datetime's range
        return ""


def operational_total(values: Dict[str, Number]) -> Number:
    total = values["total_working"]
    for col in NON_OPERATIONAL_COLUMNS:
        total -= values[col]
    return total


def cell_text(cell: Tag) -> str:
    return cell.get_text().strip()


def image_src(cell: Tag) -> str:
    img = cell.find("img")
    if img is None:
        return ""
    return img.get("src") or ""

# --- document walking --------------------------------------------------------

def find_last_table(soup: BeautifulSoup) -> Optional[Tag]:
    tables = soup.find_all("table")
    return tables[-1] if tables else None


def parse_row(cells: Sequence[Tag]) -> MissionStats:
    if len(cells) != EXPECTED_CELLS:
        raise ValueError(f"expected {EXPECTED_CELLS} cells, got {len(cells)}")

    mission = cell_text(cells[0])
    number, year, day = parse_mission(mission)
    metrics = {col: parse_int(cell_text(cells[i])) for i, col in enumerate(METRIC_COLUMNS, start=1)}
    images = {col: image_src(cells[i]) for col, i in zip(IMAGE_COLUMNS, _IMAGE_CELLS)}

    return MissionStats(
        mission=mission,
        number=number,
        year=year,
        day=day,
        date=mission_date(year, day),
        **metrics,
        **images,
        total_operational=operational_total(metrics),
    )


def parse_html(html: str) -> List[MissionStats]:
    """Extract one record per 23-cell row of the last table, in table order."""
    soup = BeautifulSoup(html, "lxml")
    table = find_last_table(soup)
    if table is None:
        logger.warning("No <table> element found; extracted 0 records")
        return []

    records = []
    skipped = 0
    for tr in table.find_all("tr"):
        cells = tr.find_all("td")
        if len(cells) != EXPECTED_CELLS:
            skipped += 1
            continue
        records.append(parse_row(cells))
    logger.info("Parsed %d records (%d non-data rows skipped)", len(records), skipped)
    return records


def extract_stats(html: str) -> List[MissionStats]:
    records = parse_html(html)
    nan_rows = sum(
        1 for r in records
        if any(isinstance(getattr(r, c), float) and math.isnan(getattr(r, c)) for c in METRIC_COLUMNS)
    )
    if nan_rows:
        logger.warning("%d records contain unparseable counts (kept as NaN)", nan_rows)
    return records


def records_to_frame(records: Sequence[MissionStats]) -> pd.DataFrame:
    """Records as a DataFrame; count columns are float64 so NaN survives."""
    df = pd.DataFrame([r.to_dict() for r in records], columns=RECORD_COLUMNS)
    for c in METRIC_COLUMNS + ["total_operational"]:
        df[c] = pd.to_numeric(df[c], errors="coerce").astype("float64")
    for c in ["number", "year", "day"]:
        df[c] = pd.to_numeric(df[c], errors="coerce").astype("Int64")
    return df

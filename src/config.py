# Data source + record contract
# SOURCE_URL: https://planet4589.org/space/con/star/stats.html
#   The last <table> on the page holds one row per launch with 23 <td> cells:
#     0      mission label, e.g. "Starlink Group 10-13 (Launch 203, 2024-196)"
#     1..19  satellite counts (see METRIC_COLUMNS, in order)
#     20..22 <img> links to auxiliary charts (see IMAGE_COLUMNS, in order)
#
# Every setting below can be overridden with the matching STATS_* env var.
import os
from pathlib import Path

SOURCE_URL = os.getenv("STATS_SOURCE_URL", "https://planet4589.org/space/con/star/stats.html").strip()
SOURCE_FILE = os.getenv("STATS_SOURCE_FILE", "").strip()
FETCH_TIMEOUT = float(os.getenv("STATS_FETCH_TIMEOUT", "30"))
USER_AGENT = "starlink-stats-tracker/1.0 (+https://planet4589.org/space/con/star/stats.html)"

DATABASE_URL = os.getenv("STATS_DATABASE_URL", "sqlite:///data/starlink_stats.db").strip()
FRESHNESS_HOURS = int(os.getenv("STATS_FRESHNESS_HOURS", "25"))
STATUS_LIMIT = int(os.getenv("STATS_STATUS_LIMIT", "5"))

DATA_RAW = Path("data/raw")
SNAPSHOT_INDEX = Path("data/_snapshots/index.json")
LOG_DIR = Path("logs")
REPORTS_DIR = Path("reports")

EXPECTED_CELLS = 23
MISSION_PATTERN = r"Launch (\d+), (\d+)-(\d+)"

METRIC_COLUMNS = [
    "total_sats_launched",
    "failed_to_orbit",
    "early_deorbit",
    "disposal_complete",
    "reentry_after_fail",
    "total_down",
    "total_in_orbit",
    "screened",
    "failed_decaying",
    "graveyard",
    "total_working",
    "disposal_underway",
    "out_of_constellation",
    "anomaly",
    "reserve_relocating",
    "special",
    "drift",
    "ascent",
    "operational_orbit",
]
IMAGE_COLUMNS = ["orbit_heights", "phase_vs_plane", "plane_vs_time"]

# Subtracted from total_working to get total_operational
NON_OPERATIONAL_COLUMNS = [
    "disposal_underway",
    "out_of_constellation",
    "anomaly",
    "reserve_relocating",
    "special",
    "drift",
    "ascent",
]

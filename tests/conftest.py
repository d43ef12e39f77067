"""
Shared fixtures: a stats page builder and a throwaway SQLite store.
"""

import pytest

from src.config import METRIC_COLUMNS
from src.store import create_store

TINTIN = "Tintin Prototypes (Launch 0, 2018-020)"
GROUP_10_13 = "Starlink Group 10-13 (Launch 203, 2024-196)"
GROUP_6_1 = "Starlink Group 6-1 (Launch 100, 2023-042)"

# total_working=60 and the non-operational states of the worked example
DEFAULT_COUNTS = {
    "total_sats_launched": 62,
    "failed_to_orbit": 0,
    "early_deorbit": 1,
    "disposal_complete": 1,
    "reentry_after_fail": 0,
    "total_down": 2,
    "total_in_orbit": 60,
    "screened": 0,
    "failed_decaying": 0,
    "graveyard": 0,
    "total_working": 60,
    "disposal_underway": 1,
    "out_of_constellation": 2,
    "anomaly": 1,
    "reserve_relocating": 0,
    "special": 0,
    "drift": 3,
    "ascent": 2,
    "operational_orbit": 51,
}


def img_cell(src):
    return f'<td><a href="{src}"><img src="{src}" width="40"></a></td>'


def make_row(mission, images=("img/h.png", "img/p.png", "img/t.png"), **overrides):
    """Build a 23-cell data row; overrides replace raw cell text per metric column."""
    counts = {c: str(v) for c, v in DEFAULT_COUNTS.items()}
    counts.update({k: str(v) for k, v in overrides.items()})
    cells = [f"<td> <b>{mission}</b> </td>"]
    cells += [f"<td> {counts[c]} </td>" for c in METRIC_COLUMNS]
    cells += [img_cell(src) if src else "<td></td>" for src in images]
    return "<tr>" + "".join(cells) + "</tr>"


def make_page(*rows, legend=True):
    legend_table = ""
    if legend:
        # a 23-cell row outside the last table must be ignored
        legend_table = "<table><tr>" + "<td>x</td>" * 23 + "</tr></table>"
    header = "<tr>" + "<th>Mission</th>" + "<th>n</th>" * 22 + "</tr>"
    footer = '<tr><td colspan="23">Totals are approximate</td></tr>'
    body = "".join(rows)
    return (
        "<html><head><title>Starlink statistics</title></head><body>"
        f"<h1>Starlink</h1>{legend_table}"
        f"<table>{header}{body}{footer}</table>"
        "</body></html>"
    )


@pytest.fixture
def stats_html():
    return make_page(make_row(TINTIN), make_row(GROUP_6_1), make_row(GROUP_10_13))


@pytest.fixture
def engine(tmp_path):
    eng = create_store(f"sqlite:///{tmp_path / 'stats.db'}", connect_args={"check_same_thread": False})
    yield eng
    eng.dispose()

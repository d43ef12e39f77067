import math

import pandas as pd
import pytest

from src.config import METRIC_COLUMNS
from src.extract_stats import (
    RECORD_COLUMNS,
    extract_stats,
    mission_date,
    operational_total,
    parse_html,
    parse_int,
    parse_mission,
    records_to_frame,
)
from tests.conftest import DEFAULT_COUNTS, GROUP_10_13, TINTIN, make_page, make_row


class TestMissionParsing:

    def test_prototype_launch(self):
        assert parse_mission(TINTIN) == (0, 2018, 20)

    def test_group_launch(self):
        assert parse_mission(GROUP_10_13) == (203, 2024, 196)

    def test_unmatched_label_defaults_to_zero(self):
        assert parse_mission("Notes: see below") == (0, 0, 0)
        assert parse_mission("") == (0, 0, 0)


class TestMissionDate:

    def test_day_one_based(self):
        assert mission_date(2018, 20) == "2018-01-20"
        assert mission_date(2019, 1) == "2019-01-01"

    def test_leap_year(self):
        assert mission_date(2024, 196) == "2024-07-14"

    def test_unknown_year(self):
        assert mission_date(0, 0) == ""


class TestParseInt:

    @pytest.mark.parametrize("text,expected", [("42", 42), ("0", 0), ("12*", 12), ("-3", -3)])
    def test_numbers(self, text, expected):
        assert parse_int(text) == expected

    @pytest.mark.parametrize("text", ["", "N/A", "-", "abc"])
    def test_not_a_number(self, text):
        assert math.isnan(parse_int(text))


def test_operational_total_worked_example():
    values = dict(total_working=60, disposal_underway=1, out_of_constellation=2, anomaly=1,
                  reserve_relocating=0, special=0, drift=3, ascent=2)
    assert operational_total(values) == 51


class TestParseHtml:

    def test_only_23_cell_rows_of_last_table(self, stats_html):
        records = parse_html(stats_html)
        assert [r.mission for r in records] == [
            TINTIN,
            "Starlink Group 6-1 (Launch 100, 2023-042)",
            GROUP_10_13,
        ]

    def test_short_and_long_rows_skipped(self):
        short = "<tr>" + "<td>1</td>" * 22 + "</tr>"
        long = "<tr>" + "<td>1</td>" * 24 + "</tr>"
        html = make_page(short, make_row(TINTIN), long)
        assert len(parse_html(html)) == 1

    def test_record_fields(self, stats_html):
        rec = parse_html(stats_html)[0]
        assert rec.mission == TINTIN
        assert (rec.number, rec.year, rec.day, rec.date) == (0, 2018, 20, "2018-01-20")
        for c in METRIC_COLUMNS:
            assert getattr(rec, c) == DEFAULT_COUNTS[c]
        assert rec.total_operational == 51
        assert rec.orbit_heights == "img/h.png"
        assert rec.plane_vs_time == "img/t.png"

    def test_missing_image_is_empty_string(self):
        html = make_page(make_row(TINTIN, images=("img/h.png", None, None)))
        rec = parse_html(html)[0]
        assert rec.orbit_heights == "img/h.png"
        assert rec.phase_vs_plane == ""
        assert rec.plane_vs_time == ""

    def test_no_table(self):
        assert parse_html("<html><body><p>Page moved</p></body></html>") == []
        assert parse_html("") == []

    def test_reparse_is_identical(self, stats_html):
        first = [r.to_dict() for r in parse_html(stats_html)]
        second = [r.to_dict() for r in parse_html(stats_html)]
        assert first == second

    def test_non_numeric_cell_propagates_nan(self):
        html = make_page(make_row(TINTIN, anomaly="N/A"), make_row(GROUP_10_13))
        bad, good = extract_stats(html)
        assert math.isnan(bad.anomaly)
        assert math.isnan(bad.total_operational)
        assert bad.total_working == 60
        assert bad.drift == 3
        assert good.anomaly == 1
        assert good.total_operational == 51

    def test_footnote_row_with_23_cells(self):
        html = make_page(make_row("Footnote: includes test satellites"))
        rec = parse_html(html)[0]
        assert (rec.number, rec.year, rec.day, rec.date) == (0, 0, 0, "")


class TestRecordsToFrame:

    def test_columns_and_nan(self):
        html = make_page(make_row(TINTIN, screened=""), make_row(GROUP_10_13))
        df = records_to_frame(extract_stats(html))
        assert list(df.columns) == RECORD_COLUMNS
        assert df["screened"].dtype == "float64"
        assert pd.isna(df.loc[0, "screened"])
        assert df.loc[1, "screened"] == 0
        assert df["number"].tolist() == [0, 203]

    def test_empty(self):
        df = records_to_frame([])
        assert df.empty
        assert list(df.columns) == RECORD_COLUMNS


def test_to_dict_nan_as_none():
    rec = parse_html(make_page(make_row(TINTIN, drift="?")))[0]
    d = rec.to_dict(nan_as_none=True)
    assert d["drift"] is None
    assert d["total_operational"] is None
    assert d["total_working"] == 60


def _unclosed_row(mission, counts):
    # cells and rows left open; the parser must close them at the next <td>/<tr>
    cells = [f"<td>{mission}"] + [f"<td>{c}" for c in counts] + ["<td><img src=img/h.png>", "<td>", "<td>"]
    return "<tr>" + "".join(cells)


def test_unclosed_cells_and_rows():
    counts = [DEFAULT_COUNTS[c] for c in METRIC_COLUMNS]
    html = (
        "<html><body><table>"
        "<tr><th>Mission" + "<th>n" * 22
        + _unclosed_row(TINTIN, counts)
        + _unclosed_row(GROUP_10_13, counts)
        + "</table></body></html>"
    )
    records = parse_html(html)
    assert len(records) == 2
    first, second = records
    assert first.mission == TINTIN
    assert second.mission == GROUP_10_13
    assert first.total_working == 60
    assert first.operational_orbit == 51
    assert first.total_operational == 51
    assert first.orbit_heights == "img/h.png"
    assert first.phase_vs_plane == ""


@pytest.mark.parametrize("text", ["٣", "١٢", "５"])
def test_non_ascii_digits_are_not_numbers(text):
    assert math.isnan(parse_int(text))


def test_mission_pattern_ascii_only():
    assert parse_mission("Launch ٣, ٢٠١٨-٠٢٠") == (0, 0, 0)

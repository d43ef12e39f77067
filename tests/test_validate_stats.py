import pytest

from src.errors import EmptyResultError
from src.extract_stats import extract_stats
from src.validate_stats import build_schema, validate_records
from tests.conftest import GROUP_10_13, TINTIN, make_page, make_row


def test_clean_batch(stats_html):
    report = validate_records(extract_stats(stats_html))
    assert report.rows == 3
    assert report.clean
    assert report.nan_counts == {}


def test_nan_counts_are_reported_not_raised():
    html = make_page(make_row(TINTIN, anomaly="N/A", drift=""), make_row(GROUP_10_13, drift="?"))
    report = validate_records(extract_stats(html))
    assert report.rows == 2
    assert report.nan_counts == {"anomaly": 1, "drift": 2}
    assert not report.clean


def test_unmatched_missions_counted():
    html = make_page(make_row("Footnote row"), make_row(TINTIN))
    report = validate_records(extract_stats(html))
    assert report.unmatched_missions == 1


def test_negative_count_is_a_schema_failure_not_an_error():
    html = make_page(make_row(TINTIN, graveyard="-4"))
    report = validate_records(extract_stats(html))
    assert report.schema_failures >= 1


def test_empty_batch_raises():
    with pytest.raises(EmptyResultError):
        validate_records([])


def test_schema_covers_record_columns():
    schema = build_schema()
    assert "mission" in schema.columns
    assert "total_operational" in schema.columns
    assert "plane_vs_time" in schema.columns

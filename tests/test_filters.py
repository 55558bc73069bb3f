"""
Filter engine tests
"""
from datetime import date

import pytest

from his_dashboard.analysis.filters import (
    FilterState,
    apply_filters,
    clear_field_filters,
    date_preset,
    default_date_range,
    filter_options,
    normalize_filters,
)


def test_empty_filter_is_identity(records):
    assert FilterState().is_empty()
    assert apply_filters(records, FilterState()).equals(records)


def test_exact_match_fields(records):
    out = apply_filters(records, FilterState(department="Khoa Ngoại"))
    assert out["visit_id"].tolist() == ["V2"]

    out = apply_filters(records, FilterState(department="Khoa"))
    assert out.empty


def test_service_name_is_case_insensitive_substring(records):
    out = apply_filters(records, FilterState(service_name="SIÊU"))
    assert out["visit_id"].tolist() == ["V3"]

    out = apply_filters(records, FilterState(service_name="(máu"))
    assert out.empty


def test_date_range_includes_whole_end_day(row, now):
    from his_dashboard.transforms.transform_records import normalize_records

    df = normalize_records([
        row(NGAY_THANH_TOAN="20240331235959"),
        row(NGAY_THANH_TOAN="20240401000000"),
        row(NGAY_THANH_TOAN="20240301"),
    ], now=now)
    out = apply_filters(df, FilterState(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31)))
    assert len(out) == 2


def test_date_range_needs_both_bounds(records):
    out = apply_filters(records, FilterState(start_date=date(2030, 1, 1)))
    assert len(out) == len(records)


def test_filters_compose_and_are_idempotent(records):
    f = FilterState(start_date=date(2024, 4, 1), end_date=date(2024, 4, 30), doctor="Unknown")
    once = apply_filters(records, f)
    assert once["visit_id"].tolist() == ["V3"]
    assert apply_filters(once, f).equals(once)


def test_normalize_filters_from_loose_input():
    f = normalize_filters({"start_date": "2024-03-01", "end_date": "bad", "department": "  Khoa Nội ", "doctor": None})
    assert f.start_date == date(2024, 3, 1)
    assert f.end_date is None
    assert f.department == "Khoa Nội"
    assert f.doctor == ""
    assert normalize_filters(None) == FilterState()


def test_clear_field_filters_keeps_dates():
    f = FilterState(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31), department="K", service_name="x")
    assert clear_field_filters(f) == FilterState(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))


def test_default_date_range_spans_dataset(records):
    span = default_date_range(records, FilterState(department="K"))
    assert span.start_date == date(2024, 3, 3)
    assert span.end_date == date(2024, 4, 20)
    assert span.department == "K"


@pytest.mark.parametrize("name, expected", [
    ("today", (date(2024, 5, 15), date(2024, 5, 15))),
    ("yesterday", (date(2024, 5, 14), date(2024, 5, 14))),
    ("last7days", (date(2024, 5, 9), date(2024, 5, 15))),
    ("thisMonth", (date(2024, 5, 1), date(2024, 5, 31))),
    ("lastMonth", (date(2024, 4, 1), date(2024, 4, 30))),
    ("thisQuarter", (date(2024, 4, 1), date(2024, 6, 30))),
    ("thisYear", (date(2024, 1, 1), date(2024, 12, 31))),
])
def test_date_presets(name, expected):
    assert date_preset(name, today=date(2024, 5, 15)) == expected


def test_last_month_across_year_boundary():
    assert date_preset("lastMonth", today=date(2024, 1, 10)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_unknown_preset():
    with pytest.raises(ValueError):
        date_preset("nextWeek")


def test_filter_options_are_sorted_distinct(records):
    options = filter_options(records)
    assert options["department"] == ["Khoa Ngoại", "Khoa Nội"]
    assert options["doctor"] == ["BS An", "BS Binh", "Unknown"]


def test_unparseable_filter_date_is_logged(caplog):
    with caplog.at_level("WARNING", logger="his_dashboard.analysis.filters"):
        f = normalize_filters({"start_date": "15/03/2024"})
    assert f.start_date is None
    assert "15/03/2024" in caplog.text

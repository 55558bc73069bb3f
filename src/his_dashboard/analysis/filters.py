"""
Filter state and filter application over the canonical record frame.

A FilterState is immutable; every change produces a new one and every view is
recomputed from (records, filters). Empty fields mean "no constraint".
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timedelta
import pandas as pd

log = logging.getLogger(__name__)

EXACT_FIELDS = (
    "department",
    "doctor",
    "service_group",
    "object_type",
    "visit_type_code",
    "diagnosis_code",
    "treatment_outcome",
    "discharge_status",
)
SUBSTRING_FIELDS = ("service_name",)

DATE_PRESETS = ("today", "yesterday", "last7days", "thisMonth", "lastMonth", "thisQuarter", "thisYear")


@dataclass(frozen=True)
class FilterState:
    start_date: date | None = None
    end_date: date | None = None
    department: str = ""
    doctor: str = ""
    service_group: str = ""
    object_type: str = ""
    visit_type_code: str = ""
    diagnosis_code: str = ""
    treatment_outcome: str = ""
    discharge_status: str = ""
    service_name: str = ""

    def is_empty(self) -> bool:
        return all(not getattr(self, f.name) for f in fields(self))


def _as_date(value: object) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        log.warning("Ignoring unparseable filter date: %r", value)
        return None

def normalize_filters(raw: dict | None) -> FilterState:
    """Build a FilterState from loosely-typed input (form values, CLI args)."""
    raw = raw or {}
    values = {name: str(raw.get(name) or "").strip() for name in EXACT_FIELDS + SUBSTRING_FIELDS}
    return FilterState(
        start_date=_as_date(raw.get("start_date")),
        end_date=_as_date(raw.get("end_date")),
        **values,
    )

def apply_filters(records: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    mask = pd.Series(True, index=records.index)

    # the range applies only with both bounds; the end day is included whole
    if filters.start_date and filters.end_date:
        start = pd.Timestamp(filters.start_date)
        end = pd.Timestamp(filters.end_date) + pd.Timedelta(days=1)
        mask &= (records["stat_date"] >= start) & (records["stat_date"] < end)

    for name in EXACT_FIELDS:
        value = getattr(filters, name)
        if value:
            mask &= records[name] == value

    for name in SUBSTRING_FIELDS:
        value = getattr(filters, name)
        if value:
            mask &= records[name].str.lower().str.contains(value.lower(), regex=False)

    return records.loc[mask]

def clear_field_filters(filters: FilterState) -> FilterState:
    """Drop every field constraint, keep the date range."""
    return FilterState(start_date=filters.start_date, end_date=filters.end_date)

def default_date_range(records: pd.DataFrame, filters: FilterState | None = None) -> FilterState:
    """Span the date range over the whole dataset (used right after a load)."""
    filters = filters or FilterState()
    if records.empty:
        return filters
    return replace(
        filters,
        start_date=records["stat_date"].min().date(),
        end_date=records["stat_date"].max().date(),
    )

def _month_start(d: date) -> date:
    return d.replace(day=1)

def _month_end(d: date) -> date:
    nxt = (d.replace(day=28) + timedelta(days=4)).replace(day=1)
    return nxt - timedelta(days=1)

def date_preset(name: str, today: date | None = None) -> tuple[date, date]:
    today = today or date.today()
    if name == "today":
        return today, today
    if name == "yesterday":
        y = today - timedelta(days=1)
        return y, y
    if name == "last7days":
        return today - timedelta(days=6), today
    if name == "thisMonth":
        return _month_start(today), _month_end(today)
    if name == "lastMonth":
        last = _month_start(today) - timedelta(days=1)
        return _month_start(last), _month_end(last)
    if name == "thisQuarter":
        first_month = 3 * ((today.month - 1) // 3) + 1
        start = date(today.year, first_month, 1)
        return start, _month_end(date(today.year, first_month + 2, 1))
    if name == "thisYear":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    raise ValueError(f"Unknown date preset: {name}")

def filter_options(records: pd.DataFrame) -> dict[str, list[str]]:
    """Sorted distinct values for every exact-match filter field."""
    return {
        name: sorted(records[name].astype(str).unique().tolist())
        for name in EXACT_FIELDS
        if name in records.columns
    }

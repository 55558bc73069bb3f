"""
Chart-ready rollups over a (filtered) canonical record frame.

Every rollup is a list of flat dicts so it can be handed to a chart, a table
or `export_csv` as is. Descending sorts are stable: equal values keep
first-seen order.
"""

from __future__ import annotations
import logging
from typing import Sequence
import pandas as pd
from his_dashboard.analysis.categories import CATEGORY_LABELS, category_totals
from his_dashboard.core.config import (
    DOCTOR_PIE_SLICES,
    MAX_TREND_DIAGNOSES,
    SERVICE_PIE_SLICES,
    TOP_DEPARTMENTS,
    TOP_DIAGNOSES,
    TOP_DOCTORS,
    TOP_SERVICES,
)

log = logging.getLogger(__name__)

OTHER_SLICE = "Khác"
NOT_RECORDED = "Chưa ghi nhận"
UNKNOWN = "Unknown"

Rollup = list[dict[str, object]]

ROLLUP_NAMES = (
    "by_date",
    "cost_by_department",
    "visits_by_department",
    "cost_by_object_type",
    "top_diagnoses",
    "top_services",
    "top_services_by_quantity",
    "top_services_pie",
    "doctors",
    "by_doctor",
    "doctor_pie",
    "cost_by_group",
    "by_treatment_outcome",
    "by_discharge_status",
    "revenue_by_discharge_status",
    "revenue_structure",
)

def _rows(df: pd.DataFrame) -> Rollup:
    return df.to_dict("records")

def _desc(df: pd.DataFrame, col: str) -> pd.DataFrame:
    return df.sort_values(col, ascending=False, kind="stable")

def _name_value(series: pd.Series) -> pd.DataFrame:
    return pd.DataFrame({"name": series.index.astype(str), "value": series.to_numpy()})

def _with_other_slice(rows: Rollup, keep: int, value_key: str = "value") -> Rollup:
    """Top `keep` slices plus one 'Khác' slice for the rest; empty slices dropped."""
    head = [{"name": r["name"], "value": r[value_key]} for r in rows[:keep]]
    rest = sum(r[value_key] for r in rows[keep:])
    return [r for r in head + [{"name": OTHER_SLICE, "value": rest}] if r["value"] > 0]

def rollup_by_date(records: pd.DataFrame) -> Rollup:
    day = records["stat_date"].dt.strftime("%Y-%m-%d")
    grouped = records.groupby(day, sort=True)
    df = pd.DataFrame({
        "total_cost": grouped["line_amount"].sum(),
        "total_visits": grouped["visit_id"].nunique(),
    })
    df.insert(0, "label", pd.to_datetime(df.index).strftime("%d/%m"))
    df.insert(0, "date", df.index)
    return _rows(df.reset_index(drop=True))

def rollup_departments(records: pd.DataFrame) -> dict[str, Rollup]:
    grouped = records.groupby("department", sort=False)
    cost = _desc(_name_value(grouped["line_amount"].sum()), "value")
    visits = _desc(_name_value(grouped["visit_id"].nunique()), "value")
    return {
        "cost_by_department": _rows(cost.head(TOP_DEPARTMENTS)),
        "visits_by_department": _rows(visits.head(TOP_DEPARTMENTS)),
    }

def rollup_object_types(records: pd.DataFrame) -> Rollup:
    return _rows(_name_value(records.groupby("object_type", sort=False)["line_amount"].sum()))

def rollup_diagnoses(records: pd.DataFrame) -> Rollup:
    grouped = records.groupby("diagnosis_code", sort=False)
    df = _name_value(grouped["visit_id"].nunique())
    df["cost"] = grouped["line_amount"].sum().to_numpy()
    return _rows(_desc(df, "value").head(TOP_DIAGNOSES))

def rollup_services(records: pd.DataFrame) -> dict[str, Rollup]:
    grouped = records.groupby("service_name", sort=False)
    df = _name_value(grouped["line_amount"].sum())
    df["qty"] = grouped["quantity"].sum().to_numpy()
    # a service is labelled with the group of its first line
    df["group"] = grouped["service_group"].first().to_numpy()

    ranked = _desc(df, "value")
    top = ranked.head(TOP_SERVICES)[["name", "value", "qty"]]
    pie = [{"name": f"{r['name']} ({r['group']})", "value": r["value"]} for r in _rows(ranked)]
    return {
        "top_services": _rows(top),
        "top_services_by_quantity": _rows(_desc(top, "qty")),
        "top_services_pie": _with_other_slice(pie, SERVICE_PIE_SLICES),
    }

def rollup_doctors(records: pd.DataFrame) -> dict[str, Rollup]:
    known = records[records["doctor"] != UNKNOWN]
    grouped = known.groupby("doctor", sort=False)
    df = _name_value(grouped["line_amount"].sum()).rename(columns={"value": "cost"})
    df["visits"] = grouped["visit_id"].nunique().to_numpy()
    doctors = _rows(_desc(df, "cost"))
    return {
        "doctors": doctors,
        "by_doctor": doctors[:TOP_DOCTORS],
        "doctor_pie": _with_other_slice(doctors, DOCTOR_PIE_SLICES, value_key="cost"),
    }

def rollup_groups(records: pd.DataFrame) -> Rollup:
    return _rows(_desc(_name_value(records.groupby("service_group", sort=False)["line_amount"].sum()), "value"))

def rollup_visit_outcomes(records: pd.DataFrame) -> dict[str, Rollup]:
    """Outcome and discharge status counted once per visit, from its first line."""
    first_lines = records.drop_duplicates(subset=["visit_id"], keep="first")
    outcome = first_lines["treatment_outcome"].replace("", NOT_RECORDED)
    status = first_lines["discharge_status"].replace("", NOT_RECORDED)
    all_status = records["discharge_status"].replace("", NOT_RECORDED)
    revenue = records["line_amount"].groupby(all_status, sort=False).sum()
    return {
        "by_treatment_outcome": _rows(_name_value(outcome.groupby(outcome, sort=False).size())),
        "by_discharge_status": _rows(_name_value(status.groupby(status, sort=False).size())),
        "revenue_by_discharge_status": _rows(_desc(_name_value(revenue), "value")),
    }

def rollup_revenue_structure(records: pd.DataFrame) -> Rollup:
    """Revenue per category; uses the same classifier as the KPI category totals."""
    return [
        {"name": CATEGORY_LABELS[cat], "value": amount}
        for cat, amount in category_totals(records).items()
        if amount != 0
    ]

def compute_rollups(records: pd.DataFrame) -> dict[str, Rollup]:
    if records.empty:
        return {name: [] for name in ROLLUP_NAMES}

    rollups: dict[str, Rollup] = {
        "by_date": rollup_by_date(records),
        "cost_by_object_type": rollup_object_types(records),
        "top_diagnoses": rollup_diagnoses(records),
        "cost_by_group": rollup_groups(records),
        "revenue_structure": rollup_revenue_structure(records),
    }
    rollups.update(rollup_departments(records))
    rollups.update(rollup_services(records))
    rollups.update(rollup_doctors(records))
    rollups.update(rollup_visit_outcomes(records))
    log.debug("Computed %d rollups over %d rows", len(rollups), len(records))
    return {name: rollups[name] for name in ROLLUP_NAMES}

def diagnosis_trend(records: pd.DataFrame, codes: Sequence[str]) -> Rollup:
    """Monthly distinct-visit counts for a handful of diagnosis codes.

    Rows look like {"date": "03/2024", "J18": 4, "I10": 2}; a code missing in a
    month is absent from that row.
    """
    codes = list(dict.fromkeys(codes))
    if len(codes) > MAX_TREND_DIAGNOSES:
        raise ValueError(f"At most {MAX_TREND_DIAGNOSES} diagnoses can be compared")
    subset = records[records["diagnosis_code"].isin(codes)]
    if subset.empty:
        return []

    period = subset["stat_date"].dt.to_period("M")
    counts = subset.groupby([period, subset["diagnosis_code"]], sort=True)["visit_id"].nunique()
    trend = []
    for month, per_code in counts.groupby(level=0, sort=True):
        row = {"date": month.strftime("%m/%Y")}
        row.update({code: int(n) for (_, code), n in per_code.items()})
        trend.append(row)
    return trend

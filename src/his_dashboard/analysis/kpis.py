"""
Summary statistics over a (filtered) canonical record frame.

Visit-level figures are computed on one row per visit: the visit's cost is the
sum of its lines, its treatment days the max over its lines, its type the
highest-priority type seen on any line. Category revenue is per line.
"""

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
import pandas as pd
from his_dashboard.analysis.categories import Category, VisitType, category_totals, resolve_visit_types

log = logging.getLogger(__name__)

UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class KPIStats:
    total_visits: int = 0
    total_patients: int = 0
    total_cost: float = 0.0
    total_rows: int = 0
    active_departments: int = 0
    active_doctors: int = 0
    avg_treatment_days: float = 0.0
    top_diagnosis: str = NOT_AVAILABLE
    top_service: str = NOT_AVAILABLE

    count_consultation: int = 0
    count_outpatient_treatment: int = 0
    count_inpatient: int = 0
    count_other: int = 0

    revenue_consultation: float = 0.0
    revenue_outpatient_treatment: float = 0.0
    revenue_inpatient: float = 0.0
    revenue_other: float = 0.0

    medicine_revenue: float = 0.0
    imaging_revenue: float = 0.0
    lab_revenue: float = 0.0
    bed_revenue: float = 0.0
    other_category_revenue: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


VISIT_TYPE_FIELDS = {
    VisitType.CONSULTATION: "consultation",
    VisitType.OUTPATIENT_TREATMENT: "outpatient_treatment",
    VisitType.INPATIENT: "inpatient",
    VisitType.OTHER: "other",
}
CATEGORY_FIELDS = {
    Category.MEDICINE: "medicine_revenue",
    Category.IMAGING: "imaging_revenue",
    Category.LAB: "lab_revenue",
    Category.BED: "bed_revenue",
    Category.OTHER: "other_category_revenue",
}

def _top_key(values: pd.Series) -> str:
    """Key of the largest positive value; first seen wins a tie."""
    if values.empty or values.max() <= 0:
        return NOT_AVAILABLE
    return str(values.idxmax())

def summarize_visits(records: pd.DataFrame) -> pd.DataFrame:
    """One row per visit_id: cost, max treatment days, resolved visit type."""
    grouped = records.groupby("visit_id", sort=False)
    visits = pd.DataFrame({
        "cost": grouped["line_amount"].sum(),
        "treatment_days": grouped["treatment_days"].max(),
    })
    visits["visit_type"] = resolve_visit_types(records).astype(int)
    return visits

def compute_kpis(records: pd.DataFrame) -> KPIStats:
    if records.empty:
        return KPIStats()

    visits = summarize_visits(records)
    stats: dict = {
        "total_visits": int(len(visits)),
        "total_patients": int(records["patient_id"].nunique()),
        "total_cost": float(records["line_amount"].sum()),
        "total_rows": int(len(records)),
        "active_departments": int(records.loc[records["department"] != UNKNOWN, "department"].nunique()),
        "active_doctors": int(records.loc[records["doctor"] != UNKNOWN, "doctor"].nunique()),
        "avg_treatment_days": float(visits["treatment_days"].mean()),
        "top_diagnosis": _top_key(records.groupby("diagnosis_code", sort=False)["visit_id"].nunique()),
        "top_service": _top_key(records.groupby("service_name", sort=False)["line_amount"].sum()),
    }

    by_type = visits.groupby("visit_type")["cost"].agg(["size", "sum"])
    for visit_type, suffix in VISIT_TYPE_FIELDS.items():
        key = int(visit_type)
        if key in by_type.index:
            stats[f"count_{suffix}"] = int(by_type.at[key, "size"])
            stats[f"revenue_{suffix}"] = float(by_type.at[key, "sum"])

    for cat, amount in category_totals(records).items():
        stats[CATEGORY_FIELDS[cat]] = amount

    kpis = KPIStats(**stats)
    log.debug("KPIs over %d rows: %d visits, cost %.0f", kpis.total_rows, kpis.total_visits, kpis.total_cost)
    return kpis

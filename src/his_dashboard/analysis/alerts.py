"""
Month-over-month anomaly alerts: the latest calendar month in the frame is
compared with the calendar month before it.
"""

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
import pandas as pd
from his_dashboard.core.config import (
    ALERT_GROWTH_THRESHOLD,
    DIAGNOSIS_MIN_PREV_VISITS,
    SERVICE_MIN_PREV_COST,
)

log = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
DANGER = "danger"


@dataclass(frozen=True)
class AlertItem:
    severity: str
    message: str
    detail: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AlertThresholds:
    growth: float = ALERT_GROWTH_THRESHOLD
    diagnosis_min_prev_visits: int = DIAGNOSIS_MIN_PREV_VISITS
    service_min_prev_cost: float = SERVICE_MIN_PREV_COST


def format_vnd(value: float) -> str:
    return f"{value:,.0f}".replace(",", ".") + " ₫"

def _growth(current: pd.Series, previous: pd.Series, floor: float) -> pd.Series:
    """Growth ratio per key present in both months with previous > floor."""
    prev = previous.reindex(current.index)
    ok = prev.notna() & (prev > floor)
    return ((current[ok] - prev[ok]) / prev[ok]).astype(float)

def split_months(records: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Rows of the latest month and of the month before it."""
    period = records["stat_date"].dt.to_period("M")
    latest = period.max()
    return records[period == latest], records[period == latest - 1]

def detect_alerts(records: pd.DataFrame, thresholds: AlertThresholds | None = None) -> list[AlertItem]:
    thresholds = thresholds or AlertThresholds()
    if records.empty:
        return []

    current, previous = split_months(records)
    if previous.empty:
        return [AlertItem(
            INFO,
            "Thiếu dữ liệu kỳ trước",
            "Không thể so sánh tăng trưởng do thiếu dữ liệu tháng trước trong bộ lọc hiện tại.",
        )]

    alerts: list[AlertItem] = []

    dept_growth = _growth(
        current.groupby("department", sort=False)["line_amount"].sum(),
        previous.groupby("department", sort=False)["line_amount"].sum(),
        floor=0,
    )
    for dept, growth in dept_growth.items():
        if growth > thresholds.growth:
            alerts.append(AlertItem(
                DANGER,
                f"Khoa {dept} tăng chi phí cao",
                f"Tăng {growth * 100:.1f}% so với tháng trước.",
            ))

    cur_icd = current.groupby("diagnosis_code", sort=False)["visit_id"].nunique()
    icd_growth = _growth(
        cur_icd,
        previous.groupby("diagnosis_code", sort=False)["visit_id"].nunique(),
        floor=thresholds.diagnosis_min_prev_visits,
    )
    for icd, growth in icd_growth.items():
        if growth > thresholds.growth:
            alerts.append(AlertItem(
                WARNING,
                f"Bệnh {icd} tăng số lượt",
                f"Tăng {growth * 100:.1f}% ({int(cur_icd[icd])} lượt) so với tháng trước.",
            ))

    cur_svc = current.groupby("service_name", sort=False)["line_amount"].sum()
    prev_svc = previous.groupby("service_name", sort=False)["line_amount"].sum()
    svc_growth = _growth(cur_svc, prev_svc, floor=thresholds.service_min_prev_cost)
    for svc, growth in svc_growth.items():
        if growth > thresholds.growth:
            delta = float(cur_svc[svc] - prev_svc[svc])
            alerts.append(AlertItem(
                DANGER,
                f"Dịch vụ tăng chi phí bất thường: {svc}",
                f"Tăng {growth * 100:.1f}% ({format_vnd(delta)}) so với tháng trước.",
            ))

    log.info("Alerts: %d (latest month rows=%d, previous month rows=%d)",
             len(alerts), len(current), len(previous))
    return alerts

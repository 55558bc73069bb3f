"""
Plain-text summary report and CSV export of rollups.
"""

from __future__ import annotations
from datetime import date
from typing import Iterable, Mapping
from his_dashboard.analysis.alerts import AlertItem, format_vnd
from his_dashboard.analysis.kpis import KPIStats

def format_number(value: float) -> str:
    """vi-VN grouping: 1.234.567 (up to 3 decimals, trailing zeros dropped)."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    whole, _, frac = text.partition(".")
    whole = whole.replace(",", ".")
    return f"{whole},{frac}" if frac else whole

def format_currency(value: float) -> str:
    return format_vnd(value)

def _top_lines(rows: list[Mapping], fmt, suffix: str = "", limit: int = 5) -> str:
    lines = [f"{i}. {r['name']}: {fmt(r['value'])}{suffix}" for i, r in enumerate(rows[:limit], start=1)]
    return "\n".join(lines) if lines else "- Không có dữ liệu."

def _alert_lines(alerts: Iterable[AlertItem]) -> str:
    lines = [f"- [{a.severity.upper()}] {a.message}: {a.detail}" for a in alerts]
    return "\n".join(lines) if lines else "- Không có cảnh báo nổi bật."

def build_text_report(
    kpis: KPIStats,
    rollups: dict[str, list[Mapping]],
    alerts: list[AlertItem],
    start_date: date | None = None,
    end_date: date | None = None,
) -> str:
    start = start_date.isoformat() if start_date else "..."
    end = end_date.isoformat() if end_date else "..."
    sections = [
        "BÁO CÁO TỔNG HỢP HOẠT ĐỘNG KHÁM CHỮA BỆNH",
        f"Thời gian: {start} đến {end}",
        "---------------------------------------------",
        "1. TỔNG QUAN",
        f"- Tổng lượt điều trị: {format_number(kpis.total_visits)}",
        f"  + Khám bệnh (01): {format_number(kpis.count_consultation)} ({format_currency(kpis.revenue_consultation)})",
        f"  + ĐT Ngoại trú (02): {format_number(kpis.count_outpatient_treatment)} "
        f"({format_currency(kpis.revenue_outpatient_treatment)})",
        f"  + Nội trú (03): {format_number(kpis.count_inpatient)} ({format_currency(kpis.revenue_inpatient)})",
        f"  + Khác: {format_number(kpis.count_other)} ({format_currency(kpis.revenue_other)})",
        f"- Tổng bệnh nhân: {format_number(kpis.total_patients)}",
        f"- Tổng chi phí: {format_currency(kpis.total_cost)}",
        f"- Số ngày điều trị TB: {kpis.avg_treatment_days:.1f} ngày",
        "",
        "2. TOP 5 KHOA (CHI PHÍ CAO NHẤT)",
        _top_lines(rollups.get("cost_by_department", []), format_currency),
        "",
        "3. TOP 5 BỆNH ICD (SỐ LƯỢT CAO NHẤT)",
        _top_lines(rollups.get("top_diagnoses", []), format_number, suffix=" lượt"),
        "",
        "4. TOP 5 DỊCH VỤ (CHI PHÍ CAO NHẤT)",
        _top_lines(rollups.get("top_services", []), format_currency),
        "",
        "5. CẢNH BÁO",
        _alert_lines(alerts),
        "",
        "6. KHUYẾN NGHỊ",
        "- Kiểm soát chi phí tại các khoa Top đầu.",
        "- Rà soát chỉ định với các dịch vụ chi phí cao bất thường.",
    ]
    return "\n".join(sections)

def _csv_value(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f'"{value}"'

def export_csv(rows: list[Mapping]) -> str:
    """Header from the first row's keys, every value double-quoted.

    Values are not escaped, so the output is meant for spreadsheets rather
    than for reading back.
    """
    if not rows:
        return ""
    header = ",".join(str(k) for k in rows[0].keys())
    body = "\n".join(",".join(_csv_value(v) for v in row.values()) for row in rows)
    return f"{header}\n{body}"

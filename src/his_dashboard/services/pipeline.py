"""
Pipeline service - load a dataset once, then derive every dashboard view from
(records, filters).
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO
import httpx
import pandas as pd
from his_dashboard.analysis.alerts import AlertItem, AlertThresholds, detect_alerts
from his_dashboard.analysis.charts import compute_rollups
from his_dashboard.analysis.filters import FilterState, apply_filters
from his_dashboard.analysis.kpis import KPIStats, compute_kpis
from his_dashboard.core.errors import EmptyDatasetError
from his_dashboard.extract.extract_records import read_records, read_sheet, validate_columns
from his_dashboard.reporting.report import build_text_report
from his_dashboard.transforms.transform_records import normalize_records

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    filters: FilterState
    records: pd.DataFrame = field(repr=False, compare=False)
    kpis: KPIStats
    rollups: dict
    alerts: list[AlertItem]

    def report(self) -> str:
        return build_text_report(
            self.kpis, self.rollups, self.alerts,
            self.filters.start_date, self.filters.end_date,
        )


def is_url(source) -> bool:
    return isinstance(source, str) and source.strip().lower().startswith(("http://", "https://"))

def prepare_records(raw: pd.DataFrame, now: datetime | None = None) -> pd.DataFrame:
    """Schema gate, normalize, empty-result gate."""
    validate_columns(raw)
    records = normalize_records(raw, now=now)
    if records.empty:
        log.error("Source has a valid header but no rows")
        raise EmptyDatasetError()
    return records

def load_dataset(
    source: str | Path | IO,
    now: datetime | None = None,
    client: httpx.Client | None = None,
) -> pd.DataFrame:
    """Read a CSV file or spreadsheet URL into the canonical record frame."""
    try:
        raw = read_sheet(source, client=client) if is_url(source) else read_records(source)
        records = prepare_records(raw, now=now)
    except Exception as e:
        log.error("Dataset load failed: %s", e)
        raise
    log.info("Dataset loaded: %d records, %d visits", len(records), records["visit_id"].nunique())
    return records

def build_view(
    records: pd.DataFrame,
    filters: FilterState | None = None,
    thresholds: AlertThresholds | None = None,
) -> DashboardView:
    filters = filters or FilterState()
    filtered = apply_filters(records, filters)
    log.debug("Filters kept %d of %d rows", len(filtered), len(records))
    return DashboardView(
        filters=filters,
        records=filtered,
        kpis=compute_kpis(filtered),
        rollups=compute_rollups(filtered),
        alerts=detect_alerts(filtered, thresholds),
    )

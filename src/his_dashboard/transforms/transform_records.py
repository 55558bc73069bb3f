"""
Transform raw HIS line items into canonical records: resolve dates, pick the
statistics date, coerce numbers, default empty labels, derive period fields.

Every input row yields exactly one output row, in input order. Bad values are
defaulted, never dropped.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Iterable, Mapping
import numpy as np
import pandas as pd
from his_dashboard.transforms.dates import resolve_date

log = logging.getLogger(__name__)

# source column -> canonical column, for plain text fields
TEXT_FIELDS = {
    "MA_LK": ("visit_id", ""),
    "MA_BN": ("patient_id", ""),
    "TEN_DOI_TUONG": ("object_type", "Unknown"),
    "KET_QUA_DTRI": ("treatment_outcome", "Unknown"),
    "CHAN_DOAN": ("diagnosis_text", ""),
    "BAC_SY": ("doctor", "Unknown"),
    "KHOA": ("department", "Unknown"),
    "TEN_NHOM": ("service_group", "Other"),
    "DICH_VU": ("service_name", "Unknown"),
    "MA_LOAI_KCB": ("visit_type_code", ""),
    "TINH_TRANG_RV": ("discharge_status", ""),
}
DATE_FIELDS = {
    "NGAY_VAO_VIEN": "admission_date",
    "NGAY_VAO_KHOA": "department_admission_date",
    "NGAY_RA_VIEN": "discharge_date",
    "NGAY_THANH_TOAN": "payment_date",
}
NUMERIC_FIELDS = {
    "SO_LUONG": "quantity",
    "THANH_TIEN": "line_amount",
}

CANONICAL_COLUMNS = [
    "record_id", "object_type", "visit_id", "patient_id",
    "admission_date", "department_admission_date", "discharge_date", "payment_date",
    "stat_date", "treatment_days", "treatment_outcome",
    "diagnosis_code", "diagnosis_text", "doctor", "department",
    "service_group", "service_name", "quantity", "line_amount",
    "visit_type_code", "discharge_status",
    "year", "month", "quarter",
]

LEADING_INT_RX = r"^\s*([+-]?\d+)"
MAX_TREATMENT_DAYS = int(np.iinfo(np.int32).max)

def _as_frame(raw) -> pd.DataFrame:
    if isinstance(raw, pd.DataFrame):
        df = raw
    else:
        df = pd.DataFrame(list(raw))
    df = df.reset_index(drop=True)
    # every source value is text; absent values become ""
    return df.astype(object).where(df.notna(), "").astype(str)

def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    return df[name]

def parse_amount(series: pd.Series) -> pd.Series:
    """Strip thousands separators and parse; anything unparseable is 0."""
    cleaned = series.astype(str).str.replace(",", "", regex=False).str.strip()
    values = pd.to_numeric(cleaned, errors="coerce").astype(float)
    return values.where(np.isfinite(values), 0.0)

def _resolve_dates(series: pd.Series) -> pd.Series:
    resolved = series.map(resolve_date)
    return pd.to_datetime(resolved, errors="coerce")

def _treatment_days(source: pd.Series, admission: pd.Series, discharge: pd.Series) -> pd.Series:
    given = pd.to_numeric(source.str.extract(LEADING_INT_RX, expand=False), errors="coerce").astype(float)
    given_ok = given.notna() & (given >= 0) & (given <= MAX_TREATMENT_DAYS)

    # whole days between the two dates, counted inclusively
    elapsed = (discharge - admission) / pd.Timedelta(days=1)
    computed = (np.trunc(elapsed) + 1).clip(lower=0)

    days = given.where(given_ok, computed)
    return days.fillna(0).astype(int)

def normalize_records(raw: pd.DataFrame | Iterable[Mapping[str, object]], now: datetime | None = None) -> pd.DataFrame:
    """Normalize raw rows into the canonical line-item frame.

    `now` is the statistics date of rows with no resolvable date at all;
    defaults to the processing time.
    """
    df = _as_frame(raw)
    now = now or datetime.now()
    log.info("Normalizing %d raw rows", len(df))

    out = pd.DataFrame(index=df.index)
    for src, (dst, default) in TEXT_FIELDS.items():
        values = _column(df, src)
        out[dst] = values.where(values != "", default)

    out["diagnosis_code"] = _column(df, "MA_BENH").str.strip().replace("", "Unknown")

    for src, dst in DATE_FIELDS.items():
        out[dst] = _resolve_dates(_column(df, src))

    stat_date = out["payment_date"].fillna(out["discharge_date"]).fillna(out["admission_date"])
    fallback = stat_date.isna()
    if fallback.any():
        log.warning("%d rows have no resolvable date; using processing time", int(fallback.sum()))
    out["stat_date"] = pd.to_datetime(stat_date.fillna(pd.Timestamp(now)))

    for src, dst in NUMERIC_FIELDS.items():
        out[dst] = parse_amount(_column(df, src))

    out["treatment_days"] = _treatment_days(
        _column(df, "SO_NGAY_DTRI"), out["admission_date"], out["discharge_date"]
    )

    out["record_id"] = [f"{i}-{v}" for i, v in enumerate(out["visit_id"])]
    out["year"] = out["stat_date"].dt.year.astype(int)
    out["month"] = out["stat_date"].dt.month.astype(int)
    out["quarter"] = out["stat_date"].dt.quarter.astype(int)

    out = out[CANONICAL_COLUMNS].reset_index(drop=True)
    log.info("Normalized %d records", len(out))
    return out

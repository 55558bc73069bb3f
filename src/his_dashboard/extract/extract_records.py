"""
Extract raw HIS line items:
- local CSV files (path or uploaded buffer)
- CSV text exported from a shared spreadsheet URL
Returns a DataFrame of strings, header names untouched.
"""

from __future__ import annotations
import io
import logging
import re
from pathlib import Path
from typing import IO
import httpx
import pandas as pd
from his_dashboard.core.config import FETCH_TIMEOUT, REQUIRED_COLUMNS, SHEETS_EXPORT_HOST
from his_dashboard.core.errors import (
    EmptyDatasetError,
    FetchError,
    InvalidSheetUrlError,
    SchemaError,
    SheetAccessDeniedError,
    SheetNotFoundError,
)

log = logging.getLogger(__name__)

SHEET_ID_RX = re.compile(r"/d/([a-zA-Z0-9\-_]+)")

def _read_csv(source) -> pd.DataFrame:
    try:
        return pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyDatasetError() from e

def read_records(source: str | Path | IO) -> pd.DataFrame:
    """Read a CSV file (path or file-like) into a raw string DataFrame."""
    name = getattr(source, "name", source)
    log.info("Loading records CSV: %s", name)
    df = _read_csv(source)
    log.info("Extracted %d raw rows (%d columns)", len(df), len(df.columns))
    return df

def read_records_text(text: str) -> pd.DataFrame:
    """Parse CSV text already held in memory (e.g. a fetched export)."""
    df = _read_csv(io.StringIO(text))
    log.info("Parsed %d raw rows from CSV text", len(df))
    return df

def validate_columns(df: pd.DataFrame, required: list[str] = REQUIRED_COLUMNS) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        log.error("Missing required columns: %s", missing)
        raise SchemaError(missing)

def extract_sheet_id(url: str) -> str:
    m = SHEET_ID_RX.search(url or "")
    if not m:
        raise InvalidSheetUrlError(url)
    return m.group(1)

def build_export_url(sheet_id: str, host: str = SHEETS_EXPORT_HOST) -> str:
    return f"{host}/spreadsheets/d/{sheet_id}/export?format=csv"

def fetch_sheet_csv(url: str, client: httpx.Client | None = None, timeout: float = FETCH_TIMEOUT) -> str:
    """Download the CSV export of a shared spreadsheet and return its text."""
    export_url = build_export_url(extract_sheet_id(url))
    log.info("Fetching spreadsheet export: %s", export_url)

    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = client.get(export_url)
    except httpx.HTTPError as e:
        log.error("Spreadsheet fetch failed: %s", e)
        raise FetchError("Lỗi kết nối đến Google Sheet.") from e
    finally:
        if owns_client:
            client.close()

    status = response.status_code
    if status == 404:
        log.error("Spreadsheet not found (404): %s", export_url)
        raise SheetNotFoundError(status)
    if status in (401, 403):
        log.error("Spreadsheet not shared (%d): %s", status, export_url)
        raise SheetAccessDeniedError(status)
    if not response.is_success:
        log.error("Spreadsheet fetch returned %d", status)
        raise FetchError(f"Lỗi tải dữ liệu ({status})", status)

    log.info("Fetched %d bytes", len(response.content))
    return response.text

def read_sheet(url: str, client: httpx.Client | None = None) -> pd.DataFrame:
    return read_records_text(fetch_sheet_csv(url, client=client))

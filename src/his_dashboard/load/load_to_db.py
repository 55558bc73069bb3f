"""
Snapshot the canonical line items into the database.
- One table, replaced wholesale on every load (no per-row updates).
- Assumes the frame came out of normalize_records.
"""

from __future__ import annotations
import logging
import pandas as pd
from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from his_dashboard.core.db import create_tables
from his_dashboard.models import LineItem
from his_dashboard.transforms.transform_records import CANONICAL_COLUMNS

log = logging.getLogger(__name__)

def _native(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value

def _nan_to_none_dicts(df: pd.DataFrame, cols: list[str]) -> list[dict]:
    """Convert a DataFrame subset to list-of-dicts with NaN/NaT as None."""
    return [{k: _native(v) for k, v in rec.items()} for rec in df[cols].to_dict("records")]

def load_records(records: pd.DataFrame, engine: Engine | None = None) -> int:
    engine = create_tables(engine)
    cols = [c for c in CANONICAL_COLUMNS if c in records.columns]
    log.info("Line items: writing %d rows", len(records))

    with Session(engine) as session:
        try:
            removed = session.execute(delete(LineItem)).rowcount
            objs = [LineItem(**rec) for rec in _nan_to_none_dicts(records, cols)]
            session.bulk_save_objects(objs)
            session.commit()
            log.info("Load committed: replaced %d rows with %d", removed or 0, len(objs))
        except Exception as e:
            session.rollback()
            log.error("Load failed; rolled back: %s", e, exc_info=True)
            raise

    return len(objs)

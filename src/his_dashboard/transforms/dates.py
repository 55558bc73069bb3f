"""
Resolve the date encodings found in HIS exports.

Accepted forms, tried in order:
    YYYYMMDDhhmmss, YYYYMMDD, dd/mm/yyyy, yyyy-mm-dd, mm/dd/yyyy, dd-mm-yyyy

Slash dates are read day-first; mm/dd/yyyy is only used when the day-first
reading is not a real date (e.g. 03/25/2024). Everything is built from local
calendar fields, no timezone conversion.
"""

from __future__ import annotations
import re
from datetime import datetime

COMPACT_TS_RX = re.compile(r"^(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})$")
COMPACT_DATE_RX = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
SLASH_RX = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_RX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
DASH_RX = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")

def _build(y, m, d, hh=0, mm=0, ss=0) -> datetime | None:
    # datetime() rejects out-of-range fields instead of rolling them over
    try:
        return datetime(int(y), int(m), int(d), int(hh), int(mm), int(ss))
    except ValueError:
        return None

def _day_first(m: re.Match) -> datetime | None:
    return _build(m.group(3), m.group(2), m.group(1))

def _month_first(m: re.Match) -> datetime | None:
    return _build(m.group(3), m.group(1), m.group(2))

def _iso(m: re.Match) -> datetime | None:
    return _build(m.group(1), m.group(2), m.group(3))

# (pattern, builder) pairs applied to the date part, first hit wins
DATE_PART_RULES = [
    (SLASH_RX, _day_first),
    (ISO_RX, _iso),
    (SLASH_RX, _month_first),
    (DASH_RX, _day_first),
]

def resolve_date(text) -> datetime | None:
    if text is None:
        return None
    s = str(text).strip()
    if not s:
        return None

    m = COMPACT_TS_RX.match(s)
    if m:
        dt = _build(*m.groups())
        if dt is not None:
            return dt

    m = COMPACT_DATE_RX.match(s)
    if m:
        dt = _build(*m.groups())
        if dt is not None:
            return dt

    date_part = s.split(" ")[0]
    for rx, builder in DATE_PART_RULES:
        m = rx.match(date_part)
        if m:
            dt = builder(m)
            if dt is not None:
                return dt
    return None

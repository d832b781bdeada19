from __future__ import annotations
import re
import datetime as dt
from typing import Any, Optional
from dateutil import parser as dtparser
from .utils import cell_text

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
EXCEL_EPOCH = dt.datetime(1899, 12, 30, tzinfo=dt.timezone.utc)
# 1927-05-18 .. 9999-12-31 as Excel serials; smaller numbers read as years or days
EXCEL_MIN_SERIAL = 10000
EXCEL_MAX_SERIAL = 2958465

_SERIAL_RE = re.compile(r"^\d+(\.\d+)?$")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")

def _to_ms(d: dt.datetime) -> int:
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return int((d - EPOCH).total_seconds() * 1000)

def _component(s: str) -> Optional[int]:
    m = _LEADING_INT_RE.match(s)
    return int(m.group(1)) if m else None

def _from_day_month_year(txt: str) -> int:
    parts = txt.split("/")
    if len(parts) != 3:
        return 0
    # literal order: the exporting school writes dd/mm/yyyy
    d, m, y = (_component(p) for p in parts)
    if d is None or m is None or y is None:
        return 0
    try:
        return _to_ms(dt.datetime(y, m, d))
    except (ValueError, OverflowError):
        return 0

def _is_excel_serial(txt: str) -> bool:
    return bool(_SERIAL_RE.match(txt)) and EXCEL_MIN_SERIAL <= float(txt) <= EXCEL_MAX_SERIAL

def _from_excel_serial(txt: str) -> int:
    return _to_ms(EXCEL_EPOCH + dt.timedelta(days=float(txt)))


def resolve_timestamp(value: Any) -> int:
    """
    Date cell -> epoch milliseconds, 0 when unreadable. Never raises.

    - 'dd/mm/yyyy' (time suffix ignored)
    - plain numbers of 10000 and up: Excel serial days
    - anything else: dateutil
    Naive values are taken as UTC.
    """
    if isinstance(value, dt.date):
        try:
            if isinstance(value, dt.datetime):
                return _to_ms(value)
            return _to_ms(dt.datetime(value.year, value.month, value.day))
        except (ValueError, TypeError, OverflowError):
            # pandas NaT is a datetime too
            return 0

    txt = cell_text(value)
    if not txt:
        return 0
    if "/" in txt:
        return _from_day_month_year(txt)
    if _is_excel_serial(txt):
        return _from_excel_serial(txt)
    try:
        return _to_ms(dtparser.parse(txt))
    except (ValueError, OverflowError):
        return 0

# backtest_horizon/core/normalize.py
from __future__ import annotations
import math
import re
import pandas as pd
from pandas.errors import OutOfBoundsDatetime

from .model import Cell, Numeric, Text

_DECORATION = re.compile(r"[$,%]")
_RELATIVE_WORDS = frozenset({"now", "today"})
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

def coerce_cell(raw: str) -> Cell:
    """
    '$1,234.50' -> Numeric(1234.5), '12%' -> Numeric(12.0), 'abc' -> Text('abc'),
    '' -> Text(''). Non-numeric cells keep their trimmed original text.
    """
    original = raw.strip()
    cleaned = _DECORATION.sub("", original).strip()
    if cleaned and _NUMBER.fullmatch(cleaned):
        value = float(cleaned)
        if math.isfinite(value):
            return Numeric(value)
    return Text(original)

def as_float(cell: Cell | None) -> float:
    if isinstance(cell, Numeric) and math.isfinite(cell.value):
        return cell.value
    return math.nan

def as_text(cell: Cell | None) -> str | None:
    if isinstance(cell, Text):
        return cell.value
    return None

def to_timestamp(cell: Cell | None) -> pd.Timestamp | None:
    """
    UTC timestamp for a cell, or None when absent/unparseable.
    Numbers are epoch milliseconds (0 counts as absent); naive text is UTC.
    Values outside the representable range and relative words ("now") are absent.
    """
    try:
        if isinstance(cell, Numeric):
            if cell.value == 0 or not math.isfinite(cell.value):
                return None
            ts = pd.to_datetime(cell.value, unit="ms", utc=True, errors="coerce")
        elif isinstance(cell, Text):
            text = cell.value.strip()
            if not text or text.lower() in _RELATIVE_WORDS:
                return None
            ts = pd.to_datetime(text, utc=True, errors="coerce")
        else:
            return None
    except (OverflowError, OutOfBoundsDatetime, ValueError):
        return None
    return None if pd.isna(ts) else ts

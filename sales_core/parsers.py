"""Cell-level parsers: raw spreadsheet values -> typed scalars.

Every parser returns ``None`` for input it cannot interpret; none of them raise.
"""

from __future__ import annotations

import math
import numbers
import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd

CellValue = Union[None, str, int, float, date, datetime]

EXCEL_EPOCH_OFFSET = 25569
UNIX_EPOCH = datetime(1970, 1, 1)

_NUMBER_STRIP_RE = re.compile(r"MXN|[\s$,]", re.IGNORECASE)
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_ISO_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}")
_DMY_DATE_RE = re.compile(r"^([0-9]{2})/([0-9]{2})/([0-9]{4})")

TRUE_TOKENS = frozenset({"si", "sí", "yes", "true", "1"})
FALSE_TOKENS = frozenset({"no", "false", "0"})


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def parse_number(value: CellValue) -> Optional[float]:
    if is_missing(value):
        return None
    if _is_number(value):
        out = float(value)
        return out if math.isfinite(out) else None
    s = _NUMBER_STRIP_RE.sub("", str(value)).strip()
    if not _DECIMAL_RE.fullmatch(s):
        return None
    out = float(s)
    return out if math.isfinite(out) else None


def excel_serial_to_date(serial: object) -> Optional[date]:
    """Convert a spreadsheet day serial (1899-12-30 epoch) to a calendar date."""
    if not _is_number(serial):
        return None
    serial = float(serial)
    if not math.isfinite(serial) or serial <= 0:
        return None
    try:
        return (UNIX_EPOCH + timedelta(days=serial - EXCEL_EPOCH_OFFSET)).date()
    except OverflowError:
        return None


def date_to_excel_serial(value: date) -> int:
    return (value - UNIX_EPOCH.date()).days + EXCEL_EPOCH_OFFSET


def _native_date(value: object) -> Optional[date]:
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, datetime):
        return value.date()
    return value  # type: ignore[return-value]


def parse_date_smart(value: CellValue) -> Optional[date]:
    """Parse a cell into a date.

    Accepted shapes, in order: native date/datetime/Timestamp, numeric
    spreadsheet serial, ``YYYY-MM-DD...`` text, ``DD/MM/YYYY`` text, and
    anything ``pandas.to_datetime`` understands.
    """
    if is_missing(value):
        return None
    if isinstance(value, date):
        return _native_date(value)
    if _is_number(value):
        parsed = excel_serial_to_date(value)
        if parsed is not None:
            return parsed

    s = str(value).strip()
    if _ISO_DATE_RE.match(s):
        try:
            return date.fromisoformat(s[:10])
        except ValueError:
            return None

    m = _DMY_DATE_RE.match(s)
    if m:
        try:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        except ValueError:
            return None

    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def normalize_key(value: object) -> str:
    """Accent-free, lower-cased, trimmed text for lookups and grouping keys."""
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


def parse_tri_boolean(value: CellValue) -> Optional[bool]:
    if is_missing(value):
        return None
    if _is_number(value) and float(value).is_integer():
        value = str(int(value))
    token = normalize_key(value)
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    return None


def parse_label(value: CellValue, placeholder: str) -> str:
    """Identifier text for display/grouping; blank cells become ``placeholder``."""
    if is_missing(value):
        return placeholder
    if _is_number(value) and float(value).is_integer():
        return str(int(value))
    s = str(value).strip()
    return s or placeholder

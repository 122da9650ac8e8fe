from __future__ import annotations

import logging
import zipfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from sales_core.errors import SourceDataError
from sales_core.records import NormalizedDataset, normalize_rows
from sales_core.report import SalesReport, build_report
from sales_core.settings import ReportSettings, SourceSettings, load_source_settings

logger = logging.getLogger(__name__)

FileSignature = Tuple[str, int, int]


def file_signature(path: Path) -> FileSignature:
    try:
        stat = path.stat()
    except OSError as exc:
        raise SourceDataError(f"Sales export not found: {path}") from exc
    return (str(path.resolve()), stat.st_mtime_ns, stat.st_size)


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def clean_headers(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip())
    df = df.loc[:, [not c.startswith("Unnamed:") for c in df.columns]]
    return drop_duplicate_columns(df)


def read_source_frame(path: Path, sheet_name: Optional[str] = None) -> pd.DataFrame:
    """Read the first sheet (or ``sheet_name``) of an Excel export, or a CSV export."""
    if not path.exists():
        raise SourceDataError(f"Sales export not found: {path}")
    try:
        if path.suffix.lower() == ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(path, sheet_name=sheet_name if sheet_name else 0)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile) as exc:
        raise SourceDataError(f"Could not read sales export {path}: {exc}") from exc
    if not isinstance(df, pd.DataFrame):
        raise SourceDataError(f"Sales export {path} did not produce a table")
    return clean_headers(df)


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Raw row mappings with pandas missing markers replaced by ``None``."""
    if df.empty:
        return []
    obj = df.astype(object)
    return obj.where(obj.notna(), None).to_dict(orient="records")


def read_source_rows(path: Path, sheet_name: Optional[str] = None) -> List[Dict[str, Any]]:
    rows = frame_to_rows(read_source_frame(path, sheet_name))
    logger.info("read %d rows from %s", len(rows), path)
    return rows


def load_dataset(source: Optional[SourceSettings] = None) -> NormalizedDataset:
    source = source or load_source_settings()
    return normalize_rows(read_source_rows(source.data_path, source.sheet_name))


@lru_cache(maxsize=4)
def _load_report_cached(signature: FileSignature, sheet_name: Optional[str], settings: ReportSettings) -> SalesReport:
    path = Path(signature[0])
    return build_report(load_dataset(SourceSettings(data_path=path, sheet_name=sheet_name)), settings)


def load_report(
    source: Optional[SourceSettings] = None,
    settings: Optional[ReportSettings] = None,
) -> SalesReport:
    """Build the report for the configured export, reusing it while the file is unchanged."""
    source = source or load_source_settings()
    signature = file_signature(source.data_path)
    return _load_report_cached(signature, source.sheet_name, settings or ReportSettings())

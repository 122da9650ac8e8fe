"""Core (UI-agnostic) sales dashboard logic.

This package contains:
- cell parsers (numbers, spreadsheet dates, fuzzy yes/no flags)
- record normalization (export row -> CanonicalRecord)
- aggregation primitives and the fixed report view set (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- source loading (XLSX/CSV -> raw rows)
"""

from __future__ import annotations

from sales_core.errors import SourceDataError
from sales_core.records import CanonicalRecord, NormalizedDataset, RecordNormalizer, normalize_rows
from sales_core.report import VIEW_NAMES, SalesReport, build_report, compute_kpis, format_kpi_block
from sales_core.settings import ChartTheme, ReportSettings, SourceSettings

__all__ = [
    "CanonicalRecord",
    "ChartTheme",
    "NormalizedDataset",
    "RecordNormalizer",
    "ReportSettings",
    "SalesReport",
    "SourceDataError",
    "SourceSettings",
    "VIEW_NAMES",
    "build_report",
    "compute_kpis",
    "format_kpi_block",
    "normalize_rows",
]

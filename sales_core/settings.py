from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_PATH = PROJECT_ROOT / "data" / "ventas.xlsx"


@dataclass(frozen=True)
class ChartTheme:
    primary: str = "#4f46e5"
    secondary: str = "#06b6d4"
    success: str = "#10b981"
    warning: str = "#f59e0b"
    danger: str = "#ef4444"
    purple: str = "#8b5cf6"
    height: int = 300


@dataclass(frozen=True)
class ReportSettings:
    top_dates: int = 10
    top_products: int = 10
    top_products_combo: int = 15
    top_municipalities: int = 10
    top_days: int = 20
    histogram_bins: int = 30
    region_pie_max: int = 8
    region_bar_limit: int = 15
    advertising_days: int = 30
    theme: ChartTheme = field(default_factory=ChartTheme)


@dataclass(frozen=True)
class SourceSettings:
    data_path: Path = DEFAULT_DATA_PATH
    sheet_name: Optional[str] = None


def _bounded_int(raw: Mapping[str, object], key: str, default: int, lo: int, hi: int) -> int:
    value = raw.get(key, default)
    try:
        value = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        value = default
    return max(lo, min(hi, value))


def normalize_settings(raw: Optional[Mapping[str, object]] = None) -> ReportSettings:
    """Clamp request-supplied knobs; the histogram always uses the default 30 bins."""
    raw = raw or {}
    defaults = ReportSettings()
    t = raw.get("theme") or {}
    theme = ChartTheme(**{k: v for k, v in dict(t).items() if k in ChartTheme.__dataclass_fields__})  # type: ignore[call-overload]
    return ReportSettings(
        top_dates=_bounded_int(raw, "top_dates", defaults.top_dates, 1, 200),
        top_products=_bounded_int(raw, "top_products", defaults.top_products, 1, 200),
        top_products_combo=_bounded_int(raw, "top_products_combo", defaults.top_products_combo, 1, 200),
        top_municipalities=_bounded_int(raw, "top_municipalities", defaults.top_municipalities, 1, 200),
        top_days=_bounded_int(raw, "top_days", defaults.top_days, 1, 366),
        region_pie_max=_bounded_int(raw, "region_pie_max", defaults.region_pie_max, 1, 100),
        region_bar_limit=_bounded_int(raw, "region_bar_limit", defaults.region_bar_limit, 1, 200),
        advertising_days=_bounded_int(raw, "advertising_days", defaults.advertising_days, 1, 366),
        theme=theme,
    )


def load_source_settings(environ: Optional[Mapping[str, str]] = None) -> SourceSettings:
    """Read the export location from ``VENTAS_DATA_PATH`` / ``VENTAS_SHEET``."""
    env = os.environ if environ is None else environ
    raw_path = (env.get("VENTAS_DATA_PATH") or "").strip()
    path = Path(raw_path).expanduser() if raw_path else DEFAULT_DATA_PATH
    if path.suffix.lower() not in {".xlsx", ".xls", ".csv"}:
        raise ValueError(f"VENTAS_DATA_PATH must point to an .xlsx, .xls or .csv file, got {path}")
    sheet = (env.get("VENTAS_SHEET") or "").strip() or None
    return SourceSettings(data_path=path, sheet_name=sheet)

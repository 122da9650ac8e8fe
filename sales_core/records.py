from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from sales_core.parsers import (
    is_missing,
    parse_date_smart,
    parse_label,
    parse_number,
    parse_tri_boolean,
)

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
MAX_DELIVERY_DAYS = 60

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES_ES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]

DEFAULT_COLUMN_MAP: Dict[str, Tuple[str, ...]] = {
    "sale_date": ("Fecha Venta",),
    "transit_date": ("FechaCamino",),
    "delivery_date": ("FechaEntrega",),
    "is_advertised": ("Venta por publicidad",),
    "total_amount": ("Total (MXN)",),
    "product_revenue": ("Ingresos por productos (MXN)",),
    "unit_count": ("Unidades",),
    "unit_price": ("Precio unitario de venta de la publicación (MXN)",),
    "fees_and_taxes": ("Cargo por venta e impuestos",),
    "shipping_cost": ("Costos de envío",),
    "product_id": ("IDproducto",),
    "state": ("Estado",),
    "municipality": ("Municipio/Alcaldía", "Municipio/Alcaldia"),
}

DATE_FIELDS = ("sale_date", "transit_date", "delivery_date")
NUMBER_FIELDS = (
    "total_amount",
    "product_revenue",
    "unit_count",
    "unit_price",
    "fees_and_taxes",
    "shipping_cost",
)
LABEL_FIELDS = ("product_id", "state", "municipality")
FLAG_FIELDS = ("is_advertised",)


@dataclass(frozen=True)
class CanonicalRecord:
    """One normalized transaction. Derived fields are filled in at construction."""

    sale_date: Optional[date] = None
    transit_date: Optional[date] = None
    delivery_date: Optional[date] = None
    is_advertised: Optional[bool] = None
    total_amount: Optional[float] = None
    product_revenue: Optional[float] = None
    unit_count: Optional[float] = None
    unit_price: Optional[float] = None
    fees_and_taxes: Optional[float] = None
    shipping_cost: Optional[float] = None
    product_id: str = PLACEHOLDER
    state: str = PLACEHOLDER
    municipality: str = PLACEHOLDER

    absolute_sale_value: Optional[float] = field(init=False, default=None)
    delivery_days: Optional[int] = field(init=False, default=None)
    period_key: Optional[str] = field(init=False, default=None)
    weekday: Optional[str] = field(init=False, default=None)
    month_name: Optional[str] = field(init=False, default=None)
    day_of_month: Optional[int] = field(init=False, default=None)
    operating_margin: float = field(init=False, default=0.0)
    date_key: Optional[str] = field(init=False, default=None)

    def __post_init__(self) -> None:
        derived: Dict[str, Any] = {
            "absolute_sale_value": abs(self.total_amount) if self.total_amount is not None else None,
            "delivery_days": delivery_days_between(self.sale_date, self.delivery_date),
            "operating_margin": (
                (self.product_revenue or 0.0) + (self.fees_and_taxes or 0.0) + (self.shipping_cost or 0.0)
            ),
        }
        d = self.sale_date
        if d is not None:
            derived.update(
                period_key=f"{d.year}-{d.month:02d}",
                weekday=DAY_NAMES[d.weekday()],
                month_name=MONTH_NAMES_ES[d.month - 1],
                day_of_month=d.day,
                date_key=d.isoformat(),
            )
        for name, value in derived.items():
            object.__setattr__(self, name, value)


def delivery_days_between(sale_date: Optional[date], delivery_date: Optional[date]) -> Optional[int]:
    if sale_date is None or delivery_date is None:
        return None
    days = (delivery_date - sale_date).days
    if 0 <= days <= MAX_DELIVERY_DAYS:
        return days
    return None


@dataclass(frozen=True)
class DateSpan:
    start: date
    end: date

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} a {self.end.isoformat()}"


def date_span(records: Iterable[CanonicalRecord]) -> Optional[DateSpan]:
    dates = sorted(r.sale_date for r in records if r.sale_date is not None)
    if not dates:
        return None
    return DateSpan(start=dates[0], end=dates[-1])


def span_label(span: Optional[DateSpan]) -> str:
    return span.label if span is not None else PLACEHOLDER


@dataclass(frozen=True)
class NormalizedDataset:
    records: Tuple[CanonicalRecord, ...]
    span: Optional[DateSpan]

    def __len__(self) -> int:
        return len(self.records)


_PARSERS: Dict[str, Callable[[Any], Any]] = {
    **{name: parse_date_smart for name in DATE_FIELDS},
    **{name: parse_number for name in NUMBER_FIELDS},
    **{name: parse_tri_boolean for name in FLAG_FIELDS},
    **{name: (lambda v: parse_label(v, PLACEHOLDER)) for name in LABEL_FIELDS},
}


def validate_column_map(column_map: Mapping[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
    unknown = sorted(set(column_map) - set(_PARSERS))
    if unknown:
        raise ValueError(f"Unknown canonical fields in column map: {unknown}")
    missing = sorted(set(_PARSERS) - set(column_map))
    if missing:
        raise ValueError(f"Column map is missing fields: {missing}")

    out: Dict[str, Tuple[str, ...]] = {}
    owner: Dict[str, str] = {}
    for name, columns in column_map.items():
        if isinstance(columns, str):
            columns = (columns,)
        cols = tuple(str(c) for c in columns if c is not None and str(c).strip())
        if not cols:
            raise ValueError(f"Column map entry for {name!r} has no source columns")
        for col in cols:
            if col in owner and owner[col] != name:
                raise ValueError(f"Source column {col!r} mapped to both {owner[col]!r} and {name!r}")
            owner[col] = name
        out[name] = cols
    return out


class RecordNormalizer:
    """Maps raw export rows onto :class:`CanonicalRecord` through a fixed column map."""

    def __init__(self, column_map: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        self.column_map = validate_column_map(column_map or DEFAULT_COLUMN_MAP)

    def _cell(self, row: Mapping[str, Any], name: str) -> Any:
        for col in self.column_map[name]:
            value = row.get(col)
            if not is_missing(value):
                return value
        return None

    def normalize_row(self, row: Mapping[str, Any]) -> CanonicalRecord:
        values = {name: parser(self._cell(row, name)) for name, parser in _PARSERS.items()}
        return CanonicalRecord(**values)

    def normalize(self, rows: Iterable[Mapping[str, Any]]) -> NormalizedDataset:
        records = tuple(self.normalize_row(row) for row in rows)
        span = date_span(records)
        if logger.isEnabledFor(logging.DEBUG):
            absent = {name: sum(1 for r in records if getattr(r, name) is None) for name in _PARSERS}
            logger.debug("normalized %d rows; absent fields: %s", len(records), absent)
        logger.info("normalized %d rows, period %s", len(records), span_label(span))
        return NormalizedDataset(records=records, span=span)


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> NormalizedDataset:
    return RecordNormalizer().normalize(rows)


RECORD_COLUMNS: List[str] = [f.name for f in fields(CanonicalRecord)]


def records_frame(records: Sequence[CanonicalRecord]) -> pd.DataFrame:
    """Tabular view of the records for aggregation. Row order is preserved."""
    data = {name: [getattr(r, name) for r in records] for name in RECORD_COLUMNS}
    df = pd.DataFrame(data, columns=RECORD_COLUMNS)
    for name in NUMBER_FIELDS + ("absolute_sale_value", "operating_margin"):
        df[name] = pd.to_numeric(df[name], errors="coerce").astype(float)
    for name in ("delivery_days", "day_of_month"):
        df[name] = pd.to_numeric(df[name], errors="coerce").astype("Int64")
    df["is_advertised"] = df["is_advertised"].astype("boolean")
    return df

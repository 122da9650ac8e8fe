"""Typed, JSON-serializable view payloads returned by the report assembler."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class ViewPayload:
    name: str
    title: str
    chart: str
    available: bool = True
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["kind"] = type(self).__name__
        return out


@dataclass(frozen=True)
class CategoryView(ViewPayload):
    """Parallel category/value sequences."""

    categories: Tuple[str, ...] = ()
    values: Tuple[float, ...] = ()

    def frame(self) -> pd.DataFrame:
        return pd.DataFrame({"category": list(self.categories), "value": list(self.values)})


@dataclass(frozen=True)
class NamedSeries:
    name: str
    values: Tuple[float, ...] = ()


@dataclass(frozen=True)
class SeriesView(ViewPayload):
    """Several named series sharing one category axis."""

    categories: Tuple[str, ...] = ()
    series: Tuple[NamedSeries, ...] = ()

    def frame(self) -> pd.DataFrame:
        """Long format: one row per (category, series)."""
        rows = [
            {"category": cat, "series": s.name, "value": val}
            for s in self.series
            for cat, val in zip(self.categories, s.values)
        ]
        return pd.DataFrame(rows, columns=["category", "series", "value"])


@dataclass(frozen=True)
class HistogramView(ViewPayload):
    labels: Tuple[str, ...] = ()
    edges: Tuple[float, ...] = ()
    counts: Tuple[int, ...] = ()
    mean: Optional[float] = None
    median: Optional[float] = None

    def frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"label": list(self.labels), "edge": list(self.edges), "count": list(self.counts)}
        )


@dataclass(frozen=True)
class ScatterPoint:
    day: int
    value: float
    label: str


@dataclass(frozen=True)
class ScatterView(ViewPayload):
    points: Tuple[ScatterPoint, ...] = ()

    def frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [asdict(p) for p in self.points],
            columns=["day", "value", "label"],
        )


@dataclass(frozen=True)
class SummaryView(ViewPayload):
    metrics: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.metrics[key]

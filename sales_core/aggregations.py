"""Grouping, ranking and distribution primitives over the records frame.

All functions are pure: they never modify the frame they receive. Group order is
first-seen order and every sort is stable, so ties keep their first-seen order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

Columns = Union[str, Sequence[str]]

DEFAULT_BINS = 30


def _as_list(columns: Columns) -> List[str]:
    return [columns] if isinstance(columns, str) else list(columns)


def sum_by_key(frame: pd.DataFrame, key: Columns, value: Columns) -> pd.DataFrame:
    """Sum ``value`` per ``key``. Rows with a null key are dropped; null values count as zero."""
    keys = _as_list(key)
    values = _as_list(value)
    if frame.empty:
        empty = {k: pd.Series(dtype=object) for k in keys}
        empty.update({v: pd.Series(dtype=float) for v in values})
        return pd.DataFrame(empty)
    grouped = frame.groupby(keys, sort=False, dropna=True)[values].sum(min_count=0).reset_index()
    for v in values:
        grouped[v] = grouped[v].astype(float)
    return grouped


def rank_top(grouped: pd.DataFrame, by: str, n: Optional[int] = None) -> pd.DataFrame:
    ordered = grouped.sort_values(by, ascending=False, kind="stable")
    if n is not None:
        ordered = ordered.head(n)
    return ordered.reset_index(drop=True)


def rank_ascending(grouped: pd.DataFrame, by: str, n: Optional[int] = None) -> pd.DataFrame:
    ordered = grouped.sort_values(by, ascending=True, kind="stable")
    if n is not None:
        ordered = ordered.head(n)
    return ordered.reset_index(drop=True)


def time_series(frame: pd.DataFrame, period: str, value: str) -> pd.DataFrame:
    """One point per observed ``period`` bucket (``date_key`` or ``period_key``), oldest first."""
    grouped = sum_by_key(frame, period, value)
    return grouped.sort_values(period, kind="stable").reset_index(drop=True)


def average_by_key(
    frame: pd.DataFrame,
    key: str,
    value: str,
    order: Optional[Sequence[object]] = None,
) -> pd.DataFrame:
    """Mean of the present ``value`` entries per ``key``.

    The divisor is the count of present values; a group without any present value
    averages to 0. With ``order`` the output follows that key order and keys that
    never occur are reported as 0.
    """
    sub = frame.dropna(subset=[key]) if not frame.empty else frame
    if sub.empty:
        means = pd.Series(dtype=float)
    else:
        means = pd.to_numeric(sub[value], errors="coerce").astype(float).groupby(sub[key], sort=False).mean()
    means = means.fillna(0.0)
    if order is not None:
        means = means.reindex(list(order), fill_value=0.0)
    out = means.rename_axis(key).reset_index(name=value)
    out[value] = out[value].astype(float)
    return out


@dataclass(frozen=True)
class HistogramResult:
    counts: Tuple[int, ...]
    edges: Tuple[float, ...]
    step: float
    mean: float
    median: float
    total: int


def histogram(values: Iterable[object], bins: int = DEFAULT_BINS) -> Optional[HistogramResult]:
    """Equal-width histogram over [min, max] of the present values.

    Bucket index is ``floor((v - min) / step)``; an interior boundary value falls in
    the upper bucket and the maximum is clamped into the last one. The median is the
    upper middle element for an even count. Returns ``None`` when there is no value
    to bucket.
    """
    if bins < 1:
        raise ValueError(f"bins must be >= 1, got {bins}")
    series = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").astype(float)
    arr = series.to_numpy()
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return None

    lo, hi = float(arr.min()), float(arr.max())
    step = (hi - lo) / bins or 1.0
    with np.errstate(over="ignore", invalid="ignore"):
        pos = np.floor((arr - lo) / step)
        mean = float(np.mean(arr))
    # a span wider than the float range overflows; such values belong to the last bin
    pos[~np.isfinite(pos)] = bins - 1
    idx = np.clip(pos, 0, bins - 1).astype(int)
    counts = np.bincount(idx, minlength=bins)
    return HistogramResult(
        counts=tuple(int(c) for c in counts),
        edges=tuple(lo + i * step if i else lo for i in range(bins)),
        step=step,
        mean=mean,
        median=float(np.sort(arr)[arr.size // 2]),
        total=int(arr.size),
    )


@dataclass(frozen=True)
class FlagSplit:
    true_value: float
    false_value: float


def split_by_flag(frame: pd.DataFrame, flag: str, value: str) -> FlagSplit:
    """Sum ``value`` separately for flag == True and flag == False; unknown flags are ignored."""
    if frame.empty:
        return FlagSplit(0.0, 0.0)
    flags = frame[flag]
    is_true = flags.eq(True).fillna(False).astype(bool)
    is_false = flags.eq(False).fillna(False).astype(bool)
    return FlagSplit(
        true_value=float(frame.loc[is_true, value].sum()),
        false_value=float(frame.loc[is_false, value].sum()),
    )


def split_by_flag_and_key(frame: pd.DataFrame, flag: str, key: str, value: str) -> pd.DataFrame:
    """Per-``key`` version of :func:`split_by_flag` with ``true``/``false`` columns.

    Only rows with a known flag and a non-null key take part; keys are in first-seen order.
    """
    if frame.empty:
        return pd.DataFrame({key: pd.Series(dtype=object), "true": pd.Series(dtype=float), "false": pd.Series(dtype=float)})
    known = frame[frame[flag].notna() & frame[key].notna()]
    is_true = known[flag].astype(bool)
    parts = pd.DataFrame(
        {
            key: known[key],
            "true": known[value].where(is_true),
            "false": known[value].where(~is_true),
        }
    )
    return sum_by_key(parts, key, ["true", "false"])

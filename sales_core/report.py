"""Fixed dashboard view set and headline KPIs built from normalized records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

import pandas as pd

from sales_core.aggregations import (
    average_by_key,
    histogram,
    rank_ascending,
    rank_top,
    split_by_flag,
    split_by_flag_and_key,
    sum_by_key,
    time_series,
)
from sales_core.errors import SourceDataError
from sales_core.formatting import fmt_int, fmt_money, fmt_pct
from sales_core.records import (
    DAY_NAMES,
    DateSpan,
    NormalizedDataset,
    normalize_rows,
    records_frame,
    span_label,
)
from sales_core.settings import ReportSettings
from sales_core.views import (
    CategoryView,
    HistogramView,
    NamedSeries,
    ScatterPoint,
    ScatterView,
    SeriesView,
    SummaryView,
    ViewPayload,
)

logger = logging.getLogger(__name__)

VALUE = "absolute_sale_value"
UNITS = "unit_count"

DAY_LABELS_ES = {
    "Monday": "Lun",
    "Tuesday": "Mar",
    "Wednesday": "Mié",
    "Thursday": "Jue",
    "Friday": "Vie",
    "Saturday": "Sáb",
    "Sunday": "Dom",
}
ADS_LABEL = "Con Publicidad"
ORGANIC_LABEL = "Sin Publicidad"
VALUE_SERIES = "Ventas (MXN)"
UNITS_SERIES = "Unidades"


def _category_view(name: str, title: str, chart: str, df: pd.DataFrame, key: str, value: str) -> CategoryView:
    return CategoryView(
        name=name,
        title=title,
        chart=chart,
        categories=tuple(str(k) for k in df[key].tolist()),
        values=tuple(float(v) for v in df[value].tolist()),
    )


def compute_top_dates_by_value(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    top = rank_top(sum_by_key(frame, "date_key", VALUE), VALUE, settings.top_dates)
    return _category_view("top_dates_by_value", "Top fechas por ventas", "bar", top, "date_key", VALUE)


def compute_top_products_by_units(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    top = rank_top(sum_by_key(frame, "product_id", UNITS), UNITS, settings.top_products)
    return _category_view("top_products_by_units", "Top productos por unidades", "barh", top, "product_id", UNITS)


def compute_top_products_by_revenue(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    top = rank_top(sum_by_key(frame, "product_id", "product_revenue"), "product_revenue", settings.top_products)
    return _category_view(
        "top_products_by_revenue", "Top productos por ingresos", "barh", top, "product_id", "product_revenue"
    )


def compute_value_by_region(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    ordered = rank_ascending(sum_by_key(frame, "state", VALUE), VALUE)
    return _category_view("value_by_region", "Ventas por estado", "barh", ordered, "state", VALUE)


def compute_regional_distribution(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    """Pie of every state up to ``region_pie_max`` states, ranked bars beyond that."""
    ranked = rank_top(sum_by_key(frame, "state", VALUE), VALUE)
    title = "Distribución por estado"
    if len(ranked) <= settings.region_pie_max:
        return _category_view("regional_distribution", title, "pie", ranked, "state", VALUE)
    top = rank_ascending(ranked.head(settings.region_bar_limit), VALUE)
    return _category_view("regional_distribution", title, "barh", top, "state", VALUE)


def compute_delivery_by_weekday(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    avg = average_by_key(frame, "weekday", "delivery_days", order=DAY_NAMES)
    return CategoryView(
        name="delivery_time_by_weekday",
        title="Tiempo de entrega promedio por día (días)",
        chart="line",
        categories=tuple(DAY_LABELS_ES[d] for d in DAY_NAMES),
        values=tuple(float(v) for v in avg["delivery_days"].tolist()),
    )


def compute_advertising_daily(frame: pd.DataFrame, settings: ReportSettings) -> SeriesView:
    daily = split_by_flag_and_key(frame, "is_advertised", "date_key", VALUE)
    daily = daily.sort_values("date_key", kind="stable").tail(settings.advertising_days)
    return SeriesView(
        name="advertising_daily",
        title="Ventas con vs sin publicidad por día",
        chart="grouped_bar",
        categories=tuple(str(d) for d in daily["date_key"].tolist()),
        series=(
            NamedSeries(ORGANIC_LABEL, tuple(float(v) for v in daily["false"].tolist())),
            NamedSeries(ADS_LABEL, tuple(float(v) for v in daily["true"].tolist())),
        ),
    )


def compute_advertising_totals(frame: pd.DataFrame, settings: ReportSettings) -> SeriesView:
    value = split_by_flag(frame, "is_advertised", VALUE)
    units = split_by_flag(frame, "is_advertised", UNITS)
    return SeriesView(
        name="advertising_totals",
        title="Comparación global con/sin publicidad",
        chart="dual_bar",
        categories=(ADS_LABEL, ORGANIC_LABEL),
        series=(
            NamedSeries(VALUE_SERIES, (value.true_value, value.false_value)),
            NamedSeries(UNITS_SERIES, (units.true_value, units.false_value)),
        ),
    )


def compute_top_products_combo(frame: pd.DataFrame, settings: ReportSettings) -> SeriesView:
    top = rank_top(sum_by_key(frame, "product_id", [VALUE, UNITS]), VALUE, settings.top_products_combo)
    return SeriesView(
        name="top_products_combo",
        title="Ventas y unidades por producto",
        chart="combo",
        categories=tuple(str(p) for p in top["product_id"].tolist()),
        series=(
            NamedSeries(VALUE_SERIES, tuple(float(v) for v in top[VALUE].tolist())),
            NamedSeries(UNITS_SERIES, tuple(float(v) for v in top[UNITS].tolist())),
        ),
    )


def compute_monthly_trend(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    trend = time_series(frame, "period_key", VALUE)
    return _category_view("monthly_trend", "Evolución mensual de ventas", "area", trend, "period_key", VALUE)


def compute_unit_price_histogram(frame: pd.DataFrame, settings: ReportSettings) -> HistogramView:
    name, title = "unit_price_histogram", "Distribución de precios unitarios"
    values = frame["unit_price"].tolist() if "unit_price" in frame.columns else []
    result = histogram(values, bins=settings.histogram_bins)
    if result is None:
        return HistogramView(
            name=name,
            title=title,
            chart="histogram",
            available=False,
            message="No hay datos de precios disponibles",
        )
    return HistogramView(
        name=name,
        title=title,
        chart="histogram",
        labels=tuple(f"{e:.0f}" for e in result.edges),
        edges=result.edges,
        counts=result.counts,
        mean=result.mean,
        median=result.median,
    )


def compute_top_days_scatter(frame: pd.DataFrame, settings: ReportSettings) -> ScatterView:
    top = rank_top(sum_by_key(frame, ["month_name", "day_of_month"], VALUE), VALUE, settings.top_days)
    points = tuple(
        ScatterPoint(day=int(row.day_of_month), value=float(getattr(row, VALUE)), label=str(row.month_name))
        for row in top.itertuples(index=False)
    )
    return ScatterView(name="top_days_scatter", title="Top días por ventas", chart="scatter", points=points)


def compute_top_municipalities(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    top = rank_top(sum_by_key(frame, "municipality", VALUE), VALUE, settings.top_municipalities)
    return _category_view("top_municipalities", "Top municipios por ventas", "barh", top, "municipality", VALUE)


def compute_margin_by_region(frame: pd.DataFrame, settings: ReportSettings) -> CategoryView:
    ordered = rank_ascending(average_by_key(frame, "state", "operating_margin"), "operating_margin")
    return _category_view(
        "margin_by_region", "Margen operativo promedio por estado", "barh", ordered, "state", "operating_margin"
    )


VIEW_BUILDERS: Dict[str, Callable[[pd.DataFrame, ReportSettings], ViewPayload]] = {
    "top_dates_by_value": compute_top_dates_by_value,
    "top_products_by_units": compute_top_products_by_units,
    "top_products_by_revenue": compute_top_products_by_revenue,
    "value_by_region": compute_value_by_region,
    "regional_distribution": compute_regional_distribution,
    "delivery_time_by_weekday": compute_delivery_by_weekday,
    "advertising_daily": compute_advertising_daily,
    "advertising_totals": compute_advertising_totals,
    "top_products_combo": compute_top_products_combo,
    "monthly_trend": compute_monthly_trend,
    "unit_price_histogram": compute_unit_price_histogram,
    "top_days_scatter": compute_top_days_scatter,
    "top_municipalities": compute_top_municipalities,
    "margin_by_region": compute_margin_by_region,
}
VIEW_NAMES = tuple(VIEW_BUILDERS)


def compute_kpis(frame: pd.DataFrame, span: Optional[DateSpan] = None) -> SummaryView:
    count = int(len(frame))

    def _total(col: str) -> float:
        return float(frame[col].sum()) if count else 0.0

    gross = _total(VALUE)
    ads = split_by_flag(frame, "is_advertised", VALUE)
    metrics: Dict[str, Any] = {
        "gross_value": gross,
        "net_value": _total("total_amount"),
        "total_units": _total(UNITS),
        "product_revenue": _total("product_revenue"),
        "advertised_value": ads.true_value,
        "organic_value": ads.false_value,
        "advertising_share_pct": (ads.true_value / gross) * 100 if gross else 0.0,
        "average_ticket": gross / count if count else 0.0,
        "record_count": count,
        "period": span_label(span),
        "period_available": span is not None,
    }
    return SummaryView(name="kpis", title="KPIs principales", chart="summary", metrics=metrics)


def format_kpi_block(kpis: Union[SummaryView, Mapping[str, Any]]) -> str:
    m = kpis.metrics if isinstance(kpis, SummaryView) else kpis
    lines = [
        "KPIs PRINCIPALES",
        "================",
        f"GMV (Ventas Brutas):      {fmt_money(m['gross_value'])}",
        f"Ventas Netas:             {fmt_money(m['net_value'])}",
        f"Unidades Vendidas:        {fmt_int(m['total_units'])}",
        f"Ingresos por Productos:   {fmt_money(m['product_revenue'])}",
        f"Ventas atribuidas a Ads:  {fmt_money(m['advertised_value'])}",
        f"Ventas sin Ads:           {fmt_money(m['organic_value'])}",
        "",
        f"Participación atribuida a publicidad: {fmt_pct(m['advertising_share_pct'])}",
        f"Ticket Promedio (GMV/tx): {fmt_money(m['average_ticket'])}",
    ]
    return "\n".join(lines)


@dataclass(frozen=True)
class SalesReport:
    kpis: SummaryView
    views: Dict[str, ViewPayload]
    span: Optional[DateSpan] = None
    record_count: int = 0
    unavailable: tuple = field(default=())

    def view(self, name: str) -> ViewPayload:
        if name not in self.views:
            raise KeyError(f"Unknown view: {name}")
        return self.views[name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": span_label(self.span),
            "record_count": self.record_count,
            "kpis": self.kpis.to_dict(),
            "views": {name: v.to_dict() for name, v in self.views.items()},
        }


def build_report(
    source: Union[NormalizedDataset, Iterable[Mapping[str, Any]], None],
    settings: Optional[ReportSettings] = None,
) -> SalesReport:
    """Normalize (if needed) and compute every dashboard view plus the KPI summary."""
    if source is None:
        raise SourceDataError("No row data was supplied to the report builder.")
    settings = settings or ReportSettings()
    dataset = source if isinstance(source, NormalizedDataset) else normalize_rows(source)
    frame = records_frame(dataset.records)

    views = {name: builder(frame, settings) for name, builder in VIEW_BUILDERS.items()}
    unavailable = tuple(name for name, v in views.items() if not v.available)
    if unavailable:
        logger.warning("views unavailable: %s", ", ".join(unavailable))
    return SalesReport(
        kpis=compute_kpis(frame, dataset.span),
        views=views,
        span=dataset.span,
        record_count=len(dataset),
        unavailable=unavailable,
    )

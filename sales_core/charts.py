"""Altair renderers: view payload -> Vega-Lite spec dict (JSON-serializable)."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import altair as alt
import pandas as pd

from sales_core.views import CategoryView, HistogramView, ScatterView, SeriesView, ViewPayload
from sales_core.settings import ChartTheme

alt.data_transformers.disable_max_rows()

MONEY_FORMAT = "$,.0f"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _value_format(view: ViewPayload) -> str:
    return ",.0f" if view.name == "top_products_by_units" else MONEY_FORMAT


def bar_chart(view: CategoryView, theme: ChartTheme) -> alt.Chart:
    fmt = _value_format(view)
    return (
        alt.Chart(view.frame())
        .mark_bar(color=theme.primary, size=36)
        .encode(
            x=alt.X("category:N", title=None, sort="y", axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format=fmt)),
            tooltip=["category", alt.Tooltip("value:Q", format=fmt)],
        )
        .properties(title=view.title, height=theme.height)
    )


def barh_chart(view: CategoryView, theme: ChartTheme) -> alt.Chart:
    fmt = _value_format(view)
    return (
        alt.Chart(view.frame())
        .mark_bar(color=theme.secondary, size=20)
        .encode(
            y=alt.Y("category:N", title=None, sort="-x"),
            x=alt.X("value:Q", title=None, axis=alt.Axis(format=fmt)),
            tooltip=["category", alt.Tooltip("value:Q", format=fmt)],
        )
        .properties(title=view.title, height=theme.height)
    )


def line_chart(view: CategoryView, theme: ChartTheme) -> alt.Chart:
    return (
        alt.Chart(view.frame())
        .mark_line(point={"filled": True, "size": 60}, color=theme.primary, strokeWidth=3, interpolate="monotone")
        .encode(
            x=alt.X("category:N", title=None, sort=None),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format=".1f")),
            tooltip=["category", alt.Tooltip("value:Q", format=".1f")],
        )
        .properties(title=view.title, height=theme.height)
    )


def area_chart(view: CategoryView, theme: ChartTheme) -> alt.Chart:
    return (
        alt.Chart(view.frame())
        .mark_area(line={"color": theme.primary}, color=theme.primary, opacity=0.15, interpolate="monotone")
        .encode(
            x=alt.X("category:N", title=None, sort=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format=MONEY_FORMAT)),
            tooltip=["category", alt.Tooltip("value:Q", format=MONEY_FORMAT)],
        )
        .properties(title=view.title, height=theme.height)
    )


def pie_chart(view: CategoryView, theme: ChartTheme) -> alt.Chart:
    return (
        alt.Chart(view.frame())
        .mark_arc(innerRadius=60, stroke="#fff", strokeWidth=2)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("category:N", title=None, sort=None),
            tooltip=["category", alt.Tooltip("value:Q", format=MONEY_FORMAT)],
        )
        .properties(title=view.title, height=theme.height)
    )


def grouped_bar_chart(view: SeriesView, theme: ChartTheme) -> alt.Chart:
    names = [s.name for s in view.series]
    return (
        alt.Chart(view.frame())
        .mark_bar(size=18)
        .encode(
            x=alt.X("category:N", title=None, sort=None, axis=alt.Axis(labelAngle=-45)),
            xOffset=alt.XOffset("series:N", sort=names),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format=MONEY_FORMAT)),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=names, range=[theme.secondary, theme.primary]),
            ),
            tooltip=["category", "series", alt.Tooltip("value:Q", format=MONEY_FORMAT)],
        )
        .properties(title=view.title, height=theme.height)
    )


def _two_axis_layers(view: SeriesView, theme: ChartTheme, second_mark: str) -> alt.LayerChart:
    df = view.frame()
    first, second = (s.name for s in view.series[:2])
    base = alt.Chart(df).encode(x=alt.X("category:N", title=None, sort=None, axis=alt.Axis(labelAngle=-45)))
    left = (
        base.transform_filter(alt.datum.series == first)
        .mark_bar(color=theme.primary, size=24, xOffset=-12 if second_mark == "bar" else 0)
        .encode(
            y=alt.Y("value:Q", title=first, axis=alt.Axis(format=MONEY_FORMAT)),
            tooltip=["category", alt.Tooltip("value:Q", title=first, format=MONEY_FORMAT)],
        )
    )
    right_base = base.transform_filter(alt.datum.series == second)
    if second_mark == "bar":
        right_mark = right_base.mark_bar(color=theme.success, size=24, xOffset=12)
    else:
        right_mark = right_base.mark_line(point=True, color=theme.success, strokeWidth=3, interpolate="monotone")
    right = right_mark.encode(
        y=alt.Y("value:Q", title=second, axis=alt.Axis(format=",.0f", grid=False)),
        tooltip=["category", alt.Tooltip("value:Q", title=second, format=",.0f")],
    )
    return alt.layer(left, right).resolve_scale(y="independent").properties(title=view.title, height=theme.height)


def dual_bar_chart(view: SeriesView, theme: ChartTheme) -> alt.LayerChart:
    return _two_axis_layers(view, theme, "bar")


def combo_chart(view: SeriesView, theme: ChartTheme) -> alt.LayerChart:
    return _two_axis_layers(view, theme, "line")


def histogram_chart(view: HistogramView, theme: ChartTheme) -> alt.LayerChart:
    df = view.frame()
    step = (view.edges[1] - view.edges[0]) if len(view.edges) > 1 else 1.0
    df["edge_end"] = df["edge"] + step
    bars = (
        alt.Chart(df)
        .mark_bar(color=theme.secondary)
        .encode(
            x=alt.X("edge:Q", title="Precio unitario (MXN)", axis=alt.Axis(format=MONEY_FORMAT)),
            x2="edge_end:Q",
            y=alt.Y("count:Q", title=None),
            tooltip=[alt.Tooltip("label:N", title="Desde"), "count"],
        )
    )
    marks = pd.DataFrame(
        {"stat": ["Media", "Mediana"], "value": [view.mean, view.median]}
    )
    rules = (
        alt.Chart(marks)
        .mark_rule(color=theme.danger, strokeDash=[6, 4], strokeWidth=2)
        .encode(x="value:Q", tooltip=["stat", alt.Tooltip("value:Q", format=MONEY_FORMAT)])
    )
    return alt.layer(bars, rules).properties(title=view.title, height=theme.height)


def scatter_chart(view: ScatterView, theme: ChartTheme) -> alt.Chart:
    return (
        alt.Chart(view.frame())
        .mark_circle(size=100, color=theme.primary)
        .encode(
            x=alt.X("day:Q", title="Día", scale=alt.Scale(domain=[1, 31])),
            y=alt.Y("value:Q", title="Ventas (MXN)", axis=alt.Axis(format=MONEY_FORMAT)),
            tooltip=[alt.Tooltip("day:Q", title="Día"), alt.Tooltip("label:N", title="Mes"), alt.Tooltip("value:Q", format=MONEY_FORMAT)],
        )
        .properties(title=view.title, height=theme.height)
    )


RENDERERS: Dict[str, Callable[[Any, ChartTheme], alt.TopLevelMixin]] = {
    "bar": bar_chart,
    "barh": barh_chart,
    "line": line_chart,
    "area": area_chart,
    "pie": pie_chart,
    "grouped_bar": grouped_bar_chart,
    "dual_bar": dual_bar_chart,
    "combo": combo_chart,
    "histogram": histogram_chart,
    "scatter": scatter_chart,
}


def render_view(view: ViewPayload, theme: Optional[ChartTheme] = None) -> Optional[Dict[str, Any]]:
    """Vega-Lite spec for ``view``; ``None`` when the view is unavailable or has no chart."""
    if not view.available:
        return None
    renderer = RENDERERS.get(view.chart)
    if renderer is None:
        return None
    return to_vega_spec(renderer(view, theme or ChartTheme()))


def render_report(report: Any, theme: Optional[ChartTheme] = None) -> Dict[str, Optional[Dict[str, Any]]]:
    theme = theme or ChartTheme()
    return {name: render_view(view, theme) for name, view in report.views.items()}

import logging
from contextlib import contextmanager
from typing import List, Optional

import streamlit as st

from sales_core.charts import render_view
from sales_core.data import load_report
from sales_core.errors import SourceDataError
from sales_core.formatting import fmt_int, fmt_money, fmt_pct
from sales_core.report import format_kpi_block
from sales_core.settings import ReportSettings, load_source_settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .empty {color: #9ca3af;text-align: center;padding: 48px 0;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def render_chart(report, name: str, theme):
    view = report.view(name)
    with card(view.title):
        spec = render_view(view, theme)
        if spec is None:
            st.markdown(f"<div class='empty'>{view.message or 'Sin datos'}</div>", unsafe_allow_html=True)
        else:
            st.vega_lite_chart(spec, use_container_width=True)


def render_row(report, names: List[str], theme, widths: Optional[List[int]] = None):
    cols = st.columns(widths or [1] * len(names))
    for col, name in zip(cols, names):
        with col:
            render_chart(report, name, theme)


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard de Ventas", layout="wide")
inject_base_styles()
st.title("Dashboard de Ventas")

settings = ReportSettings()
try:
    report = load_report(load_source_settings(), settings)
except SourceDataError as exc:
    st.error(f"No se pudo cargar el archivo de ventas. {exc}")
    st.stop()

st.caption(f"Periodo: {report.kpis['period']}")

m = report.kpis.metrics
cols = st.columns(5)
cols[0].metric("GMV (Ventas Brutas)", fmt_money(m["gross_value"]))
cols[1].metric("Ventas Netas", fmt_money(m["net_value"]))
cols[2].metric("Unidades", fmt_int(m["total_units"]))
cols[3].metric("Ingresos por Productos", fmt_money(m["product_revenue"]))
cols[4].metric("Participación Ads", fmt_pct(m["advertising_share_pct"]))

with st.expander("Resumen de KPIs", expanded=False):
    st.code(format_kpi_block(report.kpis), language=None)

dashboard_tab, sales_tab, logistics_tab = st.tabs(["Dashboard", "Ventas", "Logística y regiones"])
theme = settings.theme

with dashboard_tab:
    render_row(report, ["top_dates_by_value", "monthly_trend"], theme)
    render_row(report, ["top_products_by_units", "top_products_by_revenue"], theme)
    render_row(report, ["top_products_combo"], theme)

with sales_tab:
    render_row(report, ["advertising_daily"], theme)
    render_row(report, ["advertising_totals", "unit_price_histogram"], theme)
    render_row(report, ["top_days_scatter"], theme)

with logistics_tab:
    render_row(report, ["value_by_region", "regional_distribution"], theme)
    render_row(report, ["delivery_time_by_weekday", "top_municipalities"], theme)
    render_row(report, ["margin_by_region"], theme)

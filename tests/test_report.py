"""
Tests for the report assembler.

Validates:
- KPI summary on the three-sale scenario
- Each view's ordering, truncation and shape
- Regional distribution switches from pie to bars above 8 states
- Unavailable views never block the rest of the report
"""

import json
from datetime import date, timedelta

import pytest

from sales_core.errors import SourceDataError
from sales_core.records import CanonicalRecord, NormalizedDataset
from sales_core.report import VIEW_NAMES, build_report, format_kpi_block
from sales_core.settings import ReportSettings
from sales_core.views import CategoryView, HistogramView, ScatterView, SeriesView


def _dataset(*records):
    return NormalizedDataset(records=tuple(records), span=None)


class TestScenario:
    """Test suite for the three-sale scenario."""

    def test_kpis(self, scenario_report):
        kpis = scenario_report.kpis
        assert kpis["gross_value"] == 350.0
        assert kpis["net_value"] == -350.0
        assert kpis["total_units"] == 6.0
        assert kpis["product_revenue"] == 270.0
        assert kpis["advertised_value"] == 300.0
        assert kpis["organic_value"] == 50.0
        assert kpis["advertising_share_pct"] == pytest.approx(300 / 350 * 100)
        assert round(kpis["advertising_share_pct"], 1) == 85.7
        assert kpis["average_ticket"] == pytest.approx(350 / 3)
        assert kpis["record_count"] == 3
        assert kpis["period"] == "2024-01-05 a 2024-02-01"

    def test_monthly_trend(self, scenario_report):
        trend = scenario_report.view("monthly_trend")
        assert trend.categories == ("2024-01", "2024-02")
        assert trend.values == (150.0, 200.0)

    def test_top_dates(self, scenario_report):
        top = scenario_report.view("top_dates_by_value")
        assert top.categories == ("2024-02-01", "2024-01-05")
        assert top.values == (200.0, 150.0)

    def test_products(self, scenario_report):
        units = scenario_report.view("top_products_by_units")
        assert units.categories == ("P-1", "P-2")
        assert units.values == (5.0, 1.0)
        revenue = scenario_report.view("top_products_by_revenue")
        assert revenue.values == (230.0, 40.0)
        combo = scenario_report.view("top_products_combo")
        assert combo.categories == ("P-1", "P-2")
        assert [s.name for s in combo.series] == ["Ventas (MXN)", "Unidades"]
        assert combo.series[0].values == (300.0, 50.0)
        assert combo.series[1].values == (5.0, 1.0)

    def test_advertising_totals(self, scenario_report):
        totals = scenario_report.view("advertising_totals")
        assert totals.categories == ("Con Publicidad", "Sin Publicidad")
        assert totals.series[0].values == (300.0, 50.0)
        assert totals.series[1].values == (5.0, 1.0)

    def test_every_view_present(self, scenario_report):
        assert tuple(scenario_report.views) == VIEW_NAMES
        assert len(VIEW_NAMES) == 14

    def test_kpi_block(self, scenario_report):
        block = format_kpi_block(scenario_report.kpis)
        assert "GMV (Ventas Brutas):      $350.00" in block
        assert "Participación atribuida a publicidad: 85.7%" in block
        assert "Ticket Promedio (GMV/tx): $116.67" in block

    def test_serializable(self, scenario_report):
        payload = json.loads(json.dumps(scenario_report.to_dict()))
        assert payload["kpis"]["metrics"]["gross_value"] == 350.0
        assert payload["views"]["monthly_trend"]["kind"] == "CategoryView"


class TestRegionalDistribution:
    """Test suite for the pie/bar switch."""

    @staticmethod
    def _states(n):
        return _dataset(*[CanonicalRecord(state=f"S{i:02d}", total_amount=float(i + 1)) for i in range(n)])

    def test_pie_at_threshold(self):
        view = build_report(self._states(8)).view("regional_distribution")
        assert view.chart == "pie"
        assert len(view.categories) == 8
        assert list(view.values) == sorted(view.values, reverse=True)

    def test_bars_above_threshold(self):
        view = build_report(self._states(9)).view("regional_distribution")
        assert view.chart == "barh"
        assert len(view.categories) == 9
        assert list(view.values) == sorted(view.values)

    def test_bars_limited_to_top_fifteen(self):
        view = build_report(self._states(20)).view("regional_distribution")
        assert len(view.categories) == 15
        assert view.values[0] == 6.0
        assert view.values[-1] == 20.0

    def test_value_by_region_ascending(self):
        view = build_report(self._states(20)).view("value_by_region")
        assert len(view.categories) == 20
        assert view.categories[0] == "S00"


class TestDeliveryByWeekday:
    def test_fixed_weekday_axis(self):
        monday = date(2024, 1, 1)
        report = build_report(
            _dataset(
                CanonicalRecord(sale_date=monday, delivery_date=monday + timedelta(days=2)),
                CanonicalRecord(sale_date=monday, delivery_date=monday + timedelta(days=4)),
                CanonicalRecord(sale_date=monday + timedelta(days=2), delivery_date=monday + timedelta(days=90)),
            )
        )
        view = report.view("delivery_time_by_weekday")
        assert view.categories == ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom")
        assert view.values == (3.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


class TestAdvertisingDaily:
    def test_last_thirty_known_days(self):
        start = date(2024, 1, 1)
        records = [
            CanonicalRecord(sale_date=start + timedelta(days=i), is_advertised=bool(i % 2), total_amount=-10.0)
            for i in range(35)
        ]
        records.append(CanonicalRecord(sale_date=start + timedelta(days=50), is_advertised=None, total_amount=-5.0))
        view = build_report(_dataset(*records)).view("advertising_daily")
        assert isinstance(view, SeriesView)
        assert len(view.categories) == 30
        assert view.categories[0] == "2024-01-06"
        assert view.categories[-1] == "2024-02-04"
        assert [s.name for s in view.series] == ["Sin Publicidad", "Con Publicidad"]
        organic, ads = view.series
        assert organic.values[0] == 0.0 and ads.values[0] == 10.0
        assert organic.values[1] == 10.0 and ads.values[1] == 0.0


class TestScatterAndMargins:
    def test_top_days_scatter(self):
        report = build_report(
            _dataset(
                CanonicalRecord(sale_date=date(2024, 1, 5), total_amount=-10),
                CanonicalRecord(sale_date=date(2024, 2, 5), total_amount=-30),
                CanonicalRecord(sale_date=date(2024, 1, 5), total_amount=-25),
            )
        )
        view = report.view("top_days_scatter")
        assert isinstance(view, ScatterView)
        assert [(p.label, p.day, p.value) for p in view.points] == [("enero", 5, 35.0), ("febrero", 5, 30.0)]

    def test_top_days_limit(self):
        start = date(2024, 1, 1)
        records = [CanonicalRecord(sale_date=start + timedelta(days=i), total_amount=float(i)) for i in range(40)]
        view = build_report(_dataset(*records)).view("top_days_scatter")
        assert len(view.points) == 20
        assert view.points[0].value == 39.0

    def test_margin_by_region(self):
        report = build_report(
            _dataset(
                CanonicalRecord(state="A", product_revenue=100, fees_and_taxes=-20),
                CanonicalRecord(state="A", product_revenue=60),
                CanonicalRecord(state="B", product_revenue=10, shipping_cost=-5),
            )
        )
        view = report.view("margin_by_region")
        assert view.categories == ("B", "A")
        assert view.values == (5.0, 70.0)

    def test_top_municipalities(self):
        records = [CanonicalRecord(municipality=f"M{i}", total_amount=float(i)) for i in range(12)]
        view = build_report(_dataset(*records)).view("top_municipalities")
        assert len(view.categories) == 10
        assert view.categories[0] == "M11"


class TestUnavailableViews:
    """Test suite for empty inputs."""

    def test_histogram_unavailable_without_prices(self, scenario_report):
        view = scenario_report.view("unit_price_histogram")
        assert isinstance(view, HistogramView)
        assert view.available is False
        assert view.message
        assert scenario_report.unavailable == ("unit_price_histogram",)
        assert scenario_report.view("monthly_trend").available is True

    def test_histogram_available(self):
        records = [CanonicalRecord(unit_price=float(p)) for p in (100, 150, 150, 400)]
        view = build_report(_dataset(*records), ReportSettings(histogram_bins=3)).view("unit_price_histogram")
        assert view.available is True
        assert view.counts == (3, 0, 1)
        assert view.labels == ("100", "200", "300")
        assert view.mean == 200.0
        assert view.median == 150.0

    def test_empty_dataset(self):
        report = build_report([])
        assert report.record_count == 0
        assert report.span is None
        assert report.kpis["average_ticket"] == 0.0
        assert report.kpis["advertising_share_pct"] == 0.0
        assert report.kpis["period"] == "—"
        assert report.kpis["period_available"] is False
        assert report.view("unit_price_histogram").available is False
        assert report.view("delivery_time_by_weekday").values == (0.0,) * 7
        assert isinstance(report.view("top_dates_by_value"), CategoryView)
        assert report.view("top_dates_by_value").categories == ()

    def test_missing_rows_is_fatal(self):
        with pytest.raises(SourceDataError):
            build_report(None)

    def test_unknown_view(self, scenario_report):
        with pytest.raises(KeyError):
            scenario_report.view("nope")

from datetime import date, timedelta

import pytest

from sales_core.records import CanonicalRecord, records_frame
from sales_core.report import build_report


@pytest.fixture
def scenario_rows():
    """Three sales: two advertised, two in January, one in February."""
    return [
        {
            "Total (MXN)": -100,
            "Ingresos por productos (MXN)": 80,
            "Unidades": 2,
            "Venta por publicidad": "Sí",
            "Fecha Venta": "2024-01-05",
            "IDproducto": "P-1",
            "Estado": "Jalisco",
        },
        {
            "Total (MXN)": -50,
            "Ingresos por productos (MXN)": 40,
            "Unidades": 1,
            "Venta por publicidad": "No",
            "Fecha Venta": "2024-01-05",
            "IDproducto": "P-2",
            "Estado": "Nuevo León",
        },
        {
            "Total (MXN)": -200,
            "Ingresos por productos (MXN)": 150,
            "Unidades": 3,
            "Venta por publicidad": "Sí",
            "Fecha Venta": "2024-02-01",
            "IDproducto": "P-1",
            "Estado": "Jalisco",
        },
    ]


@pytest.fixture
def scenario_report(scenario_rows):
    return build_report(scenario_rows)


@pytest.fixture
def make_frame():
    def _make(*records: CanonicalRecord):
        return records_frame(list(records))

    return _make


@pytest.fixture
def daily_records():
    """Five records across two products with one tie on value."""
    start = date(2024, 3, 1)
    return [
        CanonicalRecord(sale_date=start, total_amount=-50, unit_count=1, product_id="A", state="Jalisco"),
        CanonicalRecord(sale_date=start + timedelta(days=1), total_amount=30, unit_count=2, product_id="B", state="Sonora"),
        CanonicalRecord(sale_date=start + timedelta(days=1), total_amount=-20, unit_count=None, product_id="B", state="Sonora"),
        CanonicalRecord(sale_date=None, total_amount=-10, unit_count=4, product_id="A", state="Jalisco"),
        CanonicalRecord(sale_date=start + timedelta(days=40), total_amount=None, unit_count=3, product_id="C", state="Yucatán"),
    ]

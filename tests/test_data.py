"""
Tests for source loading.

Validates:
- CSV and XLSX exports load into raw rows
- Missing or unreadable files raise SourceDataError
- Reports are cached while the file is unchanged
"""

from datetime import date

import pandas as pd
import pytest

from sales_core.data import clean_headers, file_signature, load_dataset, load_report, read_source_rows
from sales_core.errors import SourceDataError
from sales_core.settings import SourceSettings


@pytest.fixture
def csv_export(tmp_path, scenario_rows):
    path = tmp_path / "ventas.csv"
    pd.DataFrame(scenario_rows).to_csv(path, index=False)
    return path


class TestReadSourceRows:
    """Test suite for raw row loading."""

    def test_csv(self, csv_export):
        rows = read_source_rows(csv_export)
        assert len(rows) == 3
        assert rows[0]["IDproducto"] == "P-1"
        assert rows[0]["Fecha Venta"] == "2024-01-05"

    def test_xlsx_with_timestamps(self, tmp_path):
        path = tmp_path / "ventas.xlsx"
        pd.DataFrame(
            {
                "Fecha Venta": [pd.Timestamp("2024-01-05"), pd.NaT],
                "Total (MXN)": [-100.0, None],
                "Estado": ["Jalisco", "Sonora"],
            }
        ).to_excel(path, index=False)
        rows = read_source_rows(path)
        assert rows[1]["Total (MXN)"] is None
        dataset = load_dataset(SourceSettings(data_path=path))
        assert dataset.records[0].sale_date == date(2024, 1, 5)
        assert dataset.records[0].absolute_sale_value == 100.0
        assert dataset.records[1].sale_date is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceDataError):
            read_source_rows(tmp_path / "nope.xlsx")
        with pytest.raises(SourceDataError):
            file_signature(tmp_path / "nope.xlsx")

    def test_corrupt_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip file")
        with pytest.raises(SourceDataError):
            read_source_rows(path)

    def test_clean_headers(self):
        df = pd.DataFrame([[1, 2, 3]], columns=[" Estado ", "Unnamed: 1", "Estado"])
        assert list(clean_headers(df).columns) == ["Estado"]


class TestLoadReport:
    def test_end_to_end(self, csv_export):
        report = load_report(SourceSettings(data_path=csv_export))
        assert report.kpis["gross_value"] == 350.0
        assert report.view("monthly_trend").values == (150.0, 200.0)

    def test_cached_while_unchanged(self, csv_export):
        source = SourceSettings(data_path=csv_export)
        assert load_report(source) is load_report(source)

    def test_missing_source(self, tmp_path):
        with pytest.raises(SourceDataError):
            load_report(SourceSettings(data_path=tmp_path / "ventas.xlsx"))

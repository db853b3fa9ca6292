import json
from datetime import datetime

import openpyxl
import pytest

from shelfiq.visualization.export_handler import (
    ExportHandler,
    build_report_html,
    generate_table_html,
    generate_template,
    records_to_csv,
)
from shelfiq.utils.error_handler import ExportError


@pytest.fixture
def exporter(tmp_path):
    return ExportHandler(str(tmp_path / "out"))


class TestRecordsToCsv:

    def test_header_comes_from_first_record(self):
        csv = records_to_csv([{'sku': 'GRO-001', 'score': 9.5}, {'sku': 'GRO-002', 'score': 9.2}])
        assert csv == "sku,score\nGRO-001,9.5\nGRO-002,9.2"

    def test_quotes_embedded_newlines(self):
        csv = records_to_csv([{'sku': 'GRO-001', 'note': 'line1\nline2'}])
        assert csv == 'sku,note\nGRO-001,"line1\nline2"'

    def test_quotes_commas_and_doubles_quotes(self):
        csv = records_to_csv([{'name': 'Eggs, Free Range', 'note': 'the "best"'}])
        assert csv.splitlines()[1] == '"Eggs, Free Range","the ""best"""'

    def test_empty(self):
        assert records_to_csv([]) == ""


class TestHtml:

    def test_values_are_escaped(self):
        table = generate_table_html(['Name'], [['<b>Chips & Dip</b>']])
        assert '&lt;b&gt;Chips &amp; Dip&lt;/b&gt;' in table
        assert '<b>' not in table

    def test_report_page(self):
        page = build_report_html("Space Report", "<p>body</p>", datetime(2024, 1, 15, 9, 30))
        assert "<title>Space Report</title>" in page
        assert "<p>body</p>" in page
        assert "Generated on 2024-01-15 09:30:00" in page


class TestTemplates:

    def test_products_template(self):
        lines = generate_template('products').splitlines()
        assert lines[0] == "SKU,Product Name,Category,Price,Shelf Space (m),Sales Percentage"
        assert len(lines) == 4

    def test_unknown_template(self):
        with pytest.raises(ExportError):
            generate_template('planograms')

    def test_write_template(self, exporter):
        path = exporter.export_template('sales')
        assert path.endswith("sales_template.csv")
        with open(path) as f:
            assert f.readline().startswith("Date,SKU")


class TestExportHandler:

    def test_export_to_csv(self, exporter):
        path = exporter.export_to_csv([{'a': 1}], "numbers")
        with open(path) as f:
            assert f.read() == "a\n1"

    def test_export_to_csv_rejects_empty(self, exporter):
        with pytest.raises(ExportError):
            exporter.export_to_csv([], "nothing")

    def test_engine_csv_writes_every_table(self, exporter, engine):
        paths = exporter.export_engine_csv(engine, "snapshot")
        assert len(paths) == 4
        with open(paths[0]) as f:
            header = f.readline().strip().split(',')
        assert header[:3] == ['sku', 'name', 'category']
        assert header[-6:] == ['Aug', 'Sep', 'Oct', 'Nov', 'Dec', 'Jan']

    def test_json_snapshot(self, exporter, engine):
        path = exporter.export_to_json(engine)
        with open(path) as f:
            data = json.load(f)

        assert data['metadata']['filters'] == {'store_id': '1', 'date_range': '30d'}
        assert len(data['products']) == 130
        assert data['products'][0]['classification'] == 'core'
        assert data['heatmap'][0]['traffic'] == 'high'

    def test_excel_workbook(self, exporter, engine):
        path = exporter.export_to_excel(engine)
        workbook = openpyxl.load_workbook(path)
        assert workbook.sheetnames == ['Summary', 'Products', 'Categories', 'Heatmap']
        assert workbook['Products'].max_row == 131

    def test_html_report(self, exporter, engine):
        path = exporter.export_report_html(engine)
        with open(path, encoding='utf-8') as f:
            page = f.read()
        assert "Downtown Central" in page
        assert "$1,284,500" in page
        assert "Frozen Foods" in page

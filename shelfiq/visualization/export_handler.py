import html
import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from shelfiq.analytics.metrics_engine import MetricsEngine
from shelfiq.data_processing.data_transformer import DataTransformer
from shelfiq.utils.constants import IMPORT_TEMPLATES, OUTPUT_DIR
from shelfiq.utils.error_handler import ExportError, handle_errors
from shelfiq.utils.logger import get_logger

REPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 40px; max-width: 800px; margin: 0 auto; }}
    h1 {{ color: #0F766E; border-bottom: 2px solid #0F766E; padding-bottom: 10px; }}
    h2 {{ color: #1F2937; margin-top: 30px; }}
    table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
    th, td {{ border: 1px solid #E5E7EB; padding: 12px; text-align: left; }}
    th {{ background-color: #F8FAFC; font-weight: bold; }}
    tr:nth-child(even) {{ background-color: #F9FAFB; }}
    .summary {{ background: #F0FDF4; padding: 20px; border-radius: 8px; margin: 20px 0; }}
    .generated {{ color: #6B7280; font-size: 12px; margin-top: 40px; }}
    @media print {{ body {{ padding: 20px; }} }}
  </style>
</head>
<body>
  <h1>ShelfIQ - {title}</h1>
  {content}
  <p class="generated">Generated on {generated_at}</p>
</body>
</html>
"""


def _recursive_convert(obj: Any) -> Any:
    """
    Recursively convert:
    - Dict keys that are Enums to their .value
    - Enum values to .value
    - Process nested lists and dicts
    """
    if isinstance(obj, dict):
        new_dict = {}
        for k, v in obj.items():
            new_key = k.value if isinstance(k, Enum) else k
            new_dict[new_key] = _recursive_convert(v)
        return new_dict
    elif isinstance(obj, (list, tuple)):
        return [_recursive_convert(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    else:
        return obj


def generate_table_html(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    head = "".join(f"<th>{html.escape(str(h))}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(cell))}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def generate_summary_html(items: Sequence[Dict[str, Any]]) -> str:
    """Render label/value pairs as the highlighted summary block"""
    lines = "".join(
        f"<p><strong>{html.escape(str(item['label']))}:</strong> {html.escape(str(item['value']))}</p>"
        for item in items
    )
    return f'<div class="summary">{lines}</div>'


def build_report_html(title: str, content: str, generated_at: Optional[datetime] = None) -> str:
    """Wrap pre-rendered content in the printable report page"""
    generated_at = generated_at or datetime.now()
    return REPORT_TEMPLATE.format(
        title=html.escape(title),
        content=content,
        generated_at=generated_at.strftime('%Y-%m-%d %H:%M:%S'),
    )


def records_to_csv(records: List[Dict[str, Any]]) -> str:
    """Serialize records with minimal quoting; columns follow the first record"""
    if not records:
        return ""
    df = pd.DataFrame(records, columns=list(records[0].keys()))
    return df.to_csv(index=False, lineterminator='\n').rstrip('\n')


def generate_template(kind: str) -> str:
    if kind not in IMPORT_TEMPLATES:
        raise ExportError(f"Unknown template: {kind}. Available: {list(IMPORT_TEMPLATES)}")
    template = IMPORT_TEMPLATES[kind]
    lines = [",".join(template['headers'])] + [",".join(row) for row in template['rows']]
    return "\n".join(lines)


class ExportHandler:
    """Handle exporting dashboard data in various formats"""

    def __init__(self, output_dir: str = OUTPUT_DIR):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.transformer = DataTransformer()
        self.logger = get_logger()

    def _write(self, filename: str, content: str) -> str:
        filepath = self.output_dir / filename
        with open(filepath, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        return str(filepath)

    @handle_errors(raise_on_error=True)
    def export_to_csv(self, records: List[Dict[str, Any]], filename: str) -> str:
        """Write records to <filename>.csv"""
        if not records:
            raise ExportError(f"Nothing to export for {filename}")
        filepath = self._write(f"{filename}.csv", records_to_csv(records))
        self.logger.info(f"Exported {len(records)} rows to {filepath}")
        return filepath

    def export_engine_csv(self, engine: MetricsEngine, filename_prefix: str = "shelfiq") -> List[str]:
        """Export products, categories, heatmap and summary as separate CSV files"""
        month_labels = engine.baseline.month_labels
        tables = {
            'products': self.transformer.product_records(engine.products, month_labels),
            'categories': self.transformer.category_records(engine.categories),
            'heatmap': self.transformer.heatmap_records(engine.heatmap),
            'summary': self.transformer.summary_records(engine.sales_summary),
        }
        files_created = []
        for name, records in tables.items():
            if not records:
                self.logger.warning(f"Skipping empty {name} export")
                continue
            files_created.append(self.export_to_csv(records, f"{filename_prefix}_{name}"))
        return files_created

    @handle_errors(raise_on_error=True)
    def export_to_json(self, engine: MetricsEngine, filename: str = "shelfiq.json") -> str:
        """Export a full snapshot of the displayed state"""
        export_data = {
            'metadata': {
                'created_at': datetime.now().isoformat(),
                'filters': asdict(engine.filters),
            },
            'summary': asdict(engine.sales_summary),
            'products': [asdict(p) for p in engine.products],
            'categories': [asdict(c) for c in engine.categories],
            'heatmap': [asdict(z) for z in engine.heatmap],
        }

        cleaned = _recursive_convert(export_data)

        filepath = self.output_dir / filename
        with open(filepath, 'w') as f:
            json.dump(cleaned, f, indent=2)

        self.logger.info(f"Exported snapshot to {filepath}")
        return str(filepath)

    @handle_errors(raise_on_error=True)
    def export_to_excel(self, engine: MetricsEngine, filename: str = "shelfiq.xlsx") -> str:
        """Export the displayed state to an Excel workbook"""
        filepath = self.output_dir / filename
        month_labels = engine.baseline.month_labels

        with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
            pd.DataFrame(self.transformer.summary_records(engine.sales_summary)).to_excel(
                writer, sheet_name='Summary', index=False
            )
            pd.DataFrame(self.transformer.product_records(engine.products, month_labels)).to_excel(
                writer, sheet_name='Products', index=False
            )
            pd.DataFrame(self.transformer.category_records(engine.categories)).to_excel(
                writer, sheet_name='Categories', index=False
            )
            pd.DataFrame(self.transformer.heatmap_records(engine.heatmap)).to_excel(
                writer, sheet_name='Heatmap', index=False
            )

        self.logger.info(f"Exported workbook to {filepath}")
        return str(filepath)

    @handle_errors(raise_on_error=True)
    def export_report_html(self, engine: MetricsEngine, title: str = "Space Elasticity Report",
                           filename: str = "shelfiq_report.html") -> str:
        """Printable HTML report (open in a browser and print to PDF)"""
        summary = engine.sales_summary
        store = engine.baseline.store_by_id(engine.filters.store_id)

        content = generate_summary_html([
            {'label': 'Store', 'value': store.name if store else engine.filters.store_id},
            {'label': 'Date Range', 'value': engine.filters.date_range},
            {'label': 'Total SKUs', 'value': summary.total_skus},
            {'label': 'Total Sales Value', 'value': f"${summary.total_sales_value:,}"},
            {'label': 'Core / Average / Tail',
             'value': f"{summary.core_items_percentage}% / {summary.average_items_percentage}% / "
                      f"{summary.tail_items_percentage}%"},
        ])
        content += "<h2>Category Space</h2>" + generate_table_html(
            ['Category', 'Current (m)', 'Recommended (m)', 'Sales %', 'Efficiency %'],
            [
                [c.name, f"{c.current_space:g}", c.recommended_space, c.sales_percentage, c.efficiency]
                for c in engine.categories
            ],
        )
        content += "<h2>Store Heatmap</h2>" + generate_table_html(
            ['Zone', 'Category', 'Traffic', 'Traffic Score', 'Performance'],
            [
                [z.zone, z.category, z.traffic.value, z.traffic_score, z.performance]
                for z in engine.heatmap
            ],
        )

        filepath = self._write(filename, build_report_html(title, content))
        self.logger.info(f"Exported report to {filepath}")
        return filepath

    def export_template(self, kind: str) -> str:
        """Write an import template CSV"""
        filepath = self._write(f"{kind}_template.csv", generate_template(kind))
        self.logger.info(f"Wrote {kind} template to {filepath}")
        return filepath

from dataclasses import asdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from shelfiq.models.category import Category
from shelfiq.models.heatmap import HeatmapZone
from shelfiq.models.product import Product
from shelfiq.models.summary import SalesSummary
from shelfiq.utils.constants import (
    DEFAULT_STORE_ID,
    IMPORT_COLUMN_ALIASES,
    MONTHS_OF_HISTORY,
    REQUIRED_IMPORT_COLUMNS,
)
from shelfiq.utils.error_handler import ValidationError
from shelfiq.utils.logger import get_logger

Rows = Union[pd.DataFrame, Sequence[Dict]]

class DataTransformer:
    """Convert between tabular rows and model objects"""

    def __init__(self):
        self.transformations_applied = []
        self.skipped_rows = []
        self.logger = get_logger()

    def normalize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Rename template headers (e.g. 'Product Name') to model field names"""
        renamed = {}
        for column in df.columns:
            key = str(column).strip()
            if key in IMPORT_COLUMN_ALIASES:
                renamed[column] = IMPORT_COLUMN_ALIASES[key]
            else:
                renamed[column] = key.lower().replace(' ', '_')
        return df.rename(columns=renamed)

    def rows_to_products(self, rows: Rows) -> List[Product]:
        """Build products from mapped import rows.

        Rows missing a score are scored 0 and so classified as tail. Rows that
        cannot be converted are skipped and recorded in ``skipped_rows``.
        """
        self.transformations_applied = []
        self.skipped_rows = []

        df = rows if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows))
        if df.empty:
            return []
        df = self.normalize_columns(df)

        missing = [c for c in REQUIRED_IMPORT_COLUMNS if c not in df.columns]
        if missing:
            raise ValidationError(f"Missing required columns: {missing}")

        products = []
        for position, (_, row) in enumerate(df.iterrows(), start=1):
            try:
                products.append(self._row_to_product(row))
            except (ValueError, TypeError) as e:
                message = f"Row {position}: {e}"
                self.skipped_rows.append(message)
                self.logger.warning(f"Skipping import row. {message}")

        self.transformations_applied.append(
            f"Row mapping: {len(df)} rows -> {len(products)} products"
        )
        return products

    def _row_to_product(self, row: pd.Series) -> Product:
        sku = self._text(row.get('sku'))
        if not sku:
            raise ValueError("missing SKU")

        score = row.get('score')
        monthly_sales = row.get('monthly_sales')
        if not isinstance(monthly_sales, (list, tuple)):
            monthly_sales = [0] * MONTHS_OF_HISTORY

        return Product(
            sku=sku,
            name=self._text(row.get('name')),
            category=self._text(row.get('category')),
            price=self._number(row, 'price'),
            shelf_space=self._number(row, 'shelf_space'),
            sales_percentage=self._number(row, 'sales_percentage'),
            score=0.0 if score is None or pd.isna(score) else float(score),
            monthly_sales=[int(v) for v in monthly_sales],
            store_id=self._text(row.get('store_id')) or DEFAULT_STORE_ID,
        )

    @staticmethod
    def _number(row: pd.Series, key: str) -> float:
        value = row.get(key)
        if value is None or pd.isna(value) or str(value).strip() == '':
            raise ValueError(f"missing {key}")
        return float(value)

    @staticmethod
    def _text(value) -> str:
        if value is None or (not isinstance(value, (list, tuple)) and pd.isna(value)):
            return ''
        return str(value).strip()

    def product_records(self, products: Iterable[Product],
                        month_labels: Optional[List[str]] = None) -> List[Dict]:
        """Flatten products into export rows, one column per month"""
        records = []
        for product in products:
            record = {
                'sku': product.sku,
                'name': product.name,
                'category': product.category,
                'price': product.price,
                'shelf_space': product.shelf_space,
                'sales_percentage': product.sales_percentage,
                'score': product.score,
                'classification': product.classification.value,
                'store_id': product.store_id,
            }
            labels = month_labels or [f"month_{i + 1}" for i in range(len(product.monthly_sales))]
            for label, value in zip(labels, product.monthly_sales):
                record[label] = value
            records.append(record)
        return records

    def category_records(self, categories: Iterable[Category]) -> List[Dict]:
        records = []
        for category in categories:
            record = asdict(category)
            record['variance'] = category.variance
            record['variance_percent'] = category.variance_percent
            records.append(record)
        return records

    def heatmap_records(self, zones: Iterable[HeatmapZone]) -> List[Dict]:
        records = []
        for zone in zones:
            record = asdict(zone)
            record['traffic'] = zone.traffic.value
            records.append(record)
        return records

    def summary_records(self, summary: SalesSummary) -> List[Dict]:
        return [{'metric': key, 'value': value} for key, value in asdict(summary).items()]

    def products_to_frame(self, products: Iterable[Product],
                          month_labels: Optional[List[str]] = None) -> pd.DataFrame:
        return pd.DataFrame(self.product_records(products, month_labels))

    def group_products_by_category(self, products: Iterable[Product]) -> Dict[str, List[Product]]:
        """Group products by category name, best sellers first"""
        grouped = {}
        for product in products:
            grouped.setdefault(product.category, []).append(product)

        for category in grouped:
            grouped[category].sort(key=lambda p: p.sales_percentage, reverse=True)

        return grouped

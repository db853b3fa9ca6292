import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from shelfiq.models.category import Category
from shelfiq.models.dataset import BaselineDataset
from shelfiq.models.heatmap import HeatmapZone, TrafficLevel
from shelfiq.models.product import Product
from shelfiq.models.store import MultiplierTable, Store
from shelfiq.models.summary import SalesSummary
from shelfiq.utils.constants import (
    BASELINE_DATA_DIR,
    MONTHLY_SALES_LOW,
    MONTHLY_SALES_SPREAD,
    MONTHS_OF_HISTORY,
)
from shelfiq.utils.error_handler import DataLoadError
from shelfiq.utils.logger import get_logger
from shelfiq.utils.math_utils import round_half_up

class DataLoader:
    """Load the baseline snapshot shipped with the package"""

    FILES = {
        'products': 'products.csv',
        'categories': 'categories.csv',
        'heatmap': 'heatmap.csv',
        'reference': 'reference.json',
    }

    def __init__(self, data_path: Optional[str] = None):
        self.data_path = Path(data_path) if data_path else BASELINE_DATA_DIR
        self.logger = get_logger()
        self._reference = None

        # Validate paths exist
        self._validate_paths()

    def _validate_paths(self):
        """Ensure the data directory and every baseline file exist"""
        if not self.data_path.exists():
            raise DataLoadError(f"Required path not found: {self.data_path}")
        for filename in self.FILES.values():
            if not (self.data_path / filename).exists():
                raise DataLoadError(f"Data file not found: {self.data_path / filename}")

    def _read_csv(self, key: str, dtype: Optional[Dict] = None) -> pd.DataFrame:
        file_path = self.data_path / self.FILES[key]
        try:
            return pd.read_csv(file_path, dtype=dtype, float_precision='round_trip')
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise DataLoadError(f"Could not read {file_path}: {e}") from e

    def load_reference(self) -> Dict:
        """Load stores, multipliers and sales totals"""
        if self._reference is None:
            file_path = self.data_path / self.FILES['reference']
            try:
                with open(file_path, 'r') as f:
                    self._reference = json.load(f)
            except json.JSONDecodeError as e:
                raise DataLoadError(f"Invalid reference file {file_path}: {e}") from e
        return self._reference

    def load_stores(self) -> List[Store]:
        return [
            Store(id=str(s['id']), name=s['name'], location=s['location'])
            for s in self.load_reference().get('stores', [])
        ]

    def load_multipliers(self) -> Tuple[MultiplierTable, MultiplierTable]:
        """Return (store multipliers, date range multipliers)"""
        reference = self.load_reference()
        return (
            MultiplierTable.from_mapping(reference.get('store_multipliers')),
            MultiplierTable.from_mapping(reference.get('date_range_multipliers')),
        )

    def load_products(self, seed: Optional[int] = None) -> List[Product]:
        """Load products, generating six months of sales around each base value"""
        df = self._read_csv('products', dtype={'sku': str, 'store_id': str})
        if seed is None:
            seed = self.load_reference().get('monthly_sales_seed')
        rng = np.random.default_rng(seed)
        return self._dataframe_to_products(df, rng)

    def load_categories(self) -> List[Category]:
        df = self._read_csv('categories', dtype={'id': str})
        categories = []
        for _, row in df.iterrows():
            categories.append(Category(
                id=str(row['id']),
                name=str(row['name']).strip(),
                current_space=float(row['current_space']),
                sales_percentage=float(row.get('sales_percentage', 0)),
                recommended_space=int(row.get('recommended_space', 0)),
                product_count=int(row.get('product_count', 0)),
                efficiency=int(row.get('efficiency', 0)),
            ))
        return categories

    def load_heatmap(self) -> List[HeatmapZone]:
        df = self._read_csv('heatmap')
        zones = []
        for _, row in df.iterrows():
            try:
                traffic = TrafficLevel(str(row['traffic']).lower())
            except ValueError:
                self.logger.warning(f"Zone {row['zone']}: unknown traffic level '{row['traffic']}', using low")
                traffic = TrafficLevel.LOW
            zones.append(HeatmapZone(
                zone=str(row['zone']),
                category=str(row['category']),
                traffic=traffic,
                traffic_score=int(row['traffic_score']),
                performance=int(row['performance']),
                x=int(row['x']),
                y=int(row['y']),
            ))
        return zones

    def load_baseline(self, seed: Optional[int] = None) -> BaselineDataset:
        """Load the complete baseline snapshot"""
        reference = self.load_reference()
        products = self.load_products(seed)
        store_multipliers, date_multipliers = self.load_multipliers()
        totals = reference.get('sales_totals', {})

        summary = SalesSummary.from_products(
            products,
            total_sales_value=int(totals.get('total_sales_value', 0)),
            avg_sales_per_sku=int(totals.get('avg_sales_per_sku', 0)),
        )

        dataset = BaselineDataset(
            products=products,
            categories=self.load_categories(),
            summary=summary,
            heatmap=self.load_heatmap(),
            stores=self.load_stores(),
            store_multipliers=store_multipliers,
            date_range_multipliers=date_multipliers,
            month_labels=list(reference.get('month_labels', [])),
        )
        self.logger.info(
            f"Loaded baseline: {len(dataset.products)} products, "
            f"{len(dataset.categories)} categories, {len(dataset.heatmap)} zones"
        )
        return dataset

    def _dataframe_to_products(self, df: pd.DataFrame, rng: np.random.Generator) -> List[Product]:
        """Convert DataFrame to list of Product objects"""
        products = []

        for _, row in df.iterrows():
            try:
                base = float(row['base_monthly_sales'])
                factors = MONTHLY_SALES_LOW + rng.random(MONTHS_OF_HISTORY) * MONTHLY_SALES_SPREAD
                product = Product(
                    sku=str(row['sku']).strip(),
                    name=str(row['name']).strip(),
                    category=str(row['category']).strip(),
                    price=float(row['price']),
                    shelf_space=float(row['shelf_space']),
                    sales_percentage=float(row['sales_percentage']),
                    score=float(row['score']),
                    monthly_sales=[round_half_up(base * f) for f in factors],
                    store_id=str(row['store_id']),
                )
                products.append(product)

            except (KeyError, ValueError, TypeError) as e:
                self.logger.warning(f"Error loading product {row.get('sku', 'unknown')}: {e}")
                continue

        return products

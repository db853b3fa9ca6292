import asyncio
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shelfiq.data_processing.data_loader import DataLoader
from shelfiq.models.category import Category
from shelfiq.models.dataset import BaselineDataset
from shelfiq.models.heatmap import HeatmapZone
from shelfiq.models.product import Product
from shelfiq.models.store import Filters
from shelfiq.models.summary import SalesSummary
from shelfiq.utils.constants import (
    FILTER_DELAY_SECONDS,
    MAX_EFFICIENCY,
    MAX_ZONE_SCORE,
    RECALCULATION_DELAY_SECONDS,
)
from shelfiq.utils.logger import get_logger
from shelfiq.utils.math_utils import round_half_up, safe_divide
from shelfiq.utils.monitor import monitor

@dataclass
class FilterResult:
    """Displayed state produced by one filter application"""
    products: List[Product]
    summary: SalesSummary
    heatmap: List[HeatmapZone]
    filters: Filters = field(default_factory=Filters)
    store_multiplier: float = 1.0
    date_multiplier: float = 1.0

    @property
    def combined_multiplier(self) -> float:
        return self.store_multiplier * self.date_multiplier

    def get_summary(self) -> Dict[str, Any]:
        return {
            'store_id': self.filters.store_id,
            'date_range': self.filters.date_range,
            'combined_multiplier': self.combined_multiplier,
            'total_skus': self.summary.total_skus,
            'total_sales_value': self.summary.total_sales_value,
            'avg_sales_per_sku': self.summary.avg_sales_per_sku,
        }

@dataclass
class _CategoryStats:
    sales: float = 0.0
    count: int = 0

class MetricsEngine:
    """Owns the baseline tables and recomputes every derived view from them.

    Filtering always starts from the baseline snapshot, never from what is
    currently displayed, so repeated calls are idempotent. Each operation
    swaps whole tables under a single lock; readers never see a partial update.
    """

    def __init__(self, baseline: BaselineDataset,
                 filter_delay: float = FILTER_DELAY_SECONDS,
                 recalculation_delay: float = RECALCULATION_DELAY_SECONDS):
        self.baseline = baseline
        self.filter_delay = filter_delay
        self.recalculation_delay = recalculation_delay
        self.logger = get_logger()

        self._lock = threading.Lock()
        self._products = [p.copy() for p in baseline.products]
        self._categories = [c.copy() for c in baseline.categories]
        self._summary = baseline.summary
        self._heatmap = [z.with_scores(z.traffic_score, z.performance) for z in baseline.heatmap]
        self._filters = Filters()
        self._in_flight = 0

    @classmethod
    def from_data_path(cls, data_path: Optional[str] = None, **kwargs) -> "MetricsEngine":
        """Build an engine from the baseline files in data_path"""
        return cls(DataLoader(data_path).load_baseline(), **kwargs)

    # Read accessors

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def categories(self) -> List[Category]:
        return list(self._categories)

    @property
    def sales_summary(self) -> SalesSummary:
        return self._summary

    @property
    def heatmap(self) -> List[HeatmapZone]:
        return list(self._heatmap)

    @property
    def filters(self) -> Filters:
        return self._filters

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def set_filters(self, filters: Filters):
        self._filters = filters

    # Filtering

    def multipliers_for(self, filters: Filters) -> Tuple[float, float]:
        """(store multiplier, date range multiplier); unknown keys are neutral"""
        return (
            self.baseline.store_multipliers.get(filters.store_id),
            self.baseline.date_range_multipliers.get(filters.date_range),
        )

    def compute_filtered_view(self, filters: Filters) -> FilterResult:
        """Project the baseline through the filter multipliers without touching state"""
        store_multiplier, date_multiplier = self.multipliers_for(filters)
        combined = store_multiplier * date_multiplier

        products = [
            p.with_sales(
                round_half_up(p.sales_percentage * combined, 2),
                [round_half_up(sale * combined) for sale in p.monthly_sales],
            )
            for p in self.baseline.products
        ]

        # Classification is carried over from the baseline, not re-derived from sales
        base = self.baseline.summary
        summary = SalesSummary.from_products(
            products,
            total_sales_value=round_half_up(base.total_sales_value * combined),
            avg_sales_per_sku=round_half_up(base.avg_sales_per_sku * combined),
        )

        # Foot traffic depends on the store only
        heatmap = [
            z.with_scores(
                traffic_score=min(MAX_ZONE_SCORE, round_half_up(z.traffic_score * store_multiplier)),
                performance=min(MAX_ZONE_SCORE, round_half_up(z.performance * combined)),
            )
            for z in self.baseline.heatmap
        ]

        return FilterResult(
            products=products,
            summary=summary,
            heatmap=heatmap,
            filters=filters,
            store_multiplier=store_multiplier,
            date_multiplier=date_multiplier,
        )

    @monitor.time_it
    async def apply_filters(self, filters: Optional[Filters] = None) -> FilterResult:
        """Apply filters (or the current ones) and replace the displayed state"""
        if filters is not None:
            self.set_filters(filters)
        filters = self._filters

        self._in_flight += 1
        try:
            await asyncio.sleep(self.filter_delay)
            result = self.compute_filtered_view(filters)
            with self._lock:
                self._products = list(result.products)
                self._summary = result.summary
                self._heatmap = list(result.heatmap)
        finally:
            self._in_flight -= 1

        self.logger.info(
            f"Applied filters store={filters.store_id} range={filters.date_range} "
            f"(x{result.combined_multiplier:.4f})"
        )
        return result

    # Space elasticity

    def compute_space_elasticity(self, products: Optional[Iterable[Product]] = None) -> List[Category]:
        """Recommend category space in proportion to each category's sales share"""
        if products is None:
            products = self._products

        stats: Dict[str, _CategoryStats] = {}
        for product in products:
            entry = stats.setdefault(product.category, _CategoryStats())
            entry.sales += product.sales_percentage
            entry.count += 1

        total_sales = sum(s.sales for s in stats.values())
        if not math.isfinite(total_sales):
            self.logger.warning(f"Non-finite total sales ({total_sales}), treating every share as 0")
            total_sales = 0.0
        total_space = sum(c.current_space for c in self.baseline.categories)

        updated = []
        for category in self.baseline.categories:
            entry = stats.get(category.name)
            sales_share = safe_divide(entry.sales, total_sales) * 100 if entry else 0.0
            if not math.isfinite(sales_share):
                sales_share = 0.0
            recommended_space = round_half_up(sales_share / 100 * total_space)

            current_share = safe_divide(category.current_space, total_space) * 100
            if recommended_space > 0 and current_share > 0:
                efficiency = min(MAX_EFFICIENCY, round_half_up(sales_share / current_share * 100))
            elif recommended_space > 0:
                # Zero current share makes the ratio unbounded, so it takes the cap
                efficiency = MAX_EFFICIENCY
            else:
                efficiency = 0

            updated.append(Category(
                id=category.id,
                name=category.name,
                current_space=category.current_space,
                sales_percentage=round_half_up(sales_share, 1),
                recommended_space=recommended_space,
                product_count=entry.count if entry else 0,
                efficiency=efficiency,
            ))

        return updated

    @monitor.time_it
    async def recalculate_space_elasticity(self) -> List[Category]:
        """Recompute category recommendations from the displayed products"""
        products = list(self._products)

        self._in_flight += 1
        try:
            await asyncio.sleep(self.recalculation_delay)
            updated = self.compute_space_elasticity(products)
            with self._lock:
                self._categories = updated
        finally:
            self._in_flight -= 1

        self.logger.info(f"Recalculated space elasticity for {len(updated)} categories")
        return list(updated)

    # Import

    def import_products(self, rows: Iterable[Product]):
        """Upsert products by SKU; existing SKUs keep their position"""
        rows = list(rows)
        with self._lock:
            merged = {p.sku: p for p in self._products}
            for product in rows:
                merged[product.sku] = product
            added = len(merged) - len(self._products)
            self._products = list(merged.values())

        self.logger.info(f"Imported {len(rows)} products ({added} new, {len(rows) - added} updated)")

    def reset(self):
        """Restore the displayed state to the baseline"""
        with self._lock:
            self._products = [p.copy() for p in self.baseline.products]
            self._categories = [c.copy() for c in self.baseline.categories]
            self._summary = self.baseline.summary
            self._heatmap = [z.with_scores(z.traffic_score, z.performance) for z in self.baseline.heatmap]
            self._filters = Filters()

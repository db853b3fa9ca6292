from dataclasses import dataclass, field
from typing import List

from .category import Category
from .heatmap import HeatmapZone
from .product import Product
from .store import MultiplierTable, Store
from .summary import SalesSummary

@dataclass
class BaselineDataset:
    """Reference snapshot every derived view is computed from"""
    products: List[Product]
    categories: List[Category]
    summary: SalesSummary
    heatmap: List[HeatmapZone]
    stores: List[Store] = field(default_factory=list)
    store_multipliers: MultiplierTable = field(default_factory=MultiplierTable)
    date_range_multipliers: MultiplierTable = field(default_factory=MultiplierTable)
    month_labels: List[str] = field(default_factory=list)

    @property
    def total_space(self) -> float:
        return sum(c.current_space for c in self.categories)

    def store_by_id(self, store_id: str):
        for store in self.stores:
            if store.id == store_id:
                return store
        return None

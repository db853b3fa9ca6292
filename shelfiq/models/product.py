from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from shelfiq.utils.constants import (
    AVERAGE_SCORE_THRESHOLD,
    CORE_SCORE_THRESHOLD,
    DEFAULT_STORE_ID,
    MONTHS_OF_HISTORY,
)

class Classification(Enum):
    CORE = "core"
    AVERAGE = "average"
    TAIL = "tail"

def classify(score: float) -> Classification:
    """Map a 0-10 performance score to its classification"""
    if score >= CORE_SCORE_THRESHOLD:
        return Classification.CORE
    if score >= AVERAGE_SCORE_THRESHOLD:
        return Classification.AVERAGE
    return Classification.TAIL

@dataclass
class Product:
    """Product data model for a sellable SKU"""
    # Basic info
    sku: str
    name: str
    category: str  # joins on Category.name
    price: float

    # Space (in meters) and performance
    shelf_space: float
    sales_percentage: float
    score: float

    # Sales history, one entry per trailing month
    monthly_sales: List[int] = field(default_factory=lambda: [0] * MONTHS_OF_HISTORY)
    store_id: str = DEFAULT_STORE_ID

    # Computed fields
    classification: Optional[Classification] = field(init=False, default=None)

    def __post_init__(self):
        """Derive classification from score"""
        self.monthly_sales = list(self.monthly_sales)
        self.classification = classify(self.score)

    @property
    def is_tail(self) -> bool:
        return self.classification is Classification.TAIL

    @property
    def total_monthly_sales(self) -> int:
        return sum(self.monthly_sales)

    @property
    def sales_per_meter(self) -> float:
        """Sales share per meter of shelf occupied"""
        return self.sales_percentage / self.shelf_space if self.shelf_space > 0 else 0

    def with_sales(self, sales_percentage: float, monthly_sales: List[int]) -> "Product":
        """Copy of this product with replaced sales figures; classification is kept"""
        return replace(self, sales_percentage=sales_percentage, monthly_sales=list(monthly_sales))

    def copy(self) -> "Product":
        return replace(self)

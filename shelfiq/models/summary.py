from dataclasses import dataclass
from typing import Dict, List

from shelfiq.models.product import Classification, Product
from shelfiq.utils.math_utils import percentage

@dataclass(frozen=True)
class SalesSummary:
    """Aggregate snapshot of the product table"""
    total_skus: int
    core_items_percentage: int
    average_items_percentage: int
    tail_items_percentage: int
    total_sales_value: int
    avg_sales_per_sku: int

    @classmethod
    def from_products(cls, products: List[Product],
                      total_sales_value: int,
                      avg_sales_per_sku: int) -> "SalesSummary":
        """Build a summary from classification counts and pre-scaled sales totals"""
        counts = count_classifications(products)
        total = len(products)
        return cls(
            total_skus=total,
            core_items_percentage=percentage(counts[Classification.CORE], total),
            average_items_percentage=percentage(counts[Classification.AVERAGE], total),
            tail_items_percentage=percentage(counts[Classification.TAIL], total),
            total_sales_value=total_sales_value,
            avg_sales_per_sku=avg_sales_per_sku,
        )

def count_classifications(products: List[Product]) -> Dict[Classification, int]:
    counts = {c: 0 for c in Classification}
    for product in products:
        counts[product.classification] += 1
    return counts

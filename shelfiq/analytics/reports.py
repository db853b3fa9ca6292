"""Read-only analysis views over engine state"""
from typing import Any, Dict, List, Optional

from shelfiq.models.category import Category
from shelfiq.models.heatmap import HeatmapZone
from shelfiq.models.product import Classification, Product
from shelfiq.models.summary import count_classifications
from shelfiq.utils.constants import SORT_FIELDS
from shelfiq.utils.error_handler import ConfigurationError
from shelfiq.utils.math_utils import percentage, round_half_up, safe_divide

def tail_analysis(products: List[Product]) -> Dict[str, Any]:
    """Split the assortment into tail and non-tail SKUs"""
    tail = [p for p in products if p.is_tail]
    core = [p for p in products if not p.is_tail]

    core_share = percentage(len(core), len(products))
    tail_share = 100 - core_share if products else 0

    return {
        'core_count': len(core),
        'tail_count': len(tail),
        'core_sku_percentage': core_share,
        'tail_sku_percentage': tail_share,
        'core_sales_contribution': round_half_up(sum(p.sales_percentage for p in core), 1),
        'tail_sales_contribution': round_half_up(sum(p.sales_percentage for p in tail), 1),
        'classification_counts': {
            c.value: n for c, n in count_classifications(products).items()
        },
    }

def category_breakdown(products: List[Product], categories: List[Category]) -> List[Dict[str, Any]]:
    """Core/average/tail counts per category (joined on category name)"""
    breakdown = []
    for category in categories:
        members = [p for p in products if p.category == category.name]
        counts = count_classifications(members)
        breakdown.append({
            'name': category.name,
            'core': counts[Classification.CORE],
            'average': counts[Classification.AVERAGE],
            'tail': counts[Classification.TAIL],
            'total': len(members),
        })
    return breakdown

def search_products(products: List[Product],
                    query: str = '',
                    category: Optional[str] = None,
                    sort_field: str = 'sales_percentage',
                    ascending: bool = False) -> List[Product]:
    """Filter by text query and category, then sort"""
    if sort_field not in SORT_FIELDS:
        raise ConfigurationError(f"Unknown sort field: {sort_field}. Available: {list(SORT_FIELDS)}")

    results = list(products)

    if query:
        needle = query.lower()
        results = [
            p for p in results
            if needle in p.sku.lower() or needle in p.name.lower() or needle in p.category.lower()
        ]

    if category and category != 'all':
        results = [p for p in results if p.category == category]

    if sort_field == 'sales_percentage':
        key = lambda p: p.sales_percentage
    else:
        key = lambda p: getattr(p, sort_field).lower()

    return sorted(results, key=key, reverse=not ascending)

def space_allocation(categories: List[Category]) -> Dict[str, Any]:
    """Over/under allocation summary for the space elasticity view"""
    over = [c for c in categories if c.is_over_allocated]
    under = [c for c in categories if c.is_under_allocated]

    return {
        'total_space': sum(c.current_space for c in categories),
        'total_recommended': sum(c.recommended_space for c in categories),
        'over_allocated': [c.name for c in over],
        'under_allocated': [c.name for c in under],
        'reclaimable_space': sum(abs(c.variance) for c in over),
        'average_efficiency': round_half_up(
            safe_divide(sum(c.efficiency for c in categories), len(categories))
        ),
    }

def heatmap_grid(zones: List[HeatmapZone]) -> List[List[HeatmapZone]]:
    """Arrange zones into rows by y, each row ordered by x"""
    rows: Dict[int, List[HeatmapZone]] = {}
    for zone in zones:
        rows.setdefault(zone.y, []).append(zone)
    return [sorted(rows[y], key=lambda z: z.x) for y in sorted(rows)]

def category_monthly_trend(products: List[Product],
                           categories: List[Category],
                           month_labels: List[str]) -> Dict[str, Dict[str, int]]:
    # Months beyond the product history are reported as 0
    trend = {}
    for category in categories:
        totals = [0] * len(month_labels)
        for product in products:
            if product.category != category.name:
                continue
            for i, value in enumerate(product.monthly_sales[:len(month_labels)]):
                totals[i] += value
        trend[category.name] = dict(zip(month_labels, totals))
    return trend

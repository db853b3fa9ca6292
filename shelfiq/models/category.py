from dataclasses import dataclass, replace

from shelfiq.utils.math_utils import round_half_up

@dataclass
class Category:
    """Shelf category with its space allocation"""
    id: str
    name: str  # join key for Product.category
    current_space: float  # meters, authoritative

    # Derived by space elasticity recalculation
    sales_percentage: float = 0.0
    recommended_space: int = 0
    product_count: int = 0
    efficiency: int = 0

    @property
    def variance(self) -> float:
        """Recommended minus current space; negative means over-allocated"""
        return self.recommended_space - self.current_space

    @property
    def variance_percent(self) -> float:
        if self.current_space == 0:
            return 0.0
        return round_half_up(self.variance / self.current_space * 100, 1)

    @property
    def is_over_allocated(self) -> bool:
        return self.variance < 0

    @property
    def is_under_allocated(self) -> bool:
        return self.variance > 0

    def copy(self) -> "Category":
        return replace(self)

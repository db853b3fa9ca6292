import math
import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from shelfiq.models.product import Product
from shelfiq.utils.constants import MAX_SCORE, MIN_SCORE, MONTHS_OF_HISTORY, SKU_PATTERN
from shelfiq.utils.error_handler import ValidationError

class DataValidator:
    """Validate imported product rows before they are merged"""

    def __init__(self, known_categories: Optional[Iterable[str]] = None,
                 sku_pattern: str = SKU_PATTERN):
        self.known_categories = set(known_categories) if known_categories else set()
        self.sku_regex = re.compile(sku_pattern)
        self.warnings = []
        self.errors = []

    def validate_products(self, products: List[Product]) -> Tuple[bool, List[str]]:
        """Validate product data and return (is_valid, issues)"""
        self.warnings = []
        self.errors = []

        if not products:
            self.errors.append("No products provided for validation")
            return False, self.errors

        # Check for duplicates
        seen = set()
        duplicates = set()
        for product in products:
            if product.sku in seen:
                duplicates.add(product.sku)
            seen.add(product.sku)
        if duplicates:
            self.errors.append(f"Duplicate SKUs found: {sorted(duplicates)}")

        for row_number, product in enumerate(products, start=1):
            self._validate_single_product(row_number, product)

        all_issues = self.errors + self.warnings
        return len(self.errors) == 0, all_issues

    def ensure_valid(self, products: List[Product]) -> List[Product]:
        """Strict variant: raise ValidationError on any error"""
        is_valid, _ = self.validate_products(products)
        if not is_valid:
            raise ValidationError("; ".join(self.errors))
        return products

    def _validate_single_product(self, row_number: int, product: Product):
        label = f"Row {row_number} ({product.sku or 'no SKU'})"

        if not self.sku_regex.match(product.sku or ''):
            self.errors.append(f"{label}: Invalid SKU format")

        if not product.category:
            self.errors.append(f"{label}: Missing category")
        elif self.known_categories and product.category not in self.known_categories:
            self.warnings.append(f"{label}: Unknown category '{product.category}'")

        if not product.name:
            self.warnings.append(f"{label}: Missing product name")

        non_finite = [
            field for field in ('price', 'shelf_space', 'sales_percentage', 'score')
            if not math.isfinite(getattr(product, field))
        ]
        if non_finite:
            self.errors.append(f"{label}: Non-finite values in {non_finite}")

        if product.price < 0:
            self.errors.append(f"{label}: Negative price")

        if product.shelf_space < 0:
            self.errors.append(f"{label}: Negative shelf space")

        if product.sales_percentage < 0:
            self.errors.append(f"{label}: Negative sales percentage")
        elif product.sales_percentage > 100:
            self.warnings.append(f"{label}: Sales percentage above 100 ({product.sales_percentage})")

        if not MIN_SCORE <= product.score <= MAX_SCORE:
            self.errors.append(f"{label}: Score {product.score} outside {MIN_SCORE:g}-{MAX_SCORE:g}")

        if len(product.monthly_sales) != MONTHS_OF_HISTORY:
            self.errors.append(
                f"{label}: Expected {MONTHS_OF_HISTORY} months of sales, got {len(product.monthly_sales)}"
            )

    def generate_validation_report(self) -> str:
        """Generate a validation report for the last run"""
        report = []
        report.append("IMPORT VALIDATION REPORT")
        report.append("=" * 50)
        report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report.append("")

        if self.errors:
            report.append(f"ERRORS ({len(self.errors)}):")
            report.append("-" * 30)
            for error in self.errors:
                report.append(f"❌ {error}")
            report.append("")

        if self.warnings:
            report.append(f"WARNINGS ({len(self.warnings)}):")
            report.append("-" * 30)
            for warning in self.warnings:
                report.append(f"⚠️  {warning}")
            report.append("")

        if not self.errors and not self.warnings:
            report.append("✅ All validations passed!")

        return "\n".join(report)

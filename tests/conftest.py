import matplotlib

matplotlib.use("Agg")

import pytest

from shelfiq.analytics.metrics_engine import MetricsEngine
from shelfiq.data_processing.data_loader import DataLoader
from shelfiq.models import (
    BaselineDataset,
    Category,
    HeatmapZone,
    MultiplierTable,
    Product,
    SalesSummary,
    Store,
    TrafficLevel,
)
from shelfiq.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def _work_in_tmp(tmp_path, monkeypatch):
    # logs/ and output/ are created relative to the working directory
    monkeypatch.chdir(tmp_path)
    configure_logging(log_to_file=False)


@pytest.fixture(scope="session")
def baseline():
    configure_logging(log_to_file=False)
    return DataLoader().load_baseline()


@pytest.fixture
def engine(baseline):
    return MetricsEngine(baseline, filter_delay=0, recalculation_delay=0)


def make_product(sku, category="Groceries", sales=1.0, score=5.0, **kwargs):
    fields = dict(
        sku=sku,
        name=f"Product {sku}",
        category=category,
        price=1.99,
        shelf_space=0.5,
        sales_percentage=sales,
        score=score,
        monthly_sales=[100, 110, 120, 130, 140, 150],
        store_id="1",
    )
    fields.update(kwargs)
    return Product(**fields)


@pytest.fixture
def small_baseline():
    """Three categories, one of them empty, totalling 100 m of shelf"""
    products = [
        make_product("GRO-001", "Groceries", sales=6.0, score=9.0),
        make_product("GRO-002", "Groceries", sales=2.0, score=5.0),
        make_product("HOU-001", "Household", sales=2.0, score=2.0),
    ]
    categories = [
        Category(id="1", name="Groceries", current_space=50),
        Category(id="2", name="Household", current_space=30),
        Category(id="3", name="Snacks", current_space=20),
    ]
    heatmap = [
        HeatmapZone("A1", "Groceries", TrafficLevel.HIGH, 90, 95, 0, 0),
        HeatmapZone("A2", "Household", TrafficLevel.LOW, 30, 40, 1, 0),
    ]
    summary = SalesSummary.from_products(products, total_sales_value=1000, avg_sales_per_sku=333)
    return BaselineDataset(
        products=products,
        categories=categories,
        summary=summary,
        heatmap=heatmap,
        stores=[Store("1", "Downtown Central", "New York, NY"), Store("2", "Westside Market", "Los Angeles, CA")],
        store_multipliers=MultiplierTable({"1": 1.0, "2": 0.5}),
        date_range_multipliers=MultiplierTable({"30d": 1.0, "90d": 1.5}),
        month_labels=["Aug", "Sep", "Oct", "Nov", "Dec", "Jan"],
    )


@pytest.fixture
def small_engine(small_baseline):
    return MetricsEngine(small_baseline, filter_delay=0, recalculation_delay=0)


@pytest.fixture
def product_factory():
    return make_product

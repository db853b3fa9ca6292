from .product import Product, Classification, classify
from .category import Category
from .store import Store, Filters, MultiplierTable
from .summary import SalesSummary
from .heatmap import HeatmapZone, TrafficLevel
from .dataset import BaselineDataset

__all__ = ['Product', 'Classification', 'classify', 'Category', 'Store', 'Filters',
           'MultiplierTable', 'SalesSummary', 'HeatmapZone', 'TrafficLevel', 'BaselineDataset']

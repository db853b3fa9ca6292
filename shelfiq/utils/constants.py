"""System-wide constants"""
from pathlib import Path

# Paths
BASELINE_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "baseline"
LOG_DIR = "logs"
OUTPUT_DIR = "output"
LOGGER_NAME = "shelfiq"

# Classification thresholds (score is 0-10)
CORE_SCORE_THRESHOLD = 7.0
AVERAGE_SCORE_THRESHOLD = 4.0
MIN_SCORE = 0.0
MAX_SCORE = 10.0

# Monthly sales history
MONTHS_OF_HISTORY = 6
MONTHLY_SALES_LOW = 0.8  # random factor range around the base value
MONTHLY_SALES_SPREAD = 0.4

# Filters
DEFAULT_STORE_ID = "1"
DEFAULT_DATE_RANGE = "30d"
NEUTRAL_MULTIPLIER = 1.0

# Simulated latency in seconds
FILTER_DELAY_SECONDS = 0.8
RECALCULATION_DELAY_SECONDS = 1.2

# Scores and percentages are capped
MAX_EFFICIENCY = 100
MAX_ZONE_SCORE = 100

# Import
SKU_PATTERN = r"^[A-Z]{3}-\d{3}$"
IMPORT_COLUMN_ALIASES = {
    'SKU': 'sku',
    'Product Name': 'name',
    'Name': 'name',
    'Category': 'category',
    'Price': 'price',
    'Shelf Space (m)': 'shelf_space',
    'Shelf Space': 'shelf_space',
    'Sales Percentage': 'sales_percentage',
    'Score': 'score',
    'Store ID': 'store_id',
}
REQUIRED_IMPORT_COLUMNS = ['sku', 'name', 'category', 'price', 'shelf_space', 'sales_percentage']

# Import templates: headers and sample rows
IMPORT_TEMPLATES = {
    'products': {
        'headers': ['SKU', 'Product Name', 'Category', 'Price', 'Shelf Space (m)', 'Sales Percentage'],
        'rows': [
            ['GRO-001', 'Organic Whole Milk', 'Groceries', '5.99', '0.8', '4.2'],
            ['BEV-001', 'Premium Orange Juice', 'Beverages', '6.49', '0.7', '3.2'],
            ['HOU-001', 'Multi-Surface Cleaner', 'Household', '4.29', '0.4', '2.8'],
        ],
    },
    'sales': {
        'headers': ['Date', 'SKU', 'Quantity', 'Total Amount', 'Store ID'],
        'rows': [
            ['2024-01-15', 'GRO-001', '25', '149.75', '1'],
            ['2024-01-15', 'BEV-001', '18', '116.82', '1'],
            ['2024-01-16', 'GRO-001', '30', '179.70', '1'],
        ],
    },
    'categories': {
        'headers': ['Category ID', 'Category Name', 'Current Space (m)', 'Target Space (m)'],
        'rows': [
            ['1', 'Groceries', '45', '42'],
            ['2', 'Household', '25', '24'],
            ['3', 'Personal Care', '18', '20'],
        ],
    },
}

# Product table sort fields
SORT_FIELDS = ('sku', 'name', 'category', 'sales_percentage')

from shelfiq.analytics.metrics_engine import FilterResult, MetricsEngine
from shelfiq.models import Filters

__version__ = "0.1.0"

__all__ = ['MetricsEngine', 'FilterResult', 'Filters']

from .metrics_engine import MetricsEngine, FilterResult
from . import reports

__all__ = ['MetricsEngine', 'FilterResult', 'reports']

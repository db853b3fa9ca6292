from .export_handler import ExportHandler
from .dashboard_visualizer import DashboardVisualizer

__all__ = ['ExportHandler', 'DashboardVisualizer']

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from shelfiq.analytics import reports
from shelfiq.analytics.metrics_engine import MetricsEngine
from shelfiq.models.category import Category
from shelfiq.models.heatmap import HeatmapZone
from shelfiq.models.product import Classification, Product
from shelfiq.models.summary import count_classifications
from shelfiq.utils.constants import OUTPUT_DIR
from shelfiq.utils.logger import get_logger

class DashboardVisualizer:
    """Render the dashboard charts as static images"""

    def __init__(self, figsize: Tuple[int, int] = (12, 7), output_dir: str = OUTPUT_DIR):
        self.figsize = figsize
        self.output_dir = Path(output_dir)
        self.logger = get_logger()

        self.classification_colors = {
            Classification.CORE: '#0F766E',
            Classification.AVERAGE: '#F59E0B',
            Classification.TAIL: '#DC2626',
        }

    def _finish(self, fig: plt.Figure, save_path: Optional[str]) -> plt.Figure:
        fig.tight_layout()
        if save_path:
            Path(save_path).parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Chart saved to {save_path}")
        return fig

    def plot_space_allocation(self, categories: List[Category],
                              save_path: Optional[str] = None) -> plt.Figure:
        """Grouped bars of current vs recommended space per category"""
        fig, ax = plt.subplots(figsize=self.figsize)
        names = [c.name for c in categories]
        positions = np.arange(len(categories))
        width = 0.38

        ax.bar(positions - width / 2, [c.current_space for c in categories], width,
               label='Current', color='#94A3B8')
        ax.bar(positions + width / 2, [c.recommended_space for c in categories], width,
               label='Recommended', color='#0F766E')

        for pos, category in zip(positions, categories):
            ax.text(pos, max(category.current_space, category.recommended_space) + 0.5,
                    f"{category.efficiency}%", ha='center', fontsize=9)

        ax.set_xticks(positions)
        ax.set_xticklabels(names, rotation=20, ha='right')
        ax.set_ylabel('Shelf space (m)')
        ax.set_title('Space Allocation by Category (label: efficiency)')
        ax.legend()
        return self._finish(fig, save_path)

    def plot_classification_split(self, products: List[Product],
                                  save_path: Optional[str] = None) -> plt.Figure:
        counts = count_classifications(products)
        labels = [c.value.title() for c in counts]
        values = list(counts.values())

        fig, ax = plt.subplots(figsize=(7, 7))
        if sum(values) == 0:
            ax.text(0.5, 0.5, 'No products', ha='center', va='center')
            ax.axis('off')
        else:
            ax.pie(values, labels=labels, autopct='%1.0f%%', startangle=90,
                   colors=[self.classification_colors[c] for c in counts],
                   wedgeprops={'width': 0.45})
        ax.set_title('SKU Classification')
        return self._finish(fig, save_path)

    def plot_heatmap(self, zones: List[HeatmapZone], value: str = 'performance',
                     save_path: Optional[str] = None) -> plt.Figure:
        """Store floor grid coloured by performance or traffic_score"""
        grid = reports.heatmap_grid(zones)
        if not grid:
            fig, ax = plt.subplots(figsize=self.figsize)
            ax.text(0.5, 0.5, 'No zones', ha='center', va='center')
            ax.axis('off')
            return self._finish(fig, save_path)

        data = pd.DataFrame(
            [[getattr(z, value) for z in row] for row in grid],
            index=[f"Row {i + 1}" for i in range(len(grid))],
            columns=[f"Aisle {i + 1}" for i in range(max(len(r) for r in grid))],
        )
        annotations = np.array(
            [[f"{z.zone}\n{z.category}\n{getattr(z, value)}" for z in row] for row in grid],
            dtype=object,
        )

        fig, ax = plt.subplots(figsize=self.figsize)
        sns.heatmap(data, annot=annotations, fmt='', cmap='RdYlGn', vmin=0, vmax=100,
                    linewidths=1, linecolor='white', cbar_kws={'label': value}, ax=ax)
        ax.set_title(f"Store Heatmap ({value.replace('_', ' ')})")
        return self._finish(fig, save_path)

    def plot_monthly_trend(self, trend: Dict[str, Dict[str, int]],
                           save_path: Optional[str] = None) -> plt.Figure:
        fig, ax = plt.subplots(figsize=self.figsize)
        palette = sns.color_palette('tab10', n_colors=max(len(trend), 1))
        for color, (name, months) in zip(palette, trend.items()):
            ax.plot(list(months.keys()), list(months.values()), marker='o', label=name, color=color)
        ax.set_ylabel('Units sold')
        ax.set_title('Monthly Sales by Category')
        if trend:
            ax.legend(loc='upper left', bbox_to_anchor=(1, 1))
        return self._finish(fig, save_path)

    def render_dashboard(self, engine: MetricsEngine, prefix: str = "shelfiq") -> List[str]:
        """Save every chart for the engine's displayed state; returns file paths"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        trend = reports.category_monthly_trend(
            engine.products, engine.categories, engine.baseline.month_labels
        )
        charts = [
            (f"{prefix}_space.png", lambda p: self.plot_space_allocation(engine.categories, p)),
            (f"{prefix}_classification.png", lambda p: self.plot_classification_split(engine.products, p)),
            (f"{prefix}_heatmap.png", lambda p: self.plot_heatmap(engine.heatmap, save_path=p)),
            (f"{prefix}_trend.png", lambda p: self.plot_monthly_trend(trend, p)),
        ]

        paths = []
        for filename, draw in charts:
            path = str(self.output_dir / filename)
            fig = draw(path)
            plt.close(fig)
            paths.append(path)
        return paths

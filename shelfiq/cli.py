import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from shelfiq.analytics import reports
from shelfiq.analytics.metrics_engine import MetricsEngine
from shelfiq.data_processing.data_transformer import DataTransformer
from shelfiq.data_processing.data_validator import DataValidator
from shelfiq.models.store import Filters
from shelfiq.utils.constants import (
    DEFAULT_DATE_RANGE,
    DEFAULT_STORE_ID,
    FILTER_DELAY_SECONDS,
    IMPORT_TEMPLATES,
    OUTPUT_DIR,
    RECALCULATION_DELAY_SECONDS,
    SORT_FIELDS,
)
from shelfiq.utils.error_handler import DataLoadError, ShelfIQError, ValidationError
from shelfiq.utils.logger import configure_logging

def build_engine(args) -> MetricsEngine:
    if args.simulate_latency:
        return MetricsEngine.from_data_path(args.data_path)
    return MetricsEngine.from_data_path(args.data_path, filter_delay=0, recalculation_delay=0)

async def prepare_engine(args) -> MetricsEngine:
    """Build the engine, then apply the requested filters and recalculate space"""
    engine = build_engine(args)
    await engine.apply_filters(Filters(store_id=args.store, date_range=args.range))
    await engine.recalculate_space_elasticity()
    return engine

def print_header(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)

def run_summary(engine: MetricsEngine, args):
    """Print the sales summary for the filtered view"""
    summary = engine.sales_summary
    store = engine.baseline.store_by_id(engine.filters.store_id)
    print_header("SALES SUMMARY")
    print(f"Store:            {store.name if store else engine.filters.store_id}")
    print(f"Date range:       {engine.filters.date_range}")
    print(f"Total SKUs:       {summary.total_skus}")
    print(f"Core items:       {summary.core_items_percentage}%")
    print(f"Average items:    {summary.average_items_percentage}%")
    print(f"Tail items:       {summary.tail_items_percentage}%")
    print(f"Total sales:      ${summary.total_sales_value:,}")
    print(f"Avg sales / SKU:  ${summary.avg_sales_per_sku:,}")

def run_filter(engine: MetricsEngine, args):
    """Print the multipliers behind the filtered view"""
    details = engine.compute_filtered_view(engine.filters).get_summary()
    store_multiplier, date_multiplier = engine.multipliers_for(engine.filters)
    print_header("FILTER")
    print(f"Store {details['store_id']} x{store_multiplier:g}, "
          f"range {details['date_range']} x{date_multiplier:g}")
    print(f"Combined multiplier: {details['combined_multiplier']:.4f}")
    print(f"Total sales:         ${details['total_sales_value']:,}")
    print(f"Avg sales / SKU:     ${details['avg_sales_per_sku']:,}")

def read_import_file(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise DataLoadError(f"Import file not found: {path}")
    if path.suffix.lower() in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str)

def run_import(engine: MetricsEngine, args):
    """Validate and merge a product file, then recalculate space"""
    transformer = DataTransformer()
    products = transformer.rows_to_products(read_import_file(Path(args.file)))

    validator = DataValidator(known_categories=[c.name for c in engine.categories])
    is_valid, _ = validator.validate_products(products)
    print(validator.generate_validation_report())
    for message in transformer.skipped_rows:
        print(f"Skipped {message}")
    if not is_valid:
        raise ValidationError(f"Import rejected with {len(validator.errors)} errors")

    engine.import_products(products)
    asyncio.run(engine.recalculate_space_elasticity())
    print(f"\nImported {len(products)} products, {len(engine.products)} in assortment")
    run_space(engine, args)

def run_space(engine: MetricsEngine, args):
    """Print the space elasticity table"""
    print_header("SPACE ELASTICITY")
    print(f"{'Category':<16}{'Current':>9}{'Recommended':>13}{'Sales %':>9}{'Efficiency':>12}")
    for c in engine.categories:
        print(f"{c.name:<16}{c.current_space:>9g}{c.recommended_space:>13}"
              f"{c.sales_percentage:>9}{c.efficiency:>11}%")

    allocation = reports.space_allocation(engine.categories)
    print(f"\nOver-allocated:   {', '.join(allocation['over_allocated']) or 'none'}")
    print(f"Under-allocated:  {', '.join(allocation['under_allocated']) or 'none'}")
    print(f"Reclaimable:      {allocation['reclaimable_space']:g} m")
    print(f"Avg efficiency:   {allocation['average_efficiency']}%")

def run_tail(engine: MetricsEngine, args):
    """Print tail analysis and the matching product table"""
    analysis = reports.tail_analysis(engine.products)
    print_header("TAIL ANALYSIS")
    print(f"Core SKUs: {analysis['core_count']} ({analysis['core_sku_percentage']}% of SKUs, "
          f"{analysis['core_sales_contribution']}% of sales)")
    print(f"Tail SKUs: {analysis['tail_count']} ({analysis['tail_sku_percentage']}% of SKUs, "
          f"{analysis['tail_sales_contribution']}% of sales)")

    products = reports.search_products(
        engine.products, query=args.search, category=args.category,
        sort_field=args.sort, ascending=args.asc,
    )
    print(f"\n{'SKU':<10}{'Name':<28}{'Category':<16}{'Sales %':>9}  Class")
    for p in products[:args.limit]:
        print(f"{p.sku:<10}{p.name[:27]:<28}{p.category:<16}{p.sales_percentage:>9}  "
              f"{p.classification.value}")
    print(f"\nShowing {min(len(products), args.limit)} of {len(engine.products)} products")

def run_heatmap(engine: MetricsEngine, args):
    print_header("STORE HEATMAP (performance / traffic)")
    for row in reports.heatmap_grid(engine.heatmap):
        print("  ".join(f"{z.zone}:{z.performance:>3}/{z.traffic_score:<3}" for z in row))

def run_export(engine: MetricsEngine, args):
    """Write exports in the requested format"""
    from shelfiq.visualization.dashboard_visualizer import DashboardVisualizer
    from shelfiq.visualization.export_handler import ExportHandler

    exporter = ExportHandler(args.output)
    if args.format == 'csv':
        files = exporter.export_engine_csv(engine)
    elif args.format == 'json':
        files = [exporter.export_to_json(engine)]
    elif args.format == 'excel':
        files = [exporter.export_to_excel(engine)]
    elif args.format == 'html':
        files = [exporter.export_report_html(engine)]
    elif args.format == 'charts':
        files = DashboardVisualizer(output_dir=args.output).render_dashboard(engine)
    else:
        files = [exporter.export_template(kind) for kind in IMPORT_TEMPLATES]

    print_header("EXPORT")
    for path in files:
        print(f"✅ {path}")

COMMANDS = {
    'summary': run_summary,
    'filter': run_filter,
    'space': run_space,
    'tail': run_tail,
    'heatmap': run_heatmap,
    'export': run_export,
    'import': run_import,
}

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='ShelfIQ retail analytics')
    parser.add_argument('--store', '-s', default=DEFAULT_STORE_ID, help='Store id filter')
    parser.add_argument('--range', '-r', default=DEFAULT_DATE_RANGE,
                        help='Date range filter (7d, 30d, 90d, 6m)')
    parser.add_argument('--data-path', default=None, help='Alternative baseline data directory')
    parser.add_argument('--simulate-latency', action='store_true',
                        help=f'Wait {FILTER_DELAY_SECONDS}s/{RECALCULATION_DELAY_SECONDS}s like the dashboard')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Console log level')
    parser.add_argument('--no-log-file', action='store_true', help='Do not write logs/shelfiq_*.log')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('summary', help='Sales summary for the filtered view')
    subparsers.add_parser('filter', help='Multipliers applied for --store and --range')
    subparsers.add_parser('space', help='Space elasticity recommendations')
    subparsers.add_parser('heatmap', help='Store heatmap grid')

    tail = subparsers.add_parser('tail', help='Tail analysis and product table')
    tail.add_argument('--search', default='', help='Match SKU, name or category')
    tail.add_argument('--category', default=None, help='Only this category')
    tail.add_argument('--sort', choices=SORT_FIELDS, default='sales_percentage')
    tail.add_argument('--asc', action='store_true', help='Sort ascending')
    tail.add_argument('--limit', type=int, default=25)

    export = subparsers.add_parser('export', help='Export data, reports or charts')
    export.add_argument('--format', '-f', choices=['csv', 'json', 'excel', 'html', 'charts', 'templates'],
                        default='csv')
    export.add_argument('--output', '-o', default=OUTPUT_DIR)

    importer = subparsers.add_parser('import', help='Validate and merge a product CSV or Excel file')
    importer.add_argument('file', help='File laid out like the products template')
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = configure_logging(args.log_level, log_to_file=not args.no_log_file)

    try:
        engine = asyncio.run(prepare_engine(args))
        COMMANDS[args.command](engine, args)
    except ShelfIQError as e:
        logger.error(f"Error running {args.command}: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())

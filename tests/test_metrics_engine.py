import asyncio
import time

import pytest

from shelfiq.analytics.metrics_engine import MetricsEngine
from shelfiq.models import Classification, Filters
from shelfiq.utils.math_utils import round_half_up


def run(coro):
    return asyncio.run(coro)


class TestApplyFilters:

    def test_neutral_filter_reproduces_baseline(self, engine, baseline):
        result = run(engine.apply_filters(Filters(store_id="1", date_range="30d")))

        for adjusted, original in zip(result.products, baseline.products):
            assert adjusted.sku == original.sku
            assert adjusted.sales_percentage == round_half_up(original.sales_percentage, 2)
            assert adjusted.monthly_sales == original.monthly_sales
        assert result.summary == baseline.summary
        assert [(z.performance, z.traffic_score) for z in result.heatmap] == \
            [(z.performance, z.traffic_score) for z in baseline.heatmap]

    def test_neutral_filter_keeps_two_decimal_values_exactly(self, engine, baseline):
        result = run(engine.apply_filters(Filters("1", "30d")))
        by_sku = {p.sku: p for p in result.products}
        assert by_sku["GRO-001"].sales_percentage == 4.2
        assert by_sku["SNK-002"].sales_percentage == 1.35
        # three decimal baseline values are rounded half up
        assert by_sku["HOU-011"].sales_percentage == 0.02

    def test_concrete_store_and_range(self, engine):
        result = run(engine.apply_filters(Filters(store_id="2", date_range="90d")))

        assert result.store_multiplier == 0.92
        assert result.date_multiplier == 1.15
        assert result.summary.total_sales_value == 1359001
        assert result.summary.avg_sales_per_sku == 45299
        gro_001 = next(p for p in result.products if p.sku == "GRO-001")
        assert gro_001.sales_percentage == 4.44

    def test_multiplier_composition(self, engine, baseline):
        result = run(engine.apply_filters(Filters(store_id="3", date_range="6m")))
        store_m, date_m = 1.08, 1.25
        combined = store_m * date_m

        for adjusted, original in zip(result.products, baseline.products):
            assert adjusted.sales_percentage == round_half_up(original.sales_percentage * combined, 2)
            assert adjusted.monthly_sales == [
                round_half_up(v * combined) for v in original.monthly_sales
            ]

        for adjusted, original in zip(result.heatmap, baseline.heatmap):
            assert adjusted.performance == min(100, round_half_up(original.performance * combined))
            assert adjusted.traffic_score == min(100, round_half_up(original.traffic_score * store_m))

    def test_heatmap_values_are_capped(self, engine):
        result = run(engine.apply_filters(Filters(store_id="3", date_range="6m")))
        zones = {z.zone: z for z in result.heatmap}

        assert zones["A1"].performance == 100
        assert zones["A1"].traffic_score == 99
        assert zones["A3"].performance == 61
        assert zones["A3"].traffic_score == 92

    def test_traffic_ignores_date_range(self, engine):
        short = run(engine.apply_filters(Filters("4", "7d")))
        long = run(engine.apply_filters(Filters("4", "6m")))

        assert [z.traffic_score for z in short.heatmap] == [z.traffic_score for z in long.heatmap]
        assert [z.performance for z in short.heatmap] != [z.performance for z in long.heatmap]

    def test_filtering_is_idempotent(self, engine):
        first = run(engine.apply_filters(Filters("2", "90d")))
        run(engine.apply_filters(Filters("3", "6m")))
        run(engine.apply_filters(Filters("5", "7d")))
        again = run(engine.apply_filters(Filters("2", "90d")))

        assert again.products == first.products
        assert again.summary == first.summary
        assert again.heatmap == first.heatmap

    def test_unknown_keys_fall_back_to_neutral(self, engine, baseline):
        result = run(engine.apply_filters(Filters(store_id="99", date_range="1y")))

        assert result.combined_multiplier == 1.0
        assert result.summary.total_sales_value == baseline.summary.total_sales_value

    def test_classification_is_not_rederived(self, engine, baseline):
        result = run(engine.apply_filters(Filters("4", "7d")))

        assert [p.classification for p in result.products] == \
            [p.classification for p in baseline.products]
        assert result.summary.core_items_percentage == baseline.summary.core_items_percentage
        assert result.summary.tail_items_percentage == baseline.summary.tail_items_percentage

    def test_replaces_displayed_state_and_leaves_baseline(self, engine, baseline):
        before = [p.sales_percentage for p in baseline.products]
        result = run(engine.apply_filters(Filters("2", "90d")))

        assert engine.products == result.products
        assert engine.sales_summary == result.summary
        assert engine.heatmap == result.heatmap
        assert engine.filters == Filters("2", "90d")
        assert [p.sales_percentage for p in baseline.products] == before

    def test_uses_current_filters_when_none_given(self, engine):
        engine.set_filters(Filters("5", "90d"))
        result = run(engine.apply_filters())
        assert result.filters == Filters("5", "90d")

    def test_is_loading_while_in_flight(self, small_baseline):
        engine = MetricsEngine(small_baseline, filter_delay=0.05, recalculation_delay=0)
        seen = []

        async def scenario():
            task = asyncio.ensure_future(engine.apply_filters(Filters("2", "90d")))
            await asyncio.sleep(0)
            seen.append(engine.is_loading)
            await task
            seen.append(engine.is_loading)

        run(scenario())
        assert seen == [True, False]

    def test_simulated_delay(self, small_baseline):
        engine = MetricsEngine(small_baseline, filter_delay=0.05, recalculation_delay=0)
        start = time.perf_counter()
        run(engine.apply_filters(Filters()))
        assert time.perf_counter() - start >= 0.04

    def test_overlapping_calls_last_to_finish_wins(self, small_baseline):
        engine = MetricsEngine(small_baseline, filter_delay=0, recalculation_delay=0)

        async def scenario():
            engine.filter_delay = 0.05
            slow = asyncio.ensure_future(engine.apply_filters(Filters("2", "90d")))
            await asyncio.sleep(0)
            engine.filter_delay = 0
            await engine.apply_filters(Filters("1", "30d"))
            await slow

        run(scenario())
        assert engine.sales_summary.total_sales_value == round_half_up(1000 * 0.5 * 1.5)

    def test_empty_product_list_summary(self, small_baseline):
        small_baseline.products = []
        engine = MetricsEngine(small_baseline, filter_delay=0, recalculation_delay=0)
        result = run(engine.apply_filters(Filters("2", "90d")))

        assert result.products == []
        assert result.summary.total_skus == 0
        assert result.summary.core_items_percentage == 0
        assert result.summary.tail_items_percentage == 0


class TestSpaceElasticity:

    def test_baseline_recommendations(self, engine):
        categories = {c.name: c for c in run(engine.recalculate_space_elasticity())}

        expected = {
            'Groceries': (62, 100, 50, 47.8),
            'Household': (18, 72, 18, 13.8),
            'Personal Care': (14, 79, 16, 11.0),
            'Beverages': (18, 88, 15, 13.5),
            'Snacks': (12, 100, 16, 9.3),
            'Frozen Foods': (6, 61, 15, 4.7),
        }
        for name, (recommended, efficiency, count, share) in expected.items():
            category = categories[name]
            assert category.recommended_space == recommended
            assert category.efficiency == efficiency
            assert category.product_count == count
            assert category.sales_percentage == pytest.approx(share)

    def test_space_is_conserved_within_rounding(self, engine, baseline):
        categories = run(engine.recalculate_space_elasticity())
        total_current = sum(c.current_space for c in baseline.categories)
        total_recommended = sum(c.recommended_space for c in categories)

        assert abs(total_recommended - total_current) <= len(categories)

    def test_efficiency_is_bounded(self, engine):
        run(engine.apply_filters(Filters("3", "6m")))
        for category in run(engine.recalculate_space_elasticity()):
            assert 0 <= category.efficiency <= 100

    def test_empty_category_resolves_to_zero(self, small_engine):
        categories = {c.name: c for c in run(small_engine.recalculate_space_elasticity())}

        assert categories['Groceries'].recommended_space == 80
        assert categories['Groceries'].efficiency == 100
        assert categories['Household'].recommended_space == 20
        assert categories['Household'].efficiency == 67
        snacks = categories['Snacks']
        assert (snacks.recommended_space, snacks.efficiency, snacks.product_count, snacks.sales_percentage) == \
            (0, 0, 0, 0.0)

    def test_zero_total_sales_gives_zero_shares(self, small_engine, product_factory):
        small_engine.import_products([
            product_factory("GRO-001", "Groceries", sales=0.0),
            product_factory("GRO-002", "Groceries", sales=0.0),
            product_factory("HOU-001", "Household", sales=0.0),
        ])
        categories = run(small_engine.recalculate_space_elasticity())

        for category in categories:
            assert category.sales_percentage == 0
            assert category.recommended_space == 0
            assert category.efficiency == 0
        assert {c.name: c.product_count for c in categories} == {'Groceries': 2, 'Household': 1, 'Snacks': 0}

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_sales_resolve_to_zero(self, small_engine, product_factory, value):
        small_engine.import_products([product_factory("GRO-001", "Groceries", sales=value)])
        categories = run(small_engine.recalculate_space_elasticity())

        for category in categories:
            assert category.sales_percentage == 0
            assert category.recommended_space == 0
            assert category.efficiency == 0

    def test_no_products_at_all(self, small_baseline):
        small_baseline.products = []
        engine = MetricsEngine(small_baseline, filter_delay=0, recalculation_delay=0)
        categories = run(engine.recalculate_space_elasticity())
        assert all(c.recommended_space == 0 and c.efficiency == 0 for c in categories)

    def test_replaces_category_table(self, small_engine):
        updated = run(small_engine.recalculate_space_elasticity())
        assert small_engine.categories == updated
        assert small_engine.baseline.categories[0].recommended_space == 0

    def test_products_join_on_category_name(self, small_engine, product_factory):
        small_engine.import_products([product_factory("SNK-001", "snacks", sales=5.0)])
        categories = {c.name: c for c in run(small_engine.recalculate_space_elasticity())}
        # case differs, so the product is not counted under Snacks
        assert categories['Snacks'].product_count == 0

    def test_uses_displayed_products(self, small_engine):
        run(small_engine.apply_filters(Filters("2", "90d")))
        categories = {c.name: c for c in run(small_engine.recalculate_space_elasticity())}
        # uniform scaling leaves shares unchanged
        assert categories['Groceries'].recommended_space == 80


class TestImportProducts:

    def test_upsert_keeps_position_and_appends_new(self, engine, product_factory):
        original = engine.products
        updated = product_factory("GRO-001", "Groceries", sales=9.9, score=2.0, name="Milk Reformulated")
        new = product_factory("NEW-999", "Snacks", sales=0.1, score=1.0)

        engine.import_products([updated, new])
        products = engine.products

        assert len(products) == len(original) + 1
        assert products[0] is updated
        assert products[0].classification is Classification.TAIL
        assert products[-1] is new
        assert products[1:-1] == original[1:]

    def test_last_writer_wins_within_batch(self, small_engine, product_factory):
        small_engine.import_products([
            product_factory("NEW-001", sales=1.0),
            product_factory("NEW-001", sales=2.0),
        ])
        matches = [p for p in small_engine.products if p.sku == "NEW-001"]
        assert len(matches) == 1
        assert matches[0].sales_percentage == 2.0

    def test_empty_import_is_a_no_op(self, small_engine):
        before = small_engine.products
        small_engine.import_products([])
        assert small_engine.products == before

    def test_filters_recompute_from_baseline_not_imports(self, small_engine, product_factory):
        small_engine.import_products([product_factory("NEW-001")])
        result = run(small_engine.apply_filters(Filters("1", "30d")))
        assert "NEW-001" not in {p.sku for p in result.products}


def test_reset_restores_baseline(small_engine):
    run(small_engine.apply_filters(Filters("2", "90d")))
    run(small_engine.recalculate_space_elasticity())
    small_engine.reset()

    assert small_engine.products == small_engine.baseline.products
    assert small_engine.categories == small_engine.baseline.categories
    assert small_engine.filters == Filters()


def test_from_data_path_loads_packaged_baseline():
    engine = MetricsEngine.from_data_path(filter_delay=0, recalculation_delay=0)
    assert len(engine.products) == 130
    assert engine.sales_summary.total_sales_value == 1284500

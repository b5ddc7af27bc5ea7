"""
Unit Tests for the Cost Engine
===============================
Fabric rows, per-size aggregation, portfolio totals and derived views.
"""

import dataclasses

import pytest

from costing_engine import (
    compute_metrics,
    cost_breakdown,
    fabric_row,
    size_metric,
    size_quantity,
    tier_profitability,
)
from costing_models import CostParameters, Fabric, SalesPrice


class TestFabricRow:
    """Test suite for the per-fabric, per-size calculator."""

    def test_unit_cost_and_wastage(self):
        """Unit cost is price x rate; wastage applies to the unit cost."""
        fab = Fabric(id="1", type="Shell", code="C-POP-01", price=4500)
        row = fabric_row(fab, "FREE", {"1": {"FREE": 1.2}}, 0.03, 100)

        assert row.consumption_rate == pytest.approx(1.2)
        assert row.reference_price == 4500
        assert row.unit_cost == pytest.approx(5400)
        assert row.wastage_amount == pytest.approx(162)
        assert row.total_row_cost == pytest.approx((5400 + 162) * 100)

    def test_missing_consumption_is_zero(self):
        """A fabric with no consumption entry for the size costs nothing."""
        fab = Fabric(id="2", type="Lining", code="LN-01", price=3000)
        row = fabric_row(fab, "XL", {"1": {"XL": 1.6}}, 0.03, 10)

        assert row.consumption_rate == 0
        assert row.unit_cost == 0
        assert row.total_row_cost == 0

    def test_does_not_mutate_inputs(self):
        """Consumption table is read, never written."""
        table = {"1": {"FREE": 1.2}}
        fab = Fabric(id="1", type="Shell", code="C", price=100)
        fabric_row(fab, "M", table, 0.05, 3)

        assert table == {"1": {"FREE": 1.2}}


class TestWorkedExample:
    """The documented single-size example reproduces exactly."""

    def test_size_metric_figures(self, worked_example_product):
        m = size_metric("FREE", worked_example_product)

        assert m.quantity == 100
        assert m.fabric_rows[0].unit_cost == pytest.approx(5400)
        assert m.fabric_rows[0].wastage_amount == pytest.approx(162)
        assert m.base_unit_cost == pytest.approx(10062)
        assert m.marketing_unit_cost == pytest.approx(804.96)
        assert m.ops_unit_cost == pytest.approx(503.1)
        assert m.var_unit_cost == pytest.approx(11370.06)
        assert m.batch_investment == pytest.approx(1137006)
        assert m.profit_amount == pytest.approx(3979.52, abs=0.01)
        assert m.calculated_price == pytest.approx(15349.58, abs=0.01)

    def test_row_costs_and_prices(self, worked_example_product):
        m = size_metric("FREE", worked_example_product)

        assert m.sewing_row_cost == pytest.approx(400000)
        assert m.accessory_row_cost == pytest.approx(50000)
        assert m.retail_price == 28000
        assert m.wholesale_price == 21000
        assert m.flash_price == 19000
        assert m.total_sales == pytest.approx(2800000)

    def test_metrics_totals(self, worked_example_product):
        metrics = compute_metrics(worked_example_product)

        assert metrics.total_qty == 100
        assert metrics.total_fabric_yards == pytest.approx(120)
        assert metrics.total_revenue == pytest.approx(2800000)
        assert metrics.total_variable_investment == pytest.approx(1137006)
        assert metrics.total_investment == pytest.approx(1637006)
        assert metrics.gross_profit == pytest.approx(2800000 - 1637006)
        assert metrics.total_marketing_cost == pytest.approx(80496)
        assert metrics.total_ops_cost == pytest.approx(50310)
        assert metrics.avg_price == pytest.approx(28000)
        assert metrics.avg_var_cost == pytest.approx(11370.06)
        assert metrics.total_fixed_cost == 500000
        assert metrics.break_even_units == pytest.approx(500000 / (28000 - 11370.06))


class TestComputeMetrics:
    """Test suite for the portfolio fold over sizes."""

    def test_sample_product_totals(self, sample_product):
        """Three sizes with a Fixed button fabric that has no consumption."""
        metrics = compute_metrics(sample_product)

        assert [m.size for m in metrics.size_metrics] == ["FREE", "M", "XL"]
        assert [m.quantity for m in metrics.size_metrics] == [150, 20, 10]
        assert metrics.total_qty == 180
        assert metrics.total_fabric_yards == pytest.approx(224)
        assert metrics.total_revenue == pytest.approx(4200000)
        assert metrics.total_variable_investment == pytest.approx(2088511.2)
        assert metrics.total_investment == pytest.approx(2588511.2)
        assert metrics.gross_profit == pytest.approx(1611488.8)

    def test_sizes_without_price_have_no_sales(self, sample_product):
        metrics = compute_metrics(sample_product)
        m = {s.size: s for s in metrics.size_metrics}

        assert m["M"].retail_price == 0
        assert m["M"].total_sales == 0
        assert m["M"].batch_investment == pytest.approx(12417.57 * 20)

    def test_idempotent(self, sample_product):
        """Same inputs give identical output."""
        assert compute_metrics(sample_product) == compute_metrics(sample_product)

    def test_zero_quantity_is_safe(self, make_product):
        """No orders: zero averages and zero break-even, no division errors."""
        metrics = compute_metrics(make_product(orders={}))

        assert metrics.total_qty == 0
        assert metrics.avg_price == 0
        assert metrics.avg_var_cost == 0
        assert metrics.break_even_units == 0
        assert metrics.total_investment == pytest.approx(500000)
        assert metrics.gross_profit == pytest.approx(-500000)

    def test_negative_orders_read_as_zero(self, make_product):
        metrics = compute_metrics(make_product(orders={"S": {"White": -5, "Navy": 3}}))

        assert metrics.total_qty == 3

    def test_wastage_increase_raises_costs(self, make_product):
        low = compute_metrics(make_product())
        high_costs = dataclasses.replace(make_product().costs, wastage_pct=10)
        high = compute_metrics(make_product(costs=high_costs))

        for a, b in zip(low.size_metrics, high.size_metrics):
            assert b.base_unit_cost > a.base_unit_cost
            assert b.var_unit_cost > a.var_unit_cost
        assert high.total_investment > low.total_investment

    def test_size_order_only_affects_ordering(self, sample_product):
        flipped = dataclasses.replace(
            sample_product,
            config=dataclasses.replace(sample_product.config, sizes=("XL", "M", "FREE")),
        )
        a = compute_metrics(sample_product)
        b = compute_metrics(flipped)

        assert [m.size for m in b.size_metrics] == ["XL", "M", "FREE"]
        assert b.total_qty == a.total_qty
        assert b.total_investment == pytest.approx(a.total_investment)
        assert b.total_revenue == pytest.approx(a.total_revenue)

    def test_rejects_non_product(self):
        with pytest.raises(ValueError):
            compute_metrics({"id": 1})

    def test_size_quantity_sums_configured_colors_only(self, make_product):
        product = make_product(orders={"S": {"White": 4, "Navy": 6, "Red": 100}})
        assert size_quantity(product, "S") == 10


class TestTierProfitability:
    """Margins for retail, wholesale and flash prices."""

    def test_margins_against_variable_cost(self, worked_example_product):
        m = compute_metrics(worked_example_product).size_metrics[0]
        tiers = tier_profitability(m)

        assert tiers["retail"].margin == pytest.approx(28000 - 11370.06)
        assert tiers["retail"].margin_pct == pytest.approx((28000 - 11370.06) / 28000 * 100)
        assert tiers["wholesale"].margin == pytest.approx(21000 - 11370.06)
        assert tiers["flash"].margin == pytest.approx(19000 - 11370.06)

    def test_zero_price_has_zero_pct(self, make_product):
        product = make_product()
        product = dataclasses.replace(product, sales_prices={"S": SalesPrice(retail=100)})
        m = compute_metrics(product).size_metrics[0]
        tiers = tier_profitability(m)

        assert tiers["wholesale"].price == 0
        assert tiers["wholesale"].margin_pct == 0
        assert tiers["wholesale"].margin == pytest.approx(-m.var_unit_cost)
        assert tiers["retail"].margin < 0


class TestCostBreakdown:
    """Variable investment split into components."""

    def test_components_sum_to_variable_investment(self, sample_product):
        metrics = compute_metrics(sample_product)
        b = cost_breakdown(metrics)

        assert b.total == pytest.approx(metrics.total_variable_investment)
        assert b.material == pytest.approx(5400 * 150 + 6300 * 20 + 7200 * 10)
        assert b.sewing == pytest.approx(4000 * 180)
        assert b.accessories == pytest.approx(500 * 180)
        assert b.marketing == pytest.approx(metrics.total_marketing_cost)
        assert b.operations == pytest.approx(metrics.total_ops_cost)

    def test_no_overheads(self, make_product):
        costs = CostParameters(sewing_cost=10)
        metrics = compute_metrics(make_product(price=0, costs=costs))
        b = cost_breakdown(metrics)

        assert b.material == 0
        assert b.marketing == 0
        assert b.total == pytest.approx(10 * 35)

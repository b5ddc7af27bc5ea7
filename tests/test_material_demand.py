"""
Unit Tests for Material Demand
===============================
Purchasing rows across Matched and Fixed color modes.
"""

import dataclasses

import pytest

from costing_models import ColorMode
from material_demand import aggregate_materials, color_totals, consumption_report


def _rows_by_color(rows):
    return {(r.color, r.fabric_code): r for r in rows}


class TestAggregateMaterials:
    """Test suite for cross-product yardage aggregation."""

    def test_sample_product_rows(self, sample_product):
        rows = aggregate_materials([sample_product])

        assert [(r.color, r.fabric_code) for r in rows] == [
            ("White", "C-POP-01"),
            ("Navy", "C-POP-01"),
            ("Silver", "BTN-01"),
        ]
        by_key = _rows_by_color(rows)
        assert by_key[("White", "C-POP-01")].total_quantity == 130
        assert by_key[("White", "C-POP-01")].total_consumption == pytest.approx(164)
        assert by_key[("Navy", "C-POP-01")].total_quantity == 50
        assert by_key[("Navy", "C-POP-01")].total_consumption == pytest.approx(60)
        assert by_key[("Silver", "BTN-01")].total_quantity == 180
        assert by_key[("Silver", "BTN-01")].total_consumption == 0

    def test_rows_carry_product_labels(self, sample_product):
        row = aggregate_materials([sample_product])[0]

        assert row.fabric_type == "Shell"
        assert row.category == "Sleeveless Crop Top"
        assert row.fabrication == "22-01"

    def test_matched_vs_fixed(self, make_product):
        """Fixed collapses every color into one bucket; Matched keeps one per color."""
        matched = aggregate_materials([make_product()])
        fixed = aggregate_materials(
            [make_product(color_mode=ColorMode.FIXED, fixed_color="Silver")]
        )

        assert len(matched) == 2
        assert len(fixed) == 1
        assert fixed[0].color == "Silver"
        assert fixed[0].total_quantity == 35
        assert fixed[0].total_consumption == pytest.approx(35 * 1.2)

        by_key = _rows_by_color(matched)
        assert by_key[("White", "SH-01")].total_quantity == 30
        assert by_key[("Navy", "SH-01")].total_quantity == 5
        assert sum(r.total_consumption for r in matched) == pytest.approx(fixed[0].total_consumption)

    def test_fixed_without_color_uses_placeholder(self, make_product):
        rows = aggregate_materials([make_product(color_mode=ColorMode.FIXED)])

        assert [r.color for r in rows] == ["Fixed"]

    def test_zero_quantity_rows_excluded(self, make_product):
        rows = aggregate_materials([make_product(orders={"S": {"White": 0}})])

        assert rows == []

    def test_products_never_merge(self, make_product):
        """Same fabric and color in two products stays on two rows."""
        rows = aggregate_materials([make_product("a"), make_product("b")])

        assert len(rows) == 4

    def test_excluded_products_skipped(self, make_product):
        rows = aggregate_materials([make_product("a", included=False), make_product("b")])
        assert len(rows) == 2

        rows = aggregate_materials([make_product("a", included=False)], included_only=False)
        assert len(rows) == 2

    def test_pure(self, sample_product):
        assert aggregate_materials([sample_product]) == aggregate_materials([sample_product])


class TestConsumptionReport:
    """Per-fabric totals for one product."""

    def test_sample_report(self, sample_product):
        report = consumption_report(sample_product)

        assert [r.label for r in report] == ["MATCHED (ALL)", "Silver"]
        assert report[0].total_requirement == pytest.approx(224)
        assert report[1].total_requirement == 0

    def test_fixed_without_color_label(self, sample_product):
        fabrics = list(sample_product.config.fabrics)
        fabrics[1] = dataclasses.replace(fabrics[1], fixed_color=None)
        product = dataclasses.replace(
            sample_product,
            config=dataclasses.replace(sample_product.config, fabrics=tuple(fabrics)),
        )

        assert consumption_report(product)[1].label == "FIXED"


class TestColorTotals:
    def test_totals(self, sample_product):
        totals, grand = color_totals(sample_product)

        assert totals == {"White": 130, "Navy": 50}
        assert grand == 180

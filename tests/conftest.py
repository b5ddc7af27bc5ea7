"""
Pytest Configuration and Fixtures
==================================
Shared product records and engine inputs.
"""

import copy
from typing import Any, Dict

import pytest

import costing_config as cfg
from costing_models import (
    ColorMode,
    CostParameters,
    Fabric,
    Product,
    ProductConfig,
    SalesPrice,
)
from ingest import product_from_record


WORKED_EXAMPLE_COSTS = CostParameters(
    fixed_cost=500000,
    profit_target_pct=35,
    marketing_pct=8,
    wastage_pct=3,
    ops_pct=5,
    sewing_cost=4000,
    accessories_cost=500,
)


@pytest.fixture
def worked_example_product() -> Product:
    """One size, one fabric at 4500/yd x 1.2 yd, 100 units."""
    return Product(
        id="we-1",
        code="WE-01",
        name="Worked Example",
        category="Top",
        fabrication_code="22-01",
        config=ProductConfig(
            sizes=("FREE",),
            colors=("White",),
            fabrics=(Fabric(id="1", type="Shell", code="C-POP-01", price=4500),),
        ),
        orders={"FREE": {"White": 100}},
        consumption={"1": {"FREE": 1.2}},
        costs=WORKED_EXAMPLE_COSTS,
        sales_prices={"FREE": SalesPrice(retail=28000, wholesale=21000, flash=19000)},
    )


@pytest.fixture
def sample_record() -> Dict[str, Any]:
    return copy.deepcopy(cfg.SAMPLE_PRODUCT)


@pytest.fixture
def sample_product(sample_record) -> Product:
    """Three sizes, two colors, a Matched shell and a Fixed (Silver) button."""
    return product_from_record(sample_record)


@pytest.fixture
def make_product():
    """Factory for small single-fabric products."""

    def _make(
        product_id: str = "p",
        *,
        orders=None,
        price: float = 4500,
        rate: float = 1.2,
        retail: float = 28000,
        costs: CostParameters = WORKED_EXAMPLE_COSTS,
        color_mode: ColorMode = ColorMode.MATCHED,
        fixed_color=None,
        included: bool = True,
    ) -> Product:
        return Product(
            id=product_id,
            code=product_id.upper(),
            name=f"Product {product_id}",
            category="Top",
            fabrication_code="F-01",
            included_in_portfolio=included,
            config=ProductConfig(
                sizes=("S", "M"),
                colors=("White", "Navy"),
                fabrics=(
                    Fabric(
                        id="1",
                        type="Shell",
                        code="SH-01",
                        price=price,
                        color_mode=color_mode,
                        fixed_color=fixed_color,
                    ),
                ),
            ),
            orders=orders if orders is not None else {"S": {"White": 10, "Navy": 5}, "M": {"White": 20}},
            consumption={"1": {"S": rate, "M": rate}},
            costs=costs,
            sales_prices={"S": SalesPrice(retail=retail), "M": SalesPrice(retail=retail)},
        )

    return _make

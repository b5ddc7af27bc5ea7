# material_demand.py
"""
Fabric purchasing view.

Matched fabrics follow the product's color variants; Fixed fabrics are bought
in one designated color, so every variant's units collapse into that bucket.
"""

from typing import Dict, Iterable, List, Tuple

import costing_config as cfg
from costing_engine import size_quantity
from costing_models import (
    ColorMode,
    Fabric,
    FabricRequirement,
    MaterialRow,
    Product,
    consumption_rate,
    order_qty,
)

_Key = Tuple[str, str, str, str]


def _color_buckets(product: Product, fabric: Fabric, size: str) -> List[Tuple[str, int]]:
    if fabric.color_mode == ColorMode.FIXED:
        color = fabric.fixed_color or cfg.FIXED_COLOR_PLACEHOLDER
        return [(color, size_quantity(product, size))]
    return [(color, order_qty(product.orders, size, color)) for color in product.config.colors]


def aggregate_materials(
    products: Iterable[Product],
    *,
    included_only: bool = True,
) -> List[MaterialRow]:
    """
    Yardage requirement grouped by (product, color, fabric code, fabric type).

    Rows keep first-seen order; buckets with no units are left out.
    """
    acc: Dict[_Key, Dict[str, object]] = {}

    for product in products:
        if included_only and not product.included_in_portfolio:
            continue

        for fabric in product.config.fabrics:
            for size in product.config.sizes:
                rate = consumption_rate(product.consumption, fabric.id, size)
                for color, qty in _color_buckets(product, fabric, size):
                    if qty <= 0:
                        continue
                    key = (product.id, color, fabric.code, fabric.type)
                    row = acc.get(key)
                    if row is None:
                        row = acc[key] = {
                            "color": color,
                            "fabric_type": fabric.type,
                            "fabric_code": fabric.code,
                            "category": product.category,
                            "fabrication": product.fabrication_code,
                            "total_quantity": 0,
                            "total_consumption": 0.0,
                        }
                    row["total_quantity"] += qty
                    row["total_consumption"] += qty * rate

    return [MaterialRow(**row) for row in acc.values()]


def consumption_report(product: Product) -> List[FabricRequirement]:
    """Total yards needed per fabric for one product."""
    out: List[FabricRequirement] = []
    for fabric in product.config.fabrics:
        total = 0.0
        for size in product.config.sizes:
            total += size_quantity(product, size) * consumption_rate(product.consumption, fabric.id, size)

        if fabric.color_mode == ColorMode.FIXED:
            label = fabric.fixed_color or cfg.FIXED_REPORT_LABEL
        else:
            label = cfg.MATCHED_REPORT_LABEL

        out.append(
            FabricRequirement(
                fabric_id=fabric.id,
                label=label,
                fabric_type=fabric.type,
                fabric_code=fabric.code,
                total_requirement=total,
            )
        )
    return out


def color_totals(product: Product) -> Tuple[Dict[str, int], int]:
    totals = {
        color: sum(order_qty(product.orders, size, color) for size in product.config.sizes)
        for color in product.config.colors
    }
    return totals, sum(totals.values())

# costing_engine.py
from typing import Dict, List

from break_even import analyze_break_even
from costing_models import (
    ConsumptionTable,
    CostBreakdown,
    CostParameters,
    Fabric,
    FabricRow,
    Metrics,
    Product,
    SizeMetric,
    TierProfitability,
    consumption_rate,
    order_qty,
    sales_price,
)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def size_quantity(product: Product, size: str) -> int:
    return sum(order_qty(product.orders, size, color) for color in product.config.colors)


def fabric_row(
    fabric: Fabric,
    size: str,
    consumption: ConsumptionTable,
    wastage_rate: float,
    quantity: int,
) -> FabricRow:
    """Unit cost and wastage for one fabric at one size."""
    rate = consumption_rate(consumption, fabric.id, size)
    price = float(fabric.price or 0)
    unit_cost = price * rate
    wastage_amount = unit_cost * wastage_rate

    return FabricRow(
        fabric_id=fabric.id,
        type=fabric.type,
        code=fabric.code,
        consumption_rate=rate,
        reference_price=price,
        unit_cost=unit_cost,
        wastage_amount=wastage_amount,
        total_row_cost=(unit_cost + wastage_amount) * quantity,
    )


def size_metric(size: str, product: Product) -> SizeMetric:
    costs: CostParameters = product.costs

    # ---- Production quantity ----
    qty = size_quantity(product, size)

    # ---- Fabric rows ----
    rows = tuple(
        fabric_row(fab, size, product.consumption, costs.wastage_rate, qty)
        for fab in product.config.fabrics
    )

    sewing_row_cost = costs.sewing_cost * qty
    accessory_row_cost = costs.accessories_cost * qty

    # ---- Unit cost layers (unit-level, not row totals) ----
    base_unit_cost = (
        sum(r.unit_cost for r in rows)
        + sum(r.wastage_amount for r in rows)
        + costs.sewing_cost
        + costs.accessories_cost
    )
    marketing_unit_cost = base_unit_cost * costs.marketing_rate
    ops_unit_cost = base_unit_cost * costs.ops_rate
    var_unit_cost = base_unit_cost + marketing_unit_cost + ops_unit_cost

    # ---- Profitability ----
    profit_amount = var_unit_cost * costs.profit_target_rate
    prices = sales_price(product.sales_prices, size)

    return SizeMetric(
        size=size,
        quantity=qty,
        fabric_rows=rows,
        sewing_row_cost=sewing_row_cost,
        accessory_row_cost=accessory_row_cost,
        base_unit_cost=base_unit_cost,
        marketing_unit_cost=marketing_unit_cost,
        ops_unit_cost=ops_unit_cost,
        var_unit_cost=var_unit_cost,
        batch_investment=var_unit_cost * qty,
        profit_amount=profit_amount,
        calculated_price=var_unit_cost + profit_amount,
        retail_price=float(prices.retail or 0),
        wholesale_price=float(prices.wholesale or 0),
        flash_price=float(prices.flash or 0),
        total_sales=float(prices.retail or 0) * qty,
    )


def compute_metrics(product: Product) -> Metrics:
    _require(isinstance(product, Product), f"expected Product, got {type(product).__name__}")

    total_qty = 0
    total_fabric_yards = 0.0
    total_revenue = 0.0
    total_marketing = 0.0
    total_ops = 0.0
    total_variable = 0.0

    metrics: List[SizeMetric] = []
    for size in product.config.sizes:
        m = size_metric(size, product)
        metrics.append(m)

        total_qty += m.quantity
        total_fabric_yards += sum(r.consumption_rate * m.quantity for r in m.fabric_rows)
        total_revenue += m.total_sales
        total_marketing += m.marketing_unit_cost * m.quantity
        total_ops += m.ops_unit_cost * m.quantity
        total_variable += m.batch_investment

    fixed_cost = float(product.costs.fixed_cost or 0)
    total_investment = total_variable + fixed_cost

    avg_price = total_revenue / total_qty if total_qty > 0 else 0.0
    avg_var_cost = total_variable / total_qty if total_qty > 0 else 0.0

    bep = analyze_break_even(fixed_cost, avg_price, avg_var_cost)

    return Metrics(
        total_qty=total_qty,
        total_fabric_yards=total_fabric_yards,
        total_revenue=total_revenue,
        total_investment=total_investment,
        total_marketing_cost=total_marketing,
        total_ops_cost=total_ops,
        total_variable_investment=total_variable,
        gross_profit=total_revenue - total_investment,
        break_even_units=bep.units,
        size_metrics=tuple(metrics),
        avg_price=avg_price,
        avg_var_cost=avg_var_cost,
        total_fixed_cost=fixed_cost,
    )


def tier_profitability(m: SizeMetric) -> Dict[str, TierProfitability]:
    """Margin of each selling price tier against the variable unit cost."""
    out: Dict[str, TierProfitability] = {}
    for tier, price in (
        ("retail", m.retail_price),
        ("wholesale", m.wholesale_price),
        ("flash", m.flash_price),
    ):
        margin = price - m.var_unit_cost
        pct = (margin / price) * 100 if price > 0 else 0.0
        out[tier] = TierProfitability(tier=tier, price=price, margin=margin, margin_pct=pct)
    return out


def cost_breakdown(metrics: Metrics) -> CostBreakdown:
    material = 0.0
    wastage = 0.0
    sewing = 0.0
    accessories = 0.0
    for m in metrics.size_metrics:
        material += sum(r.unit_cost for r in m.fabric_rows) * m.quantity
        wastage += sum(r.wastage_amount for r in m.fabric_rows) * m.quantity
        sewing += m.sewing_row_cost
        accessories += m.accessory_row_cost

    return CostBreakdown(
        material=material,
        wastage=wastage,
        sewing=sewing,
        accessories=accessories,
        marketing=metrics.total_marketing_cost,
        operations=metrics.total_ops_cost,
    )


if __name__ == "__main__":
    from costing_models import ProductConfig, SalesPrice

    product = Product(
        id="demo",
        code="DEMO-01",
        config=ProductConfig(
            sizes=("FREE",),
            colors=("White",),
            fabrics=(Fabric(id="1", type="Shell", code="C-POP-01", price=4500),),
        ),
        orders={"FREE": {"White": 100}},
        consumption={"1": {"FREE": 1.2}},
        costs=CostParameters(
            fixed_cost=500000,
            profit_target_pct=35,
            marketing_pct=8,
            wastage_pct=3,
            ops_pct=5,
            sewing_cost=4000,
            accessories_cost=500,
        ),
        sales_prices={"FREE": SalesPrice(retail=28000, wholesale=21000, flash=19000)},
    )

    result = compute_metrics(product)
    free = result.size_metrics[0]
    print("VAR UNIT COST:", round(free.var_unit_cost, 2))
    print("CALC PRICE:", round(free.calculated_price, 2))
    print("INVESTMENT:", round(result.total_investment, 2))
    print("BEP UNITS:", round(result.break_even_units, 2))

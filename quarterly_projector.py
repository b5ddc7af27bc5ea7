# quarterly_projector.py
"""
Quarter-scaled investment and sales projection.

Unit economics come from the cost engine unchanged; a period only scales the
base order batch by its production multiplier and discounts sales by its
conversion percentage.

Fixed cost is incurred once per product per plan. It is spread over the
product's assigned periods in proportion to their multipliers (evenly when
every multiplier is 0), so totals stay additive across periods.
"""

from typing import Dict, Iterable, List, Mapping, Optional

import tuning_knobs as knobs
from break_even import analyze_break_even
from costing_engine import compute_metrics, cost_breakdown
from costing_models import (
    CostBreakdown,
    Metrics,
    PeriodLine,
    PeriodProjection,
    PeriodSettings,
    Product,
    Projection,
)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def default_period_settings() -> Dict[str, PeriodSettings]:
    return {
        label: PeriodSettings(
            multiplier=float(s.get("multiplier", 1.0)),
            sales_conversion_pct=float(s.get("sales_conversion_pct", 100.0)),
        )
        for label, s in knobs.PERIOD_SETTINGS.items()
    }


def _assigned_periods(assigned: str, labels: List[str]) -> List[str]:
    if assigned == knobs.ALL_PERIODS:
        return list(labels)
    # a product parked on a disabled period is not produced this plan
    return [assigned] if assigned in labels else []


def _fixed_shares(periods: Mapping[str, PeriodSettings], assigned: List[str]) -> Dict[str, float]:
    total = sum(periods[p].multiplier for p in assigned)
    if total > 0:
        return {p: periods[p].multiplier / total for p in assigned}
    return {p: 1.0 / len(assigned) for p in assigned}


def _unit_components(metrics: Metrics) -> CostBreakdown:
    if metrics.total_qty <= 0:
        return CostBreakdown()
    return cost_breakdown(metrics).scaled(1.0 / metrics.total_qty)


def project_line(
    product: Product,
    metrics: Metrics,
    period: str,
    settings: PeriodSettings,
    fixed_share: float,
) -> PeriodLine:
    qty = metrics.total_qty * settings.multiplier
    gross_sales = metrics.avg_price * qty
    return PeriodLine(
        product_id=product.id,
        product_code=product.code,
        period=period,
        production_qty=qty,
        variable_investment=qty * metrics.avg_var_cost,
        fixed_cost=metrics.total_fixed_cost * fixed_share,
        gross_sales=gross_sales,
        potential_sales=gross_sales * (settings.sales_conversion_pct / 100),
        components=_unit_components(metrics).scaled(qty),
    )


def _period_rollup(label: str, settings: PeriodSettings, lines: List[PeriodLine]) -> PeriodProjection:
    qty = sum(l.production_qty for l in lines)
    variable = sum(l.variable_investment for l in lines)
    fixed = sum(l.fixed_cost for l in lines)
    sales = sum(l.potential_sales for l in lines)

    # weighted by units produced, before sales conversion
    avg_price = sum(l.gross_sales for l in lines) / qty if qty > 0 else 0.0
    avg_var_cost = variable / qty if qty > 0 else 0.0

    return PeriodProjection(
        period=label,
        settings=settings,
        lines=tuple(lines),
        production_qty=qty,
        variable_investment=variable,
        fixed_cost=fixed,
        potential_sales=sales,
        avg_price=avg_price,
        avg_var_cost=avg_var_cost,
        break_even=analyze_break_even(fixed, avg_price, avg_var_cost, revenue=sales),
    )


def project_quarters(
    products: Iterable[Product],
    periods: Optional[Mapping[str, PeriodSettings]] = None,
    assignment: Optional[Mapping[str, str]] = None,
    metrics_by_product: Optional[Mapping[str, Metrics]] = None,
) -> Projection:
    periods = dict(periods) if periods is not None else default_period_settings()
    assignment = assignment or {}
    metrics_by_product = metrics_by_product or {}

    for label, s in periods.items():
        _require(s.multiplier >= 0, f"multiplier must be >= 0 for period {label}")
        _require(s.sales_conversion_pct >= 0, f"sales_conversion_pct must be >= 0 for period {label}")

    labels = list(periods)
    lines_by_period: Dict[str, List[PeriodLine]] = {label: [] for label in labels}

    for product in products:
        if not product.included_in_portfolio:
            continue
        assigned = _assigned_periods(
            assignment.get(product.id, knobs.DEFAULT_PERIOD_ASSIGNMENT), labels
        )
        if not assigned:
            continue

        metrics = metrics_by_product.get(product.id) or compute_metrics(product)
        shares = _fixed_shares(periods, assigned)
        for label in assigned:
            lines_by_period[label].append(
                project_line(product, metrics, label, periods[label], shares[label])
            )

    rollups = tuple(_period_rollup(label, periods[label], lines_by_period[label]) for label in labels)

    return Projection(
        periods=rollups,
        production_qty=sum(p.production_qty for p in rollups),
        variable_investment=sum(p.variable_investment for p in rollups),
        fixed_cost=sum(p.fixed_cost for p in rollups),
        potential_sales=sum(p.potential_sales for p in rollups),
    )

# break_even.py
import math
from typing import List

import costing_config as cfg
from costing_models import BreakEven, ChartPoint, Metrics


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def analyze_break_even(
    fixed_cost: float,
    price: float,
    variable_unit_cost: float,
    revenue: float = 0.0,
) -> BreakEven:
    """
    Break-even for a (fixed cost, unit price, unit variable cost) triple.

    A non-positive contribution margin means the cost structure can never
    recover its fixed cost; break-even saturates at 0 instead of going
    negative or infinite. Safety margin is -100 when there is no revenue or
    the margin is non-positive.
    """
    margin = price - variable_unit_cost
    units = fixed_cost / margin if margin > 0 else 0.0

    # tolerate float fuzz like 50.0000000001 before rounding up
    whole_units = math.ceil(round(units, 9)) if units > 0 else 0
    be_revenue = whole_units * price

    # a non-positive margin never breaks even, so it reports the sentinel
    if revenue > 0 and margin > 0:
        safety = (revenue - be_revenue) / revenue * 100
    else:
        safety = cfg.NO_REVENUE_SAFETY_MARGIN

    return BreakEven(
        fixed_cost=fixed_cost,
        price=price,
        variable_unit_cost=variable_unit_cost,
        margin_per_unit=margin,
        units=units,
        whole_units=whole_units,
        revenue=be_revenue,
        safety_margin_pct=safety,
    )


def metrics_break_even(metrics: Metrics) -> BreakEven:
    return analyze_break_even(
        metrics.total_fixed_cost,
        metrics.avg_price,
        metrics.avg_var_cost,
        revenue=metrics.total_revenue,
    )


def break_even_chart(metrics: Metrics, steps: int = cfg.BEP_CHART_STEPS) -> List[ChartPoint]:
    """Revenue vs total cost curve sampled from 0 to past the break-even point."""
    if steps < 1:
        raise ValueError("steps must be >= 1")

    max_units = max(
        metrics.total_qty * cfg.BEP_CHART_HEADROOM,
        metrics.break_even_units * cfg.BEP_CHART_HEADROOM,
        cfg.BEP_CHART_MIN_UNITS,
    )

    points: List[ChartPoint] = []
    for i in range(steps + 1):
        units = _round_half_up((max_units / steps) * i)
        points.append(
            ChartPoint(
                units=units,
                revenue=units * metrics.avg_price,
                total_cost=metrics.total_fixed_cost + units * metrics.avg_var_cost,
                fixed_cost=metrics.total_fixed_cost,
            )
        )
    return points

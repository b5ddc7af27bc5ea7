# portfolio.py
from typing import Iterable, List, Optional

import costing_config as cfg
from costing_engine import compute_metrics
from costing_models import PortfolioItem, PortfolioSummary, Product


def margin_pct(gross_profit: float, revenue: float) -> float:
    return (gross_profit / revenue) * 100 if revenue > 0 else 0.0


def health_band(overall_margin_pct: float) -> str:
    for band in sorted(cfg.HEALTH_BANDS, key=lambda b: b["min_margin_pct"], reverse=True):
        if overall_margin_pct > band["min_margin_pct"]:
            return band["label"]
    return cfg.HEALTH_FLOOR_LABEL


def summarize_portfolio(products: Iterable[Product]) -> PortfolioSummary:
    """Roll up every product included in the portfolio."""
    items: List[PortfolioItem] = []
    for product in products:
        if not product.included_in_portfolio:
            continue
        m = compute_metrics(product)
        items.append(PortfolioItem(product=product, metrics=m, margin_pct=margin_pct(m.gross_profit, m.total_revenue)))

    total_investment = sum(i.metrics.total_investment for i in items)
    total_revenue = sum(i.metrics.total_revenue for i in items)
    gross_profit = sum(i.metrics.gross_profit for i in items)
    total_qty = sum(i.metrics.total_qty for i in items)
    total_fabric = sum(i.metrics.total_fabric_yards for i in items)

    overall = margin_pct(gross_profit, total_revenue)

    top: Optional[PortfolioItem] = None
    for item in items:
        if top is None or item.metrics.gross_profit > top.metrics.gross_profit:
            top = item

    return PortfolioSummary(
        items=tuple(items),
        total_investment=total_investment,
        total_revenue=total_revenue,
        gross_profit=gross_profit,
        total_break_even_units=sum(i.metrics.break_even_units for i in items),
        total_fabric_yards=total_fabric,
        total_qty=total_qty,
        overall_margin_pct=overall,
        health=health_band(overall),
        fabric_efficiency=total_fabric / total_qty if total_qty else 0.0,
        top_performer=top,
    )

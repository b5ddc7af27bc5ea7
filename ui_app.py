import os
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests
import streamlit as st

import costing_config as cfg
import tuning_knobs as knobs
from break_even import break_even_chart, metrics_break_even
from costing_engine import compute_metrics, tier_profitability
from costing_models import PeriodSettings, Product
from ingest import product_from_record
from material_demand import aggregate_materials, color_totals, consumption_report
from portfolio import summarize_portfolio
from quarterly_projector import default_period_settings, project_quarters


API_BASE = os.environ.get("API_BASE", "http://localhost:8000").rstrip("/")
API_KEY = os.environ.get("API_KEY", "")

st.set_page_config(page_title="Production Costing Planner", layout="wide")


# ----------------------------
# Helpers
# ----------------------------
def _money(x: float) -> str:
    return f"{x:,.0f}"


def _pct(x: float) -> str:
    return f"{x:.1f}%"


def _headers() -> Dict[str, str]:
    return {"x-api-key": API_KEY} if API_KEY else {}


@st.cache_data(ttl=30)
def _load_records() -> Tuple[List[Dict[str, Any]], Optional[str]]:
    try:
        r = requests.get(f"{API_BASE}/products", headers=_headers(), timeout=15)
    except requests.RequestException as e:
        return [], f"Could not reach the API: {e}"
    if r.status_code != 200:
        return [], f"API error {r.status_code}: {r.text[:200]}"
    return r.json().get("products", []), None


def _save_record(record: Dict[str, Any]) -> None:
    try:
        r = requests.put(f"{API_BASE}/products/{record['id']}", json=record, headers=_headers(), timeout=15)
        if r.status_code != 200:
            st.error(f"Save failed: {r.status_code}")
            st.code(r.text)
            return
        st.success("Saved")
        _load_records.clear()
    except requests.RequestException as e:
        st.error(f"Save failed: {e}")


records, load_error = _load_records()
if load_error:
    st.warning(load_error)
using_sample = not records
if using_sample:
    records = [cfg.SAMPLE_PRODUCT]

products: List[Product] = []
for rec in records:
    try:
        products.append(product_from_record(rec))
    except ValueError as e:
        st.warning(f"Skipping product {rec.get('code') or rec.get('id')}: {e}")


# ----------------------------
# Sidebar
# ----------------------------
with st.sidebar:
    st.subheader("Production Costing")
    view = st.radio("View", ["Dashboard", "Product", "Quarterly Plan"])
    if using_sample:
        st.info("No stored products found; showing the sample line.")
    st.caption(f"API: {API_BASE}")


# ----------------------------
# Dashboard
# ----------------------------
if view == "Dashboard":
    st.title("Portfolio Dashboard")
    summary = summarize_portfolio(products)

    st.caption(f"Health: **{summary.health}** ({_pct(summary.overall_margin_pct)} avg margin)")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Investment", _money(summary.total_investment))
    c2.metric("Expected Revenue", _money(summary.total_revenue))
    c3.metric("Gross Profit", _money(summary.gross_profit))
    c4.metric("Efficiency (yds/unit)", f"{summary.fabric_efficiency:.2f}")

    st.subheader("Material Purchase Plan")
    rows = aggregate_materials(products)
    if rows:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Color": r.color,
                        "Fabric": f"{r.fabric_type} ({r.fabric_code})",
                        "Category": r.category,
                        "Fabrication": r.fabrication,
                        "Units": r.total_quantity,
                        "Yards": round(r.total_consumption, 1),
                    }
                    for r in rows
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No items found in active portfolio.")

    st.subheader("Financial Breakdown")
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Code": i.product.code,
                    "Name": i.product.name,
                    "Batch Cost": _money(i.metrics.total_investment),
                    "Revenue": _money(i.metrics.total_revenue),
                    "Net Profit": _money(i.metrics.gross_profit),
                    "Margin %": _pct(i.margin_pct),
                }
                for i in summary.items
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    if summary.top_performer:
        top = summary.top_performer
        st.success(
            f"Top performer: {top.product.code}, profit {_money(top.metrics.gross_profit)}, "
            f"margin {_pct(top.margin_pct)}"
        )


# ----------------------------
# Product detail
# ----------------------------
elif view == "Product":
    if not products:
        st.info("No valid products to show.")
        st.stop()

    by_id = {p.id: p for p in products}
    product_id = st.selectbox(
        "Product",
        options=list(by_id.keys()),
        format_func=lambda pid: f"{by_id[pid].code} · {by_id[pid].name}",
    )
    product = by_id[product_id]
    metrics = compute_metrics(product)
    bep = metrics_break_even(metrics)

    st.title(product.code)
    st.caption(f"{product.category} · fabrication {product.fabrication_code}")

    totals, grand_total = color_totals(product)
    st.subheader("Order Matrix")
    st.write({**totals, "TOTAL": grand_total})

    st.subheader("Cost Breakdown by Size")
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Size": m.size,
                    "Qty": m.quantity,
                    "Base Unit": round(m.base_unit_cost, 2),
                    "Marketing": round(m.marketing_unit_cost, 2),
                    "Ops": round(m.ops_unit_cost, 2),
                    "Var Cost": round(m.var_unit_cost, 2),
                    "Batch Inv": round(m.batch_investment, 2),
                    "Calc Price": round(m.calculated_price, 2),
                    "Retail": m.retail_price,
                }
                for m in metrics.size_metrics
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    st.subheader("Sales Pricing")
    tier_rows = []
    for m in metrics.size_metrics:
        row: Dict[str, Any] = {"Size": m.size}
        for tier, t in tier_profitability(m).items():
            row[f"{tier} price"] = t.price
            row[f"{tier} margin"] = round(t.margin, 2)
            row[f"{tier} %"] = _pct(t.margin_pct)
        tier_rows.append(row)
    st.dataframe(pd.DataFrame(tier_rows), use_container_width=True, hide_index=True)

    st.subheader("Consumption Report")
    st.dataframe(
        pd.DataFrame(
            [
                {"Target": r.label, "Component": f"{r.fabric_type} ({r.fabric_code})",
                 "Yards": round(r.total_requirement, 2)}
                for r in consumption_report(product)
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Investment", _money(metrics.total_investment))
    c2.metric("Expected Revenue", _money(metrics.total_revenue))
    c3.metric("Avg Margin / Unit", _money(metrics.avg_price - metrics.avg_var_cost))
    c4.metric("BEP Units", f"{bep.whole_units} pcs")

    if not bep.reachable:
        st.error("Selling below variable cost: this line cannot break even at current prices.")
    else:
        st.caption(f"Break-even revenue {_money(bep.revenue)} · safety margin {_pct(bep.safety_margin_pct)}")

    chart = pd.DataFrame(
        [{"units": p.units, "revenue": p.revenue, "total cost": p.total_cost, "fixed cost": p.fixed_cost}
         for p in break_even_chart(metrics)]
    ).set_index("units")
    st.line_chart(chart)

    with st.expander("Edit costs"):
        record = next(r for r in records if str(r.get("id")) == product.id)
        costs = dict(record.get("costs") or {})
        for key in ("fixedCost", "profitTargetPct", "marketingPct", "wastagePct", "opsPct",
                    "sewingCost", "accessoriesCost"):
            costs[key] = st.text_input(key, value=str(costs.get(key, 0)))
        if st.button("Save", disabled=using_sample):
            _save_record({**record, "costs": costs})


# ----------------------------
# Quarterly plan
# ----------------------------
else:
    st.title("Quarterly Plan")

    periods: Dict[str, PeriodSettings] = {}
    cols = st.columns(max(len(knobs.PERIOD_SETTINGS), 1))
    for col, (label, s) in zip(cols, default_period_settings().items()):
        with col:
            st.markdown(f"**{label}**")
            mult = st.number_input(f"{label} multiplier", min_value=0.0, value=s.multiplier, step=0.5)
            conv = st.number_input(f"{label} sales %", min_value=0.0, max_value=100.0,
                                   value=s.sales_conversion_pct, step=5.0)
            periods[label] = PeriodSettings(multiplier=mult, sales_conversion_pct=conv)

    options = [knobs.ALL_PERIODS] + list(periods)
    assignment: Dict[str, str] = {}
    for p in products:
        if p.included_in_portfolio:
            assignment[p.id] = st.selectbox(f"{p.code} runs in", options=options, key=f"assign-{p.id}")

    plan = project_quarters(products, periods=periods, assignment=assignment)

    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Period": q.period,
                    "Units": round(q.production_qty),
                    "Variable Inv": _money(q.variable_investment),
                    "Fixed": _money(q.fixed_cost),
                    "Investment": _money(q.investment),
                    "Potential Sales": _money(q.potential_sales),
                    "BEP Units": q.break_even.whole_units,
                }
                for q in plan.periods
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    c1, c2, c3 = st.columns(3)
    c1.metric("Yearly Investment", _money(plan.investment))
    c2.metric("Yearly Potential Sales", _money(plan.potential_sales))
    c3.metric("Units", f"{plan.production_qty:,.0f}")

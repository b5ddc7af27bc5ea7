# ingest.py
"""
Boundary adapter between stored product records and the cost engine.

Records arrive as loose JSON (camelCase keys, numbers that may be strings).
Everything is parsed here once; the engine only ever sees typed values.
"""

import logging
import math
from typing import Any, Dict, Mapping, Optional

import costing_config as cfg
from costing_models import (
    ColorMode,
    CostParameters,
    Fabric,
    Product,
    ProductConfig,
    SalesPrice,
)

logger = logging.getLogger(__name__)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def _first(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in record and record[k] is not None:
            return record[k]
    return default


def parse_number(value: Any, default: float = 0.0) -> float:
    """Lenient float parse; anything unusable becomes `default`."""
    if value is None or value == "":
        return default
    try:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        f = float(value)
    except (TypeError, ValueError):
        logger.debug("unparseable number %r -> %s", value, default)
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def parse_quantity(value: Any) -> int:
    # whole units only, negatives read as 0
    n = parse_number(value)
    return int(n) if n > 0 else 0


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    _require(isinstance(value, Mapping), f"{what} must be an object, got {type(value).__name__}")
    return value


def _labels(value: Any, what: str) -> tuple:
    if value is None:
        return ()
    _require(isinstance(value, (list, tuple)), f"{what} must be a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def parse_costs(raw: Any) -> CostParameters:
    c = _mapping(raw, "costs")
    return CostParameters(
        fixed_cost=parse_number(_first(c, "fixedCost", "fixedSalary", "fixed_cost")),
        profit_target_pct=parse_number(_first(c, "profitTargetPct", "profit_target_pct")),
        marketing_pct=parse_number(_first(c, "marketingPct", "marketing_pct")),
        wastage_pct=parse_number(_first(c, "wastagePct", "wastage_pct")),
        ops_pct=parse_number(_first(c, "opsPct", "ops_pct")),
        sewing_cost=parse_number(_first(c, "sewingCost", "sewing_cost")),
        accessories_cost=parse_number(_first(c, "accessoriesCost", "accessories_cost")),
    )


def parse_color_mode(value: Any) -> ColorMode:
    if str(value or "").strip().lower() == ColorMode.FIXED.value.lower():
        return ColorMode.FIXED
    return ColorMode.MATCHED


def parse_fabric(raw: Any) -> Fabric:
    f = _mapping(raw, "fabric")
    fabric_id = f.get("id")
    _require(fabric_id is not None and str(fabric_id) != "", "fabric is missing an id")

    mode = parse_color_mode(_first(f, "colorMode", "color_mode"))
    fixed_color = _first(f, "fixedColor", "fixed_color", "color")
    return Fabric(
        id=str(fabric_id),
        type=str(f.get("type") or ""),
        code=str(f.get("code") or ""),
        price=parse_number(f.get("price")),
        color_mode=mode,
        fixed_color=str(fixed_color) if fixed_color and mode == ColorMode.FIXED else None,
    )


def parse_config(raw: Any) -> ProductConfig:
    _require(isinstance(raw, Mapping), "product config must be an object")
    fabrics = raw.get("fabrics") or []
    _require(isinstance(fabrics, (list, tuple)), "config.fabrics must be a list")
    return ProductConfig(
        sizes=_labels(raw.get("sizes"), "config.sizes"),
        colors=_labels(raw.get("colors"), "config.colors"),
        fabrics=tuple(parse_fabric(f) for f in fabrics),
    )


def parse_orders(raw: Any) -> Dict[str, Dict[str, int]]:
    out: Dict[str, Dict[str, int]] = {}
    for size, by_color in _mapping(raw, "orders").items():
        out[str(size)] = {
            str(color): parse_quantity(q)
            for color, q in _mapping(by_color, f"orders[{size}]").items()
        }
    return out


def parse_consumption(raw: Any) -> Dict[str, Dict[str, float]]:
    out: Dict[str, Dict[str, float]] = {}
    for fabric_id, by_size in _mapping(raw, "consumption").items():
        out[str(fabric_id)] = {
            str(size): max(parse_number(rate), 0.0)
            for size, rate in _mapping(by_size, f"consumption[{fabric_id}]").items()
        }
    return out


def parse_sales_prices(raw: Any) -> Dict[str, SalesPrice]:
    out: Dict[str, SalesPrice] = {}
    for size, p in _mapping(raw, "salesPrices").items():
        p = _mapping(p, f"salesPrices[{size}]")
        out[str(size)] = SalesPrice(
            retail=parse_number(p.get("retail")),
            wholesale=parse_number(_first(p, "wholesale", "ws")),
            flash=parse_number(p.get("flash")),
        )
    return out


def product_from_record(record: Any) -> Product:
    _require(isinstance(record, Mapping), "product record must be an object")
    _require(record.get("id") is not None, "product record is missing an id")
    _require("config" in record, "product record is missing config")

    included = _first(record, "includedInPortfolio", "isChecked", "included_in_portfolio", default=True)

    return Product(
        id=str(record["id"]),
        code=str(record.get("code") or ""),
        name=str(record.get("name") or ""),
        category=str(record.get("category") or ""),
        fabrication_code=str(_first(record, "fabricationCode", "fabrication", "fabrication_code", default="")),
        included_in_portfolio=included is not False,
        config=parse_config(record["config"]),
        orders=parse_orders(record.get("orders")),
        consumption=parse_consumption(record.get("consumption")),
        costs=parse_costs(record.get("costs")),
        sales_prices=parse_sales_prices(_first(record, "salesPrices", "sales_prices")),
    )


def new_product_record(product_id: Any, code: Optional[str] = None) -> Dict[str, Any]:
    """Blank record for a new production line, seeded from costing_config."""
    return {
        "id": product_id,
        "code": code or f"CODE-{product_id}",
        "name": "New Product",
        "category": "Top",
        "fabricationCode": "TBD",
        "includedInPortfolio": True,
        "config": {
            "sizes": list(cfg.NEW_PRODUCT_SIZES),
            "colors": list(cfg.NEW_PRODUCT_COLORS),
            "fabrics": [],
        },
        "orders": {},
        "consumption": {},
        "costs": dict(cfg.NEW_PRODUCT_COSTS),
        "salesPrices": {},
    }

# costing_models.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class ColorMode(str, Enum):
    MATCHED = "Matched"
    FIXED = "Fixed"


# ----------------------------
# Inputs
# ----------------------------
@dataclass(frozen=True)
class Fabric:
    id: str
    type: str
    code: str
    price: float
    color_mode: ColorMode = ColorMode.MATCHED
    fixed_color: Optional[str] = None


@dataclass(frozen=True)
class ProductConfig:
    sizes: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    fabrics: Tuple[Fabric, ...] = ()


@dataclass(frozen=True)
class CostParameters:
    """Per-product cost inputs. Percentages are whole numbers (35 == 35%)."""

    fixed_cost: float = 0.0
    profit_target_pct: float = 0.0
    marketing_pct: float = 0.0
    wastage_pct: float = 0.0
    ops_pct: float = 0.0
    sewing_cost: float = 0.0
    accessories_cost: float = 0.0

    @property
    def profit_target_rate(self) -> float:
        return self.profit_target_pct / 100

    @property
    def marketing_rate(self) -> float:
        return self.marketing_pct / 100

    @property
    def wastage_rate(self) -> float:
        return self.wastage_pct / 100

    @property
    def ops_rate(self) -> float:
        return self.ops_pct / 100


@dataclass(frozen=True)
class SalesPrice:
    retail: float = 0.0
    wholesale: float = 0.0
    flash: float = 0.0


# size -> color -> units
OrderMatrix = Mapping[str, Mapping[str, int]]
# fabric id -> size -> yards per unit
ConsumptionTable = Mapping[str, Mapping[str, float]]
# size -> prices
SalesPriceTable = Mapping[str, SalesPrice]


@dataclass(frozen=True)
class Product:
    id: str
    code: str = ""
    name: str = ""
    category: str = ""
    fabrication_code: str = ""
    included_in_portfolio: bool = True
    config: ProductConfig = field(default_factory=ProductConfig)
    orders: OrderMatrix = field(default_factory=dict)
    consumption: ConsumptionTable = field(default_factory=dict)
    costs: CostParameters = field(default_factory=CostParameters)
    sales_prices: SalesPriceTable = field(default_factory=dict)


# ----------------------------
# Computed records
# ----------------------------
@dataclass(frozen=True)
class FabricRow:
    fabric_id: str
    type: str
    code: str
    consumption_rate: float
    reference_price: float
    unit_cost: float
    wastage_amount: float
    total_row_cost: float


@dataclass(frozen=True)
class SizeMetric:
    size: str
    quantity: int
    fabric_rows: Tuple[FabricRow, ...]
    sewing_row_cost: float
    accessory_row_cost: float
    base_unit_cost: float
    marketing_unit_cost: float
    ops_unit_cost: float
    var_unit_cost: float
    batch_investment: float
    profit_amount: float
    calculated_price: float
    retail_price: float
    wholesale_price: float
    flash_price: float
    total_sales: float


@dataclass(frozen=True)
class Metrics:
    total_qty: int
    total_fabric_yards: float
    total_revenue: float
    total_investment: float
    total_marketing_cost: float
    total_ops_cost: float
    total_variable_investment: float
    gross_profit: float
    break_even_units: float
    size_metrics: Tuple[SizeMetric, ...]
    avg_price: float
    avg_var_cost: float
    total_fixed_cost: float


@dataclass(frozen=True)
class TierProfitability:
    tier: str
    price: float
    margin: float
    margin_pct: float


@dataclass(frozen=True)
class CostBreakdown:
    """Variable investment split by cost component; components sum to the total."""

    material: float = 0.0
    wastage: float = 0.0
    sewing: float = 0.0
    accessories: float = 0.0
    marketing: float = 0.0
    operations: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.material
            + self.wastage
            + self.sewing
            + self.accessories
            + self.marketing
            + self.operations
        )

    def scaled(self, factor: float) -> "CostBreakdown":
        return CostBreakdown(
            material=self.material * factor,
            wastage=self.wastage * factor,
            sewing=self.sewing * factor,
            accessories=self.accessories * factor,
            marketing=self.marketing * factor,
            operations=self.operations * factor,
        )


@dataclass(frozen=True)
class BreakEven:
    fixed_cost: float
    price: float
    variable_unit_cost: float
    margin_per_unit: float
    units: float
    whole_units: int
    revenue: float
    safety_margin_pct: float

    @property
    def reachable(self) -> bool:
        return self.margin_per_unit > 0


@dataclass(frozen=True)
class ChartPoint:
    units: int
    revenue: float
    total_cost: float
    fixed_cost: float


@dataclass(frozen=True)
class MaterialRow:
    color: str
    fabric_type: str
    fabric_code: str
    category: str
    fabrication: str
    total_quantity: int
    total_consumption: float


@dataclass(frozen=True)
class FabricRequirement:
    fabric_id: str
    label: str
    fabric_type: str
    fabric_code: str
    total_requirement: float


@dataclass(frozen=True)
class PeriodSettings:
    multiplier: float = 1.0
    sales_conversion_pct: float = 100.0


@dataclass(frozen=True)
class PeriodLine:
    product_id: str
    product_code: str
    period: str
    production_qty: float
    variable_investment: float
    fixed_cost: float
    gross_sales: float
    potential_sales: float
    components: CostBreakdown

    @property
    def investment(self) -> float:
        return self.variable_investment + self.fixed_cost


@dataclass(frozen=True)
class PeriodProjection:
    period: str
    settings: PeriodSettings
    lines: Tuple[PeriodLine, ...]
    production_qty: float
    variable_investment: float
    fixed_cost: float
    potential_sales: float
    avg_price: float
    avg_var_cost: float
    break_even: BreakEven

    @property
    def investment(self) -> float:
        return self.variable_investment + self.fixed_cost


@dataclass(frozen=True)
class Projection:
    periods: Tuple[PeriodProjection, ...]
    production_qty: float
    variable_investment: float
    fixed_cost: float
    potential_sales: float

    @property
    def investment(self) -> float:
        return self.variable_investment + self.fixed_cost

    def period(self, label: str) -> PeriodProjection:
        for p in self.periods:
            if p.period == label:
                return p
        raise KeyError(f"unknown period: {label}")


@dataclass(frozen=True)
class PortfolioItem:
    product: Product
    metrics: Metrics
    margin_pct: float


@dataclass(frozen=True)
class PortfolioSummary:
    items: Tuple[PortfolioItem, ...]
    total_investment: float
    total_revenue: float
    gross_profit: float
    total_break_even_units: float
    total_fabric_yards: float
    total_qty: int
    overall_margin_pct: float
    health: str
    fabric_efficiency: float
    top_performer: Optional[PortfolioItem]


# ----------------------------
# Total lookups (missing -> default)
# ----------------------------
def lookup(mapping: Optional[Mapping[Any, Any]], key: Any, default: Any = 0.0) -> Any:
    if not mapping:
        return default
    value = mapping.get(key)
    return default if value is None else value


def lookup_nested(
    mapping: Optional[Mapping[Any, Mapping[Any, Any]]],
    outer: Any,
    inner: Any,
    default: Any = 0.0,
) -> Any:
    return lookup(lookup(mapping, outer, None), inner, default)


def order_qty(orders: OrderMatrix, size: str, color: str) -> int:
    # negative quantities are read as 0
    return max(int(lookup_nested(orders, size, color, 0)), 0)


def consumption_rate(consumption: ConsumptionTable, fabric_id: str, size: str) -> float:
    return float(lookup_nested(consumption, fabric_id, size, 0.0))


def sales_price(prices: SalesPriceTable, size: str) -> SalesPrice:
    return lookup(prices, size, SalesPrice())


def to_dict(record: Any) -> Dict[str, Any]:
    """Plain-dict view of a computed record (enums become their values)."""
    def _clean(x: Any) -> Any:
        if isinstance(x, Enum):
            return x.value
        if isinstance(x, dict):
            return {k: _clean(v) for k, v in x.items()}
        if isinstance(x, (list, tuple)):
            return [_clean(v) for v in x]
        return x

    return _clean(asdict(record))

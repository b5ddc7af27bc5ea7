import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from break_even import analyze_break_even, break_even_chart, metrics_break_even
from costing_engine import compute_metrics, cost_breakdown, tier_profitability
from costing_models import PeriodSettings, Product, Projection, to_dict
from ingest import new_product_record, product_from_record
from material_demand import aggregate_materials, color_totals, consumption_report
from portfolio import summarize_portfolio
from quarterly_projector import project_quarters

# DB (Postgres in production, anything SQLAlchemy speaks locally)
from sqlalchemy import create_engine, Column, String, DateTime, JSON
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)


# ----------------------------
# App + config
# ----------------------------
app = FastAPI(title="Garment Costing API", version="1.0.0")

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:8501").split(",")
    if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Optional API key protection
API_KEY = os.environ.get("API_KEY", "")

# DB config
DATABASE_URL = os.environ.get("DATABASE_URL", "")
Base = declarative_base()
engine = create_engine(DATABASE_URL, pool_pre_ping=True) if DATABASE_URL else None
SessionLocal = sessionmaker(bind=engine) if engine else None


# ----------------------------
# DB Model
# ----------------------------
class ProductRow(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    code = Column(String, nullable=True, index=True)
    name = Column(String, nullable=True)
    payload = Column(JSON, nullable=False)  # the full product record as edited
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


def init_db() -> None:
    if engine:
        Base.metadata.create_all(bind=engine)
    else:
        logger.warning("DATABASE_URL not set; product storage routes are disabled.")


init_db()


# ----------------------------
# Helpers
# ----------------------------
def _require_api_key(x_api_key: Optional[str]) -> None:
    if API_KEY:
        if not x_api_key or x_api_key != API_KEY:
            raise HTTPException(status_code=401, detail="Unauthorized")


def _db_required() -> None:
    if not SessionLocal:
        raise HTTPException(status_code=500, detail="DB not configured (missing DATABASE_URL).")


def _to_product(record: Dict[str, Any]) -> Product:
    try:
        return product_from_record(record)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid product record: {e}")


def _record(req: "ProductRequest") -> Dict[str, Any]:
    return {k: v for k, v in req.model_dump().items() if v is not None}


def _metrics_payload(product: Product) -> Dict[str, Any]:
    metrics = compute_metrics(product)
    breakdown = cost_breakdown(metrics)
    totals, grand_total = color_totals(product)

    return {
        "product_id": product.id,
        "metrics": to_dict(metrics),
        "break_even": to_dict(metrics_break_even(metrics)),
        "tiers": {
            m.size: {tier: to_dict(t) for tier, t in tier_profitability(m).items()}
            for m in metrics.size_metrics
        },
        "cost_breakdown": {**to_dict(breakdown), "total": breakdown.total},
        "chart": [to_dict(p) for p in break_even_chart(metrics)],
        "consumption_report": [to_dict(r) for r in consumption_report(product)],
        "color_totals": {"by_color": totals, "total": grand_total},
    }


def _projection_payload(projection: Projection) -> Dict[str, Any]:
    periods = []
    for p in projection.periods:
        periods.append(
            {
                "period": p.period,
                "settings": to_dict(p.settings),
                "production_qty": p.production_qty,
                "variable_investment": p.variable_investment,
                "fixed_cost": p.fixed_cost,
                "investment": p.investment,
                "potential_sales": p.potential_sales,
                "avg_price": p.avg_price,
                "avg_var_cost": p.avg_var_cost,
                "break_even": to_dict(p.break_even),
                "lines": [
                    {**to_dict(line), "investment": line.investment}
                    for line in p.lines
                ],
            }
        )
    return {
        "periods": periods,
        "production_qty": projection.production_qty,
        "variable_investment": projection.variable_investment,
        "fixed_cost": projection.fixed_cost,
        "investment": projection.investment,
        "potential_sales": projection.potential_sales,
    }


def _portfolio_payload(products: List[Product]) -> Dict[str, Any]:
    summary = summarize_portfolio(products)
    top = summary.top_performer
    return {
        "items": [
            {
                "id": i.product.id,
                "code": i.product.code,
                "name": i.product.name,
                "total_investment": i.metrics.total_investment,
                "total_revenue": i.metrics.total_revenue,
                "gross_profit": i.metrics.gross_profit,
                "margin_pct": i.margin_pct,
            }
            for i in summary.items
        ],
        "total_investment": summary.total_investment,
        "total_revenue": summary.total_revenue,
        "gross_profit": summary.gross_profit,
        "total_break_even_units": summary.total_break_even_units,
        "total_fabric_yards": summary.total_fabric_yards,
        "total_qty": summary.total_qty,
        "overall_margin_pct": summary.overall_margin_pct,
        "health": summary.health,
        "fabric_efficiency": summary.fabric_efficiency,
        "top_performer": top.product.code if top else None,
    }


def _stored_products() -> List[Product]:
    _db_required()
    db = SessionLocal()
    try:
        rows = db.query(ProductRow).order_by(ProductRow.code).all()
        return [_to_product(r.payload) for r in rows]
    finally:
        db.close()


# ----------------------------
# Request models
# ----------------------------
class ProductRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    code: str = ""
    name: str = ""
    category: str = ""
    # left unset so legacy "fabrication" / "isChecked" keys still apply
    fabricationCode: Optional[str] = None
    includedInPortfolio: Optional[bool] = None
    config: Dict[str, Any]
    orders: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    consumption: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    costs: Dict[str, Any] = Field(default_factory=dict)
    salesPrices: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ProductListRequest(BaseModel):
    products: List[ProductRequest]


class MaterialsRequest(ProductListRequest):
    included_only: bool = True


class BreakEvenRequest(BaseModel):
    fixed_cost: float
    price: float
    variable_unit_cost: float
    revenue: float = 0.0


class PeriodSettingsRequest(BaseModel):
    multiplier: float = Field(1.0, ge=0)
    sales_conversion_pct: float = Field(100.0, ge=0)


class ProjectionRequest(ProductListRequest):
    periods: Optional[Dict[str, PeriodSettingsRequest]] = None
    assignment: Dict[str, str] = Field(default_factory=dict)


class NewProductRequest(BaseModel):
    code: Optional[str] = None


# ----------------------------
# Routes
# ----------------------------
@app.get("/health")
def health():
    return {"ok": True, "db": bool(SessionLocal)}


@app.post("/metrics")
def metrics(req: ProductRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    return _metrics_payload(_to_product(_record(req)))


@app.post("/materials")
def materials(req: MaterialsRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    products = [_to_product(_record(p)) for p in req.products]
    rows = aggregate_materials(products, included_only=req.included_only)
    return {"rows": [to_dict(r) for r in rows]}


@app.post("/break-even")
def break_even(req: BreakEvenRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    result = analyze_break_even(req.fixed_cost, req.price, req.variable_unit_cost, revenue=req.revenue)
    return {**to_dict(result), "reachable": result.reachable}


@app.post("/projection")
def projection(req: ProjectionRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    products = [_to_product(_record(p)) for p in req.products]
    periods = None
    if req.periods is not None:
        periods = {label: PeriodSettings(**s.model_dump()) for label, s in req.periods.items()}
    return _projection_payload(project_quarters(products, periods=periods, assignment=req.assignment))


@app.post("/portfolio")
def portfolio(req: ProductListRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    return _portfolio_payload([_to_product(_record(p)) for p in req.products])


# ----------------------------
# Stored products
# ----------------------------
@app.get("/products")
def list_products(x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    _db_required()

    db = SessionLocal()
    try:
        rows = db.query(ProductRow).order_by(ProductRow.code).all()
        return {"products": [r.payload for r in rows]}
    finally:
        db.close()


@app.post("/products")
def create_product(req: NewProductRequest, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    _db_required()

    product_id = uuid.uuid4().hex[:12]
    record = new_product_record(product_id, code=req.code)

    db = SessionLocal()
    try:
        db.add(ProductRow(id=product_id, code=record["code"], name=record["name"], payload=record))
        db.commit()
    finally:
        db.close()

    logger.info("created product %s (%s)", product_id, record["code"])
    return record


@app.get("/products/{product_id}")
def get_product(product_id: str, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    _db_required()

    db = SessionLocal()
    try:
        row = db.get(ProductRow, product_id)
        if not row:
            raise HTTPException(status_code=404, detail="Product not found")
        return row.payload
    finally:
        db.close()


@app.put("/products/{product_id}")
def save_product(product_id: str, req: ProductRequest, x_api_key: Optional[str] = Header(default=None)):
    """
    Stores the record as sent. It is parsed first so a malformed record
    is rejected instead of breaking every later read.
    """
    _require_api_key(x_api_key)
    _db_required()

    record = _record(req)
    record["id"] = product_id
    _to_product(record)

    db = SessionLocal()
    try:
        row = db.get(ProductRow, product_id)
        if not row:
            row = ProductRow(id=product_id)
            db.add(row)
        row.code = record.get("code")
        row.name = record.get("name")
        row.payload = record
        db.commit()
    finally:
        db.close()

    logger.info("saved product %s", product_id)
    return record


@app.delete("/products/{product_id}")
def delete_product(product_id: str, x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    _db_required()

    db = SessionLocal()
    try:
        row = db.get(ProductRow, product_id)
        if not row:
            raise HTTPException(status_code=404, detail="Product not found")
        db.delete(row)
        db.commit()
    finally:
        db.close()

    logger.info("deleted product %s", product_id)
    return {"ok": True}


@app.get("/products/{product_id}/metrics")
def stored_product_metrics(product_id: str, x_api_key: Optional[str] = Header(default=None)):
    record = get_product(product_id, x_api_key)
    return _metrics_payload(_to_product(record))


@app.get("/portfolio")
def stored_portfolio(x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    return _portfolio_payload(_stored_products())


@app.get("/materials")
def stored_materials(x_api_key: Optional[str] = Header(default=None)):
    _require_api_key(x_api_key)
    return {"rows": [to_dict(r) for r in aggregate_materials(_stored_products())]}

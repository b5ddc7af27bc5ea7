# costing_config.py

# Cost parameter defaults for a brand-new product line.
# Percentages are whole numbers (35 == 35%).
NEW_PRODUCT_COSTS = {
    "fixedCost": 0,
    "profitTargetPct": 30,
    "marketingPct": 5,
    "wastagePct": 2,
    "opsPct": 5,
    "sewingCost": 0,
    "accessoriesCost": 0,
}

NEW_PRODUCT_SIZES = ["FREE"]
NEW_PRODUCT_COLORS = ["White"]

# Placeholder bucket used by material aggregation when a Fixed fabric has no color picked
FIXED_COLOR_PLACEHOLDER = "Fixed"

# Consumption report labels
MATCHED_REPORT_LABEL = "MATCHED (ALL)"
FIXED_REPORT_LABEL = "FIXED"

# Portfolio health bands (overall gross margin %)
HEALTH_BANDS = [
    {"min_margin_pct": 30, "label": "Excellent"},
    {"min_margin_pct": 15, "label": "Stable"},
]
HEALTH_FLOOR_LABEL = "Risk"

# Break-even chart
BEP_CHART_STEPS = 10
BEP_CHART_HEADROOM = 1.5
BEP_CHART_MIN_UNITS = 50

# Safety margin reported when there is no revenue at all
NO_REVENUE_SAFETY_MARGIN = -100.0

# Seed record used by the dashboard when no products are stored yet
SAMPLE_PRODUCT = {
    "id": 1,
    "code": "FL-TOP-01",
    "name": "FirstLove Summer Top",
    "category": "Sleeveless Crop Top",
    "fabricationCode": "22-01",
    "includedInPortfolio": True,
    "config": {
        "sizes": ["FREE", "M", "XL"],
        "colors": ["White", "Navy"],
        "fabrics": [
            {"id": 1, "type": "Shell", "code": "C-POP-01", "price": 4500, "colorMode": "Matched"},
            {"id": 2, "type": "Accessories", "code": "BTN-01", "price": 500,
             "colorMode": "Fixed", "fixedColor": "Silver"},
        ],
    },
    "orders": {"FREE": {"White": 100, "Navy": 50}, "M": {"White": 20}, "XL": {"White": 10}},
    "consumption": {"1": {"FREE": 1.2, "M": 1.4, "XL": 1.6}},
    "costs": {
        "fixedCost": 500000,
        "profitTargetPct": 35,
        "marketingPct": 8,
        "wastagePct": 3,
        "opsPct": 5,
        "sewingCost": 4000,
        "accessoriesCost": 500,
    },
    "salesPrices": {"FREE": {"retail": 28000, "wholesale": 21000, "flash": 19000}},
}

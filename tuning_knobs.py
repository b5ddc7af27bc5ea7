# tuning_knobs.py
"""
TUNING KNOBS (EDIT THIS FILE)

This is the ONLY file you should need to edit to tune the quarterly plan.
"""

# ============================================================
# 1) PLANNING PERIODS (production multiplier + sales conversion %)
# ============================================================
# multiplier: how many times the base order batch is produced in the period
# sales_conversion_pct: share of produced units expected to sell (0-100)
PERIOD_SETTINGS_MASTER = {
    "Q1": {"multiplier": 1.0, "sales_conversion_pct": 80},
    "Q2": {"multiplier": 1.5, "sales_conversion_pct": 70},
    "Q3": {"multiplier": 1.0, "sales_conversion_pct": 60},
    "Q4": {"multiplier": 2.0, "sales_conversion_pct": 85},
}

# ============================================================
# 2) PERIOD PRESETS + TOGGLES
# ============================================================
PERIOD_PRESET = "three_quarters"  # "three_quarters", "full_year", "single_quarter"

PERIOD_PRESETS = {
    "three_quarters": {"Q1": True, "Q2": True, "Q3": True, "Q4": False},
    "full_year":      {"Q1": True, "Q2": True, "Q3": True, "Q4": True},
    "single_quarter": {"Q1": True, "Q2": False, "Q3": False, "Q4": False},
}

PERIOD_ENABLED = PERIOD_PRESETS.get(PERIOD_PRESET, {"Q1": True, "Q2": True, "Q3": True})

PERIOD_SETTINGS = {
    label: dict(settings)
    for label, settings in PERIOD_SETTINGS_MASTER.items()
    if PERIOD_ENABLED.get(label, False)
}

# ============================================================
# 3) PERIOD ASSIGNMENT
# ============================================================
# A product assigned to ALL_PERIODS is produced in every enabled period.
ALL_PERIODS = "ALL"

DEFAULT_PERIOD_ASSIGNMENT = ALL_PERIODS

"""Static catalogs and fixed thresholds shared by both calculation engines.

None of these values are user-tunable. Both the reference and the accelerated
implementation read them from here so a change can never land in only one of
them.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

MIN_DATE = (1900, 1, 1)
MAX_DATE = (2100, 12, 31)

DAYS_PER_YEAR = 365
DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12
WEEKS_PER_MONTH = 4.33
DAYS_PER_MONTH = 30

# Share of monthly gross used for the quick "max payment" figures on a projection
INCOME_MAX_AUTO_RATIO = 0.12
INCOME_MAX_RENT_RATIO = 0.30

# 2024 single-filer schedule: (lower bound, upper bound, marginal rate)
FEDERAL_BRACKETS: List[Tuple[float, float, float]] = [
    (0.0, 11600.0, 0.10),
    (11600.0, 47150.0, 0.12),
    (47150.0, 100525.0, 0.22),
    (100525.0, 191950.0, 0.24),
    (191950.0, 243725.0, 0.32),
    (243725.0, 609350.0, 0.35),
    (609350.0, float("inf"), 0.37),
]
STANDARD_DEDUCTION = 14600.0
SS_WAGE_BASE = 168600.0
SS_RATE = 0.062
MEDICARE_RATE = 0.0145

# Annual PMI as a share of the loan amount, charged below 20% down
PMI_ANNUAL_RATE = 0.005
PMI_DOWN_PAYMENT_THRESHOLD = 20.0

# 50/30/20 rule. Subcategory percents are shares of net monthly income.
BUDGET_SPLITS: Dict[str, Dict] = {
    "needs": {
        "name": "Needs",
        "percent": 50.0,
        "subcategories": [
            ("Housing", 25.0),
            ("Utilities", 5.0),
            ("Groceries", 10.0),
            ("Transportation", 10.0),
        ],
    },
    "wants": {
        "name": "Wants",
        "percent": 30.0,
        "subcategories": [
            ("Dining Out", 5.0),
            ("Subscriptions", 5.0),
            ("Travel/Fun", 10.0),
            ("Personal", 10.0),
        ],
    },
    "savings": {
        "name": "Savings",
        "percent": 20.0,
        "subcategories": [
            ("Emergency Fund", 10.0),
            ("Investments", 5.0),
            ("Goals", 5.0),
        ],
    },
}

# DTI bands quoted verbatim by UI copy and FAQ schema
DTI_FRONT_END_LIMIT = 28.0
DTI_BACK_END_LIMIT = 36.0
DTI_BACK_END_MARGINAL_LIMIT = 43.0
DTI_DESCRIPTIONS = {
    "qualifies": "Qualifies comfortably - within the 28% housing / 36% total debt guidelines",
    "marginal": "Marginal - total debt up to 43% may qualify with compensating factors",
    "unlikely": "Unlikely to qualify - total debt above 43% of gross income",
}

PTI_RATIOS = [
    ("Conservative", 0.08, "Low risk, easier approval"),
    ("Standard", 0.12, "Typical auto loan guideline"),
    ("Aggressive", 0.15, "Maximum most lenders approve"),
]
STANDARD_PTI = "Standard"

RENT_RATIO = 0.30
RENT_RATIO_CONSERVATIVE = 0.25
HOME_HOUSING_RATIO = 0.28
HOME_PI_SHARE = 0.80

DEFAULT_HOURS_PER_WEEK = 40.0
WEEKS_PER_YEAR = 52


class CreditTierPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    score_range: str
    apr_low: float
    apr_high: float
    typical_apr: float


CREDIT_TIERS: List[CreditTierPreset] = [
    CreditTierPreset(id="excellent", label="Excellent", score_range="750+",
                     apr_low=4.9, apr_high=6.9, typical_apr=5.9),
    CreditTierPreset(id="good", label="Good", score_range="700-749",
                     apr_low=6.9, apr_high=8.9, typical_apr=7.9),
    CreditTierPreset(id="fair", label="Fair", score_range="650-699",
                     apr_low=9.9, apr_high=13.9, typical_apr=11.9),
    CreditTierPreset(id="poor", label="Needs Work", score_range="550-649",
                     apr_low=14.9, apr_high=18.9, typical_apr=16.9),
    CreditTierPreset(id="rebuilding", label="Rebuilding", score_range="Below 550",
                     apr_low=18.9, apr_high=24.9, typical_apr=21.9),
]


class VerdictThresholds(BaseModel):
    """Cut points for the Comfortable/Tight/Risky classification and its
    sensitivity report. Ratios are percentages of gross monthly income,
    margins and deltas are dollars per month unless noted."""

    model_config = ConfigDict(frozen=True)

    payment_tight: float = 8.0
    payment_risky: float = 12.0
    dti_tight: float = 36.0
    dti_risky: float = 43.0
    margin_tight: float = 500.0
    margin_risky: float = 200.0

    net_income_fallback_ratio: float = 0.75

    rate_spread_report: float = 30.0
    rate_spread_high: float = 75.0
    long_term_months: int = 72
    comparison_term_months: int = 60
    long_term_high_extra_cost: float = 3000.0
    down_payment_target_percent: float = 20.0
    down_payment_high_savings: float = 50.0
    income_volatility_report_ratio: float = 10.0
    income_volatility_high_ratio: float = 15.0

    income_drop_factor: float = 0.10
    insurance_price_ratio: float = 0.003
    insurance_shock_factor: float = 1.5
    term_extension_months: int = 12
    max_term_months: int = 84


VERDICT_THRESHOLDS = VerdictThresholds()

# Upper bounds that keep (1 + r) ** n finite for every accepted rate
MAX_TERM_MONTHS = 1200
MAX_TERM_YEARS = 100

# Monthly rates below this amortize as interest-free loans
ZERO_RATE_EPSILON = 1e-9

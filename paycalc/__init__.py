"""Deterministic financial calculation core.

Every function exported here runs on the accelerated backend when it loads
and on the reference backend otherwise, with the same results. This module
also exposes the package version for runtime display."""

from paycalc.engine import (
    CalculationEngine,
    EngineMode,
    LoadState,
    allocate_budget,
    amortization_schedule,
    analyze_dti,
    analyze_mortgage,
    auto_affordability,
    calculate_affordability,
    estimate_taxes,
    get_engine,
    get_engine_mode,
    income_from_annual,
    income_from_monthly,
    is_accelerated_runtime_available,
    loan_amount_for_payment,
    loan_estimates,
    max_home_price,
    monthly_payment,
    payment_approvals,
    project_income,
    quick_reference,
    rent_affordability,
    reset_engine,
)
from paycalc.exceptions import (
    AcceleratedBackendError,
    InvalidInputError,
    PaycalcError,
    UnknownCreditTierError,
)
from paycalc.utils import format_currency, format_percent, round_cents, round_dollars
from paycalc.verdict import get_credit_tier, list_credit_tiers

__all__ = [
    "__version__",
    "AcceleratedBackendError",
    "CalculationEngine",
    "EngineMode",
    "InvalidInputError",
    "LoadState",
    "PaycalcError",
    "UnknownCreditTierError",
    "allocate_budget",
    "amortization_schedule",
    "analyze_dti",
    "analyze_mortgage",
    "auto_affordability",
    "calculate_affordability",
    "estimate_taxes",
    "format_currency",
    "format_percent",
    "get_credit_tier",
    "get_engine",
    "get_engine_mode",
    "income_from_annual",
    "income_from_monthly",
    "is_accelerated_runtime_available",
    "list_credit_tiers",
    "loan_amount_for_payment",
    "loan_estimates",
    "max_home_price",
    "monthly_payment",
    "payment_approvals",
    "project_income",
    "quick_reference",
    "rent_affordability",
    "reset_engine",
    "round_cents",
    "round_dollars",
]

# Keep in sync with the version declared in ``pyproject.toml``
__version__ = "0.1.0"

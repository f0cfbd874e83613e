"""Dual-runtime dispatcher.

Every public calculation goes through :class:`CalculationEngine`, which
validates the inputs once and then routes the call to the accelerated backend
when it loaded, or to the reference backend otherwise. The load is attempted
at most once per engine and its outcome never changes afterwards. A failing
accelerated call is logged and answered by the reference backend for that
call only.
"""
from __future__ import annotations

import importlib
import threading
from collections import Counter
from enum import Enum
from typing import Callable, List, Optional, Protocol

import pandas as pd
import structlog

from paycalc import validation
from paycalc import verdict as verdict_engine
from paycalc.calculators import ReferenceBackend
from paycalc.config import Settings, get_settings
from paycalc.exceptions import AcceleratedBackendError, InvalidInputError
from paycalc.models import (
    AutoAffordability,
    BudgetAllocation,
    DtiAnalysis,
    IncomeProjection,
    LoanEstimate,
    MaxHomePrice,
    MortgageResult,
    PaymentApproval,
    QuickReference,
    RentAffordability,
    TaxBreakdown,
    VerdictResult,
)
from paycalc.presets import (
    DEFAULT_HOURS_PER_WEEK,
    MAX_TERM_MONTHS,
    MAX_TERM_YEARS,
    STANDARD_PTI,
    VERDICT_THRESHOLDS,
)
from paycalc.utils import round_dollars

logger = structlog.get_logger(__name__)


class LoadState(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class EngineMode(str, Enum):
    ACCELERATED = "accelerated"
    REFERENCE = "reference"


class CalculationBackend(Protocol):
    """The calculation contract both backends implement."""

    name: str
    version: str

    def monthly_payment(self, principal, annual_rate_pct, term_months) -> float: ...

    def loan_amount_for_payment(self, payment, annual_rate_pct, term_months) -> float: ...

    def project_income(self, cumulative_income, start_date, check_date) -> Optional[IncomeProjection]: ...

    def income_from_monthly(self, monthly_income) -> IncomeProjection: ...

    def income_from_annual(self, annual_income) -> IncomeProjection: ...

    def analyze_mortgage(
        self, home_price, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct, annual_insurance
    ) -> MortgageResult: ...

    def estimate_taxes(self, gross_annual, retirement_pct, annual_health_premium, state_rate_pct) -> TaxBreakdown: ...

    def allocate_budget(self, net_monthly) -> BudgetAllocation: ...

    def analyze_dti(self, monthly_income, housing_payment, other_debts) -> DtiAnalysis: ...

    def amortization_schedule(self, principal, annual_rate_pct, term_months) -> pd.DataFrame: ...

    def payment_approvals(self, monthly_income) -> List[PaymentApproval]: ...

    def loan_estimates(self, payment, term_months) -> List[LoanEstimate]: ...

    def rent_affordability(self, monthly_income, current_rent=None) -> RentAffordability: ...

    def max_home_price(
        self, monthly_income, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct, annual_insurance
    ) -> MaxHomePrice: ...

    def quick_reference(self, net_monthly, hours_per_week=DEFAULT_HOURS_PER_WEEK) -> QuickReference: ...


def load_backend(path: str) -> CalculationBackend:
    """Import ``module:factory`` and call the factory.

    Any failure is reported as :class:`AcceleratedBackendError`. Nothing here
    touches the network, so a missing module fails immediately.
    """
    try:
        module_name, factory = path.split(":")
    except ValueError:
        raise AcceleratedBackendError(path, "expected 'module:factory'") from None
    try:
        return getattr(importlib.import_module(module_name), factory)()
    except Exception as exc:
        raise AcceleratedBackendError(path, f"{type(exc).__name__}: {exc}") from exc


class CalculationEngine:
    """Validated entry points over a memoized backend choice."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        reference: Optional[CalculationBackend] = None,
        loader: Callable[[str], CalculationBackend] = load_backend,
    ):
        self.settings = settings or get_settings()
        self._reference = reference or ReferenceBackend()
        self._loader = loader
        self._lock = threading.Lock()
        self._state = LoadState.NOT_ATTEMPTED
        self._accelerated: Optional[CalculationBackend] = None
        self.stats: Counter = Counter()

    # ------------------------------------------------------------------
    # Backend selection

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_accelerated_available(self) -> bool:
        return self._resolve() is not None

    @property
    def mode(self) -> EngineMode:
        return EngineMode.ACCELERATED if self.is_accelerated_available else EngineMode.REFERENCE

    def _resolve(self) -> Optional[CalculationBackend]:
        if self._state is not LoadState.NOT_ATTEMPTED:
            return self._accelerated
        with self._lock:
            if self._state is LoadState.NOT_ATTEMPTED:
                self._accelerated = self._load()
                self._state = LoadState.AVAILABLE if self._accelerated is not None else LoadState.UNAVAILABLE
        return self._accelerated

    def _load(self) -> Optional[CalculationBackend]:
        path = self.settings.accelerated_backend
        if not self.settings.accelerated_enabled:
            logger.info("engine.accelerated.disabled", backend=path)
            return None
        try:
            backend = self._loader(path)
        except Exception as exc:
            logger.warning("engine.accelerated.load_failed", backend=path, error=str(exc))
            return None
        logger.info(
            "engine.accelerated.loaded",
            backend=getattr(backend, "name", path),
            version=getattr(backend, "version", None),
        )
        return backend

    def _call(self, operation: str, *args):
        backend = self._resolve()
        if backend is None:
            self.stats["reference_calls"] += 1
            return getattr(self._reference, operation)(*args)
        try:
            result = getattr(backend, operation)(*args)
        except Exception:
            self.stats["fallback_calls"] += 1
            logger.error("engine.accelerated.call_failed", operation=operation, parity_risk=True, exc_info=True)
            return getattr(self._reference, operation)(*args)
        self.stats["accelerated_calls"] += 1
        return result

    # ------------------------------------------------------------------
    # Amortization

    def monthly_payment(self, principal, annual_rate_pct, term_months) -> float:
        return self._call(
            "monthly_payment",
            validation.money(principal, "principal"),
            validation.rate(annual_rate_pct),
            validation.term(term_months, maximum=MAX_TERM_MONTHS),
        )

    def loan_amount_for_payment(self, payment, annual_rate_pct, term_months) -> float:
        return self._call(
            "loan_amount_for_payment",
            validation.money(payment, "payment"),
            validation.rate(annual_rate_pct),
            validation.term(term_months, maximum=MAX_TERM_MONTHS),
        )

    def amortization_schedule(self, principal, annual_rate_pct, term_months) -> pd.DataFrame:
        return self._call(
            "amortization_schedule",
            validation.money(principal, "principal"),
            validation.rate(annual_rate_pct),
            validation.term(term_months, maximum=MAX_TERM_MONTHS),
        )

    # ------------------------------------------------------------------
    # Income

    def project_income(self, cumulative_income, start_date, check_date) -> Optional[IncomeProjection]:
        """Returns ``None`` rather than raising for the not-yet-computable states."""
        return self._call(
            "project_income",
            validation.finite(cumulative_income, "cumulative_income"),
            validation.calendar_date(start_date, "start_date"),
            validation.calendar_date(check_date, "check_date"),
        )

    def income_from_monthly(self, monthly_income) -> IncomeProjection:
        return self._call("income_from_monthly", validation.positive(monthly_income, "monthly_income"))

    def income_from_annual(self, annual_income) -> IncomeProjection:
        return self._call("income_from_annual", validation.positive(annual_income, "annual_income"))

    def quick_reference(self, net_monthly, hours_per_week=DEFAULT_HOURS_PER_WEEK) -> QuickReference:
        return self._call(
            "quick_reference",
            validation.money(net_monthly, "net_monthly"),
            validation.finite(hours_per_week, "hours_per_week"),
        )

    # ------------------------------------------------------------------
    # Housing

    def analyze_mortgage(
        self,
        home_price,
        down_payment_pct,
        annual_rate_pct,
        term_years,
        property_tax_rate_pct=0.0,
        annual_insurance=0.0,
    ) -> MortgageResult:
        return self._call(
            "analyze_mortgage",
            validation.money(home_price, "home_price"),
            validation.percent(down_payment_pct, "down_payment_pct"),
            validation.rate(annual_rate_pct),
            validation.term(term_years, "term_years", maximum=MAX_TERM_YEARS),
            validation.percent(property_tax_rate_pct, "property_tax_rate_pct"),
            validation.money(annual_insurance, "annual_insurance"),
        )

    def rent_affordability(self, monthly_income, current_rent=None) -> RentAffordability:
        income = validation.positive(monthly_income, "monthly_income")
        if current_rent is not None:
            current_rent = validation.money(current_rent, "current_rent")
        return self._call("rent_affordability", income, current_rent)

    def max_home_price(
        self,
        monthly_income,
        down_payment_pct,
        annual_rate_pct,
        term_years,
        property_tax_rate_pct=0.0,
        annual_insurance=0.0,
    ) -> MaxHomePrice:
        return self._call(
            "max_home_price",
            validation.positive(monthly_income, "monthly_income"),
            validation.percent(down_payment_pct, "down_payment_pct", upper_inclusive=False),
            validation.rate(annual_rate_pct),
            validation.term(term_years, "term_years", maximum=MAX_TERM_YEARS),
            validation.percent(property_tax_rate_pct, "property_tax_rate_pct"),
            validation.money(annual_insurance, "annual_insurance"),
        )

    # ------------------------------------------------------------------
    # Taxes, budget and debt

    def estimate_taxes(
        self,
        gross_annual,
        retirement_pct=0.0,
        annual_health_premium=0.0,
        state_rate_pct=0.0,
    ) -> TaxBreakdown:
        return self._call(
            "estimate_taxes",
            validation.positive(gross_annual, "gross_annual"),
            validation.percent(retirement_pct, "retirement_pct"),
            validation.money(annual_health_premium, "annual_health_premium"),
            validation.percent(state_rate_pct, "state_rate_pct"),
        )

    def allocate_budget(self, net_monthly) -> BudgetAllocation:
        return self._call("allocate_budget", validation.money(net_monthly, "net_monthly"))

    def analyze_dti(self, monthly_income, housing_payment, other_debts=0.0) -> DtiAnalysis:
        return self._call(
            "analyze_dti",
            validation.positive(monthly_income, "monthly_income"),
            validation.money(housing_payment, "housing_payment"),
            validation.money(other_debts, "other_debts"),
        )

    # ------------------------------------------------------------------
    # Auto loans

    def payment_approvals(self, monthly_income) -> List[PaymentApproval]:
        return self._call("payment_approvals", validation.positive(monthly_income, "monthly_income"))

    def loan_estimates(self, payment, term_months=60) -> List[LoanEstimate]:
        return self._call(
            "loan_estimates",
            validation.money(payment, "payment"),
            validation.term(term_months, maximum=MAX_TERM_MONTHS),
        )

    def auto_affordability(self, monthly_income, term_months=60) -> AutoAffordability:
        """Payment ceilings for an income, plus what the standard ceiling buys.

        The standard (12%) ceiling is rounded to whole dollars before it is
        priced at each credit tier.
        """
        income = validation.positive(monthly_income, "monthly_income")
        term = validation.term(term_months, maximum=MAX_TERM_MONTHS)
        approvals = self._call("payment_approvals", income)
        standard = round_dollars(next(a.max_payment for a in approvals if a.pti_type == STANDARD_PTI))
        return AutoAffordability(
            monthly_income=income,
            standard_payment=standard,
            payment_approvals=approvals,
            loan_estimates=self._call("loan_estimates", standard, term),
        )

    def calculate_affordability(
        self,
        vehicle_price,
        down_payment,
        credit_tier_id,
        term_months,
        gross_monthly_income,
        fixed_obligations=0.0,
        apr_override=None,
        net_monthly_income=None,
    ) -> VerdictResult:
        price = validation.positive(vehicle_price, "vehicle_price")
        down = validation.money(down_payment, "down_payment")
        if down > price:
            raise InvalidInputError("down_payment", down_payment, "must not exceed vehicle_price")
        tier = verdict_engine.get_credit_tier(credit_tier_id)
        term = validation.term(term_months, maximum=VERDICT_THRESHOLDS.max_term_months)
        gross = validation.positive(gross_monthly_income, "gross_monthly_income")
        obligations = validation.money(fixed_obligations, "fixed_obligations")
        if apr_override is not None:
            apr_override = validation.rate(apr_override, "apr_override")
        if net_monthly_income is not None:
            net_monthly_income = validation.money(net_monthly_income, "net_monthly_income")

        def payment(principal, annual_rate_pct, months):
            return self._call("monthly_payment", principal, annual_rate_pct, months)

        return verdict_engine.calculate_affordability(
            payment,
            price,
            down,
            tier.id,
            term,
            gross,
            obligations,
            apr_override=apr_override,
            net_monthly_income=net_monthly_income,
        )


_engine: Optional[CalculationEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> CalculationEngine:
    """Process-wide engine, created on first use from :func:`get_settings`."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = CalculationEngine()
    return _engine


def reset_engine(engine: Optional[CalculationEngine] = None) -> None:
    """Replace the process-wide engine; ``None`` rebuilds it on next use."""
    global _engine
    with _engine_lock:
        _engine = engine


def is_accelerated_runtime_available() -> bool:
    return get_engine().is_accelerated_available


def get_engine_mode() -> str:
    return get_engine().mode.value


def monthly_payment(principal, annual_rate_pct, term_months) -> float:
    return get_engine().monthly_payment(principal, annual_rate_pct, term_months)


def loan_amount_for_payment(payment, annual_rate_pct, term_months) -> float:
    return get_engine().loan_amount_for_payment(payment, annual_rate_pct, term_months)


def amortization_schedule(principal, annual_rate_pct, term_months) -> pd.DataFrame:
    return get_engine().amortization_schedule(principal, annual_rate_pct, term_months)


def project_income(cumulative_income, start_date, check_date) -> Optional[IncomeProjection]:
    return get_engine().project_income(cumulative_income, start_date, check_date)


def income_from_monthly(monthly_income) -> IncomeProjection:
    return get_engine().income_from_monthly(monthly_income)


def income_from_annual(annual_income) -> IncomeProjection:
    return get_engine().income_from_annual(annual_income)


def quick_reference(net_monthly, hours_per_week=DEFAULT_HOURS_PER_WEEK) -> QuickReference:
    return get_engine().quick_reference(net_monthly, hours_per_week)


def analyze_mortgage(
    home_price, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct=0.0, annual_insurance=0.0
) -> MortgageResult:
    return get_engine().analyze_mortgage(
        home_price, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct, annual_insurance
    )


def rent_affordability(monthly_income, current_rent=None) -> RentAffordability:
    return get_engine().rent_affordability(monthly_income, current_rent)


def max_home_price(
    monthly_income, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct=0.0, annual_insurance=0.0
) -> MaxHomePrice:
    return get_engine().max_home_price(
        monthly_income, down_payment_pct, annual_rate_pct, term_years, property_tax_rate_pct, annual_insurance
    )


def estimate_taxes(gross_annual, retirement_pct=0.0, annual_health_premium=0.0, state_rate_pct=0.0) -> TaxBreakdown:
    return get_engine().estimate_taxes(gross_annual, retirement_pct, annual_health_premium, state_rate_pct)


def allocate_budget(net_monthly) -> BudgetAllocation:
    return get_engine().allocate_budget(net_monthly)


def analyze_dti(monthly_income, housing_payment, other_debts=0.0) -> DtiAnalysis:
    return get_engine().analyze_dti(monthly_income, housing_payment, other_debts)


def payment_approvals(monthly_income) -> List[PaymentApproval]:
    return get_engine().payment_approvals(monthly_income)


def loan_estimates(payment, term_months=60) -> List[LoanEstimate]:
    return get_engine().loan_estimates(payment, term_months)


def auto_affordability(monthly_income, term_months=60) -> AutoAffordability:
    return get_engine().auto_affordability(monthly_income, term_months)


def calculate_affordability(
    vehicle_price,
    down_payment,
    credit_tier_id,
    term_months,
    gross_monthly_income,
    fixed_obligations=0.0,
    apr_override=None,
    net_monthly_income=None,
) -> VerdictResult:
    return get_engine().calculate_affordability(
        vehicle_price,
        down_payment,
        credit_tier_id,
        term_months,
        gross_monthly_income,
        fixed_obligations,
        apr_override=apr_override,
        net_monthly_income=net_monthly_income,
    )

"""Affordability verdict engine for auto loans.

Produces three things for one set of inputs: the Comfortable/Tight/Risky
verdict with the reason that decided it, a sensitivity report of the inputs
that move the payment most, and three fixed what-if scenarios. Every payment
is computed through the engine passed in, so the verdict is identical
whichever runtime is active.
"""
from __future__ import annotations

from typing import Callable, List, Optional

import structlog

from paycalc.exceptions import UnknownCreditTierError
from paycalc.models import (
    AffordabilityVerdict,
    CreditTier,
    ImpactTier,
    ScenarioResult,
    ScenarioSet,
    StressDriver,
    Verdict,
    VerdictResult,
)
from paycalc.presets import CREDIT_TIERS, VERDICT_THRESHOLDS, VerdictThresholds

logger = structlog.get_logger(__name__)

PaymentFn = Callable[[float, float, int], float]


def list_credit_tiers() -> List[CreditTier]:
    return [CreditTier(**tier.model_dump()) for tier in CREDIT_TIERS]


def get_credit_tier(tier_id: str) -> CreditTier:
    for tier in CREDIT_TIERS:
        if tier.id == tier_id:
            return CreditTier(**tier.model_dump())
    raise UnknownCreditTierError(tier_id)


def classify(
    payment_ratio: float,
    debt_to_income: float,
    monthly_margin: float,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> AffordabilityVerdict:
    """Classify one payment.

    Risky conditions are checked before tight ones, and within each level the
    payment ratio wins over DTI, which wins over the margin. The first
    condition that fires supplies the explanation.
    """

    def verdict(level: Verdict, trigger: Optional[str], explanation: str) -> AffordabilityVerdict:
        return AffordabilityVerdict(
            verdict=level,
            explanation=explanation,
            trigger=trigger,
            payment_to_income=payment_ratio,
            debt_to_income=debt_to_income,
            monthly_margin=monthly_margin,
        )

    if payment_ratio > limits.payment_risky:
        return verdict(
            Verdict.RISKY,
            "payment_ratio",
            f"This payment takes {payment_ratio:.0f}% of your gross income, "
            f"above the recommended {limits.payment_risky:.0f}% maximum.",
        )
    if debt_to_income > limits.dti_risky:
        return verdict(
            Verdict.RISKY,
            "dti",
            f"Your total debt obligations would reach {debt_to_income:.0f}% of income, "
            "leaving little cushion for emergencies.",
        )
    if monthly_margin < limits.margin_risky:
        return verdict(
            Verdict.RISKY,
            "margin",
            f"After this payment and your obligations you would have only "
            f"${monthly_margin:,.0f} left each month.",
        )

    if payment_ratio > limits.payment_tight:
        return verdict(
            Verdict.TIGHT,
            "payment_ratio",
            f"This payment is {payment_ratio:.0f}% of your income. Workable, but there is "
            "limited room if expenses rise.",
        )
    if debt_to_income > limits.dti_tight:
        return verdict(
            Verdict.TIGHT,
            "dti",
            f"Your total debt-to-income of {debt_to_income:.0f}% is manageable but close to "
            "the limits most lenders prefer.",
        )
    if monthly_margin < limits.margin_tight:
        return verdict(
            Verdict.TIGHT,
            "margin",
            f"Your monthly cushion of ${monthly_margin:,.0f} is adequate but thin against "
            "unexpected costs.",
        )

    return verdict(
        Verdict.COMFORTABLE,
        None,
        f"This payment is {payment_ratio:.0f}% of your income with {100 - debt_to_income:.0f}% "
        "of income left for savings and unexpected expenses.",
    )


def _ratios(payment: float, obligations: float, income: float):
    return payment / income * 100, (obligations + payment) / income * 100


def stress_drivers(
    payment_fn: PaymentFn,
    tier: CreditTier,
    vehicle_price: float,
    down_payment: float,
    rate: float,
    term_months: int,
    payment: float,
    gross_monthly_income: float,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> List[StressDriver]:
    """Sensitivity findings for the base scenario, in a fixed order."""

    drivers: List[StressDriver] = []
    loan = vehicle_price - down_payment

    spread = payment_fn(loan, tier.apr_high, term_months) - payment_fn(loan, tier.apr_low, term_months)
    if spread > limits.rate_spread_report:
        drivers.append(
            StressDriver(
                id="interest_rate",
                label="Interest Rate Sensitivity",
                impact=ImpactTier.HIGH if spread > limits.rate_spread_high else ImpactTier.MEDIUM,
                delta=spread,
                explanation=(
                    f"Your rate could land anywhere from {tier.apr_low:.1f}% to {tier.apr_high:.1f}%, "
                    f"moving the payment by up to ${spread:,.0f}/month."
                ),
            )
        )

    if term_months >= limits.long_term_months:
        short_term = limits.comparison_term_months
        short_payment = payment_fn(loan, rate, short_term)
        extra_cost = payment * term_months - short_payment * short_term
        drivers.append(
            StressDriver(
                id="term_length",
                label="Term Length Illusion",
                impact=ImpactTier.HIGH if extra_cost > limits.long_term_high_extra_cost else ImpactTier.MEDIUM,
                delta=extra_cost,
                explanation=(
                    f"The {term_months}-month term saves ${short_payment - payment:,.0f}/month over "
                    f"{short_term} months but costs ${extra_cost:,.0f} more in total interest."
                ),
            )
        )

    down_pct = down_payment / vehicle_price * 100
    if down_pct < limits.down_payment_target_percent:
        additional = vehicle_price * limits.down_payment_target_percent / 100 - down_payment
        reduced_payment = payment_fn(loan - additional, rate, term_months)
        savings = payment - reduced_payment
        drivers.append(
            StressDriver(
                id="down_payment",
                label="Down Payment Leverage",
                impact=ImpactTier.HIGH if savings > limits.down_payment_high_savings else ImpactTier.MEDIUM,
                delta=savings,
                explanation=(
                    f"Putting ${additional:,.0f} more down would cut your payment by "
                    f"${savings:,.0f}/month."
                ),
            )
        )

    payment_ratio = payment / gross_monthly_income * 100
    if payment_ratio > limits.income_volatility_report_ratio:
        stressed = payment / (gross_monthly_income * (1 - limits.income_drop_factor)) * 100
        high = stressed > limits.income_volatility_high_ratio
        drivers.append(
            StressDriver(
                id="income_volatility",
                label="Income Volatility Impact",
                impact=ImpactTier.HIGH if high else ImpactTier.LOW,
                delta=stressed - payment_ratio,
                explanation=(
                    f"A {limits.income_drop_factor * 100:.0f}% income drop would push this payment to "
                    f"{stressed:.0f}% of income, {'dangerously high' if high else 'still manageable'}."
                ),
            )
        )

    return drivers


_SCENARIO_OUTLOOK = {
    Verdict.RISKY: "This would be unsustainable.",
    Verdict.TIGHT: "Manageable but strained.",
    Verdict.COMFORTABLE: "Still workable.",
}


def income_drop_scenario(
    payment: float,
    gross_monthly_income: float,
    fixed_obligations: float,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> ScenarioResult:
    reduced = gross_monthly_income * (1 - limits.income_drop_factor)
    ratio, dti = _ratios(payment, fixed_obligations, reduced)
    result = classify(ratio, dti, reduced - fixed_obligations - payment, limits)
    return ScenarioResult(
        id="income_drop",
        monthly_payment=payment,
        verdict=result.verdict,
        delta=-gross_monthly_income * limits.income_drop_factor,
        explanation=(
            f"With {limits.income_drop_factor * 100:.0f}% less income this payment becomes "
            f"{ratio:.0f}% of your earnings. {_SCENARIO_OUTLOOK[result.verdict]}"
        ),
    )


def insurance_scenario(
    payment: float,
    vehicle_price: float,
    gross_monthly_income: float,
    fixed_obligations: float,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> ScenarioResult:
    estimated = vehicle_price * limits.insurance_price_ratio
    higher = estimated * limits.insurance_shock_factor
    effective = payment + higher
    ratio, dti = _ratios(effective, fixed_obligations, gross_monthly_income)
    result = classify(ratio, dti, gross_monthly_income - fixed_obligations - effective, limits)
    return ScenarioResult(
        id="higher_insurance",
        monthly_payment=effective,
        verdict=result.verdict,
        delta=higher - estimated,
        explanation=(
            f"If insurance runs ${higher:,.0f}/month instead of ${estimated:,.0f}, your true cost is "
            f"${effective:,.0f}/month ({ratio:.0f}% of income)."
        ),
    )


def longer_term_scenario(
    payment_fn: PaymentFn,
    loan: float,
    rate: float,
    term_months: int,
    payment: float,
    gross_monthly_income: float,
    fixed_obligations: float,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> ScenarioResult:
    extended = min(term_months + limits.term_extension_months, limits.max_term_months)
    extended_payment = payment_fn(loan, rate, extended)
    added_cost = extended_payment * extended - payment * term_months
    ratio, dti = _ratios(extended_payment, fixed_obligations, gross_monthly_income)
    result = classify(ratio, dti, gross_monthly_income - fixed_obligations - extended_payment, limits)
    return ScenarioResult(
        id="longer_term",
        monthly_payment=extended_payment,
        verdict=result.verdict,
        delta=extended_payment - payment,
        explanation=(
            f"Extending to {extended} months changes the payment to ${extended_payment:,.0f} and adds "
            f"${added_cost:,.0f} in total interest."
        ),
    )


def calculate_affordability(
    payment_fn: PaymentFn,
    vehicle_price: float,
    down_payment: float,
    credit_tier_id: str,
    term_months: int,
    gross_monthly_income: float,
    fixed_obligations: float,
    apr_override: Optional[float] = None,
    net_monthly_income: Optional[float] = None,
    limits: VerdictThresholds = VERDICT_THRESHOLDS,
) -> VerdictResult:
    """Payment, verdict, stress drivers and scenarios for one auto loan.

    The monthly margin is measured against net income when it is known and
    non-zero, and against 75% of gross otherwise. The 75% figure is a rough
    stand-in kept as-is so displayed figures stay stable.
    """

    tier = get_credit_tier(credit_tier_id)
    rate = apr_override if apr_override is not None else tier.typical_apr
    loan = vehicle_price - down_payment
    payment = payment_fn(loan, rate, term_months)
    total_cost = payment * term_months + down_payment

    ratio, dti = _ratios(payment, fixed_obligations, gross_monthly_income)
    # an unset or zero net income means the field was left blank
    if not net_monthly_income:
        effective_income = gross_monthly_income * limits.net_income_fallback_ratio
    else:
        effective_income = net_monthly_income
    assessment = classify(ratio, dti, effective_income - fixed_obligations - payment, limits)

    drivers = stress_drivers(
        payment_fn, tier, vehicle_price, down_payment, rate, term_months, payment, gross_monthly_income, limits
    )
    scenarios = ScenarioSet(
        income_drop=income_drop_scenario(payment, gross_monthly_income, fixed_obligations, limits),
        higher_insurance=insurance_scenario(payment, vehicle_price, gross_monthly_income, fixed_obligations, limits),
        longer_term=longer_term_scenario(
            payment_fn, loan, rate, term_months, payment, gross_monthly_income, fixed_obligations, limits
        ),
    )
    logger.debug(
        "verdict.computed",
        verdict=assessment.verdict.value,
        trigger=assessment.trigger,
        payment_to_income=round(ratio, 2),
        debt_to_income=round(dti, 2),
    )
    return VerdictResult(
        credit_tier=tier,
        interest_rate=rate,
        loan_amount=loan,
        monthly_payment=payment,
        total_interest=total_cost - vehicle_price,
        total_cost=total_cost,
        assessment=assessment,
        stress_drivers=drivers,
        scenarios=scenarios,
    )

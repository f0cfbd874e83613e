"""Reference implementation of the calculation contract.

Plain Python and ``math`` only, so it runs anywhere the package imports. The
accelerated engine in ``paycalc.accelerated`` must agree with every function
here to the cent. Inputs are assumed to have passed ``paycalc.validation``.
"""
from __future__ import annotations

import math
from datetime import date
from typing import List, Optional

import pandas as pd

from paycalc.models import (
    BudgetAllocation,
    BudgetCategory,
    BudgetSubcategory,
    CreditTier,
    DtiAnalysis,
    DtiBand,
    IncomeProjection,
    LoanEstimate,
    MaxHomePrice,
    MortgageResult,
    PaymentApproval,
    PitiBreakdown,
    QuickReference,
    RentAffordability,
    TaxBreakdown,
)
from paycalc.presets import (
    BUDGET_SPLITS,
    CREDIT_TIERS,
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    DAYS_PER_YEAR,
    DEFAULT_HOURS_PER_WEEK,
    DTI_BACK_END_LIMIT,
    DTI_BACK_END_MARGINAL_LIMIT,
    DTI_DESCRIPTIONS,
    DTI_FRONT_END_LIMIT,
    FEDERAL_BRACKETS,
    HOME_HOUSING_RATIO,
    HOME_PI_SHARE,
    INCOME_MAX_AUTO_RATIO,
    INCOME_MAX_RENT_RATIO,
    MEDICARE_RATE,
    MONTHS_PER_YEAR,
    PMI_ANNUAL_RATE,
    PMI_DOWN_PAYMENT_THRESHOLD,
    PTI_RATIOS,
    RENT_RATIO,
    RENT_RATIO_CONSERVATIVE,
    SS_RATE,
    SS_WAGE_BASE,
    STANDARD_DEDUCTION,
    WEEKS_PER_MONTH,
    WEEKS_PER_YEAR,
    ZERO_RATE_EPSILON,
)

SCHEDULE_COLUMNS = [
    "month",
    "payment",
    "principal",
    "interest",
    "balance",
    "cumulative_interest",
    "cumulative_principal",
]


def monthly_payment(principal, annual_rate_pct, term_months):
    """Calculate the fully amortizing monthly payment for a loan.

    ``principal`` is the starting loan amount, ``annual_rate_pct`` is the
    nominal yearly interest rate (e.g. ``6.5`` for 6.5%), and ``term_months``
    is the number of monthly payments. A zero rate, or one too small to
    accrue interest, is a plain division.
    """

    n = term_months
    r = annual_rate_pct / 100 / 12
    if r < ZERO_RATE_EPSILON:
        return principal / n
    # (1 + r) ** n - 1, without cancellation for very small rates
    growth = math.expm1(n * math.log1p(r))
    return principal * r * (growth + 1) / growth


def loan_amount_for_payment(payment, annual_rate_pct, term_months):
    """Reverse amortization to find the loan amount for a given payment.

    Feeding the result back into :func:`monthly_payment` reproduces
    ``payment`` up to floating point error.
    """

    n = term_months
    r = annual_rate_pct / 100 / 12
    if r < ZERO_RATE_EPSILON:
        return payment * n
    return payment * -math.expm1(-n * math.log1p(r)) / r


def _projection(days_worked: int, daily: float) -> IncomeProjection:
    # Every rate comes from the single daily figure so they stay consistent.
    monthly = daily * DAYS_PER_YEAR / MONTHS_PER_YEAR
    return IncomeProjection(
        days_worked=days_worked,
        daily=daily,
        weekly=daily * DAYS_PER_WEEK,
        monthly=monthly,
        annual=daily * DAYS_PER_YEAR,
        max_auto_payment=monthly * INCOME_MAX_AUTO_RATIO,
        max_rent=monthly * INCOME_MAX_RENT_RATIO,
    )


def project_income(cumulative_income, start_date: date, check_date: date) -> Optional[IncomeProjection]:
    """Annualize year-to-date earnings.

    Days before January 1 of the check date's year never count, so a job that
    started last year is projected from New Year's Day. Returns ``None`` while
    the inputs cannot produce a projection yet (check date before the start,
    no days worked, or nothing earned).
    """

    if check_date < start_date:
        return None
    year_start = date(check_date.year, 1, 1)
    effective_start = max(start_date, year_start)
    days = (check_date - effective_start).days + 1
    if days <= 0 or cumulative_income <= 0:
        return None
    return _projection(days, cumulative_income / days)


def income_from_monthly(monthly_income) -> IncomeProjection:
    """Projection for a manually entered monthly figure (no day count)."""

    annual = monthly_income * MONTHS_PER_YEAR
    return _projection(0, annual / DAYS_PER_YEAR)


def income_from_annual(annual_income) -> IncomeProjection:
    return _projection(0, annual_income / DAYS_PER_YEAR)


def analyze_mortgage(
    home_price,
    down_payment_pct,
    annual_rate_pct,
    term_years,
    property_tax_rate_pct,
    annual_insurance,
) -> MortgageResult:
    """Break the monthly housing payment into PITI components.

    PMI is 0.5% of the loan per year and applies only below 20% down. The
    total is the exact sum of the four components.
    """

    loan = home_price * (1 - down_payment_pct / 100)
    down = home_price * (down_payment_pct / 100)
    n = term_years * 12
    pi = monthly_payment(loan, annual_rate_pct, n)
    taxes = home_price * (property_tax_rate_pct / 100) / 12
    insurance = annual_insurance / 12
    pmi = loan * PMI_ANNUAL_RATE / 12 if down_payment_pct < PMI_DOWN_PAYMENT_THRESHOLD else 0.0
    total = pi + taxes + insurance + pmi
    total_payments = pi * n
    return MortgageResult(
        home_price=home_price,
        down_payment=down,
        down_payment_percent=down_payment_pct,
        loan_amount=loan,
        interest_rate=annual_rate_pct,
        term_years=term_years,
        piti=PitiBreakdown(
            principal_interest=pi,
            property_tax=taxes,
            insurance=insurance,
            pmi=pmi,
            total_monthly=total,
        ),
        total_payments=total_payments,
        total_interest=max(total_payments - loan, 0.0),
    )


def federal_tax(adjusted_gross):
    """Progressive federal tax on income after the standard deduction."""

    remaining = max(0.0, adjusted_gross - STANDARD_DEDUCTION)
    tax = 0.0
    for low, high, rate in FEDERAL_BRACKETS:
        if remaining <= 0:
            break
        taxable_in_bracket = min(remaining, high - low)
        tax += taxable_in_bracket * rate
        remaining -= taxable_in_bracket
    return tax


def fica(gross_annual):
    """Return ``(total, social_security, medicare)``.

    Social Security stops at the wage base; Medicare has no cap and the
    additional high-earner surtax is not modeled.
    """

    social_security = min(gross_annual, SS_WAGE_BASE) * SS_RATE
    medicare = gross_annual * MEDICARE_RATE
    return social_security + medicare, social_security, medicare


def estimate_taxes(
    gross_annual,
    retirement_pct,
    annual_health_premium,
    state_rate_pct,
) -> TaxBreakdown:
    """Estimate take-home pay for a single filer.

    Retirement contributions and the health premium come out pre-tax for
    federal and state purposes; FICA is charged on the full gross.
    """

    retirement = gross_annual * (retirement_pct / 100)
    agi = gross_annual - retirement - annual_health_premium
    fed = federal_tax(agi)
    state = max(agi, 0.0) * (state_rate_pct / 100)
    fica_total, social_security, medicare = fica(gross_annual)
    total_deductions = fed + state + fica_total + retirement + annual_health_premium
    net = gross_annual - total_deductions
    return TaxBreakdown(
        gross_annual=gross_annual,
        federal_tax=fed,
        state_tax=state,
        fica_tax=fica_total,
        social_security=social_security,
        medicare=medicare,
        retirement_contribution=retirement,
        health_premium=annual_health_premium,
        total_deductions=total_deductions,
        net_annual=net,
        net_monthly=net / 12,
        effective_tax_rate=(gross_annual - net) / gross_annual * 100,
    )


def _budget_category(net_monthly, split) -> BudgetCategory:
    monthly = net_monthly * split["percent"] / 100
    return BudgetCategory(
        name=split["name"],
        percent=split["percent"],
        monthly=monthly,
        weekly=monthly / WEEKS_PER_MONTH,
        daily=monthly / DAYS_PER_MONTH,
        subcategories=[
            BudgetSubcategory(name=name, percent=pct, monthly=net_monthly * pct / 100)
            for name, pct in split["subcategories"]
        ],
    )


def allocate_budget(net_monthly) -> BudgetAllocation:
    """Split take-home pay by the 50/30/20 rule."""

    return BudgetAllocation(
        net_monthly=net_monthly,
        needs=_budget_category(net_monthly, BUDGET_SPLITS["needs"]),
        wants=_budget_category(net_monthly, BUDGET_SPLITS["wants"]),
        savings=_budget_category(net_monthly, BUDGET_SPLITS["savings"]),
    )


def dti_band(front_end_pct, back_end_pct) -> DtiBand:
    if front_end_pct <= DTI_FRONT_END_LIMIT and back_end_pct <= DTI_BACK_END_LIMIT:
        return DtiBand.QUALIFIES
    if back_end_pct <= DTI_BACK_END_MARGINAL_LIMIT:
        return DtiBand.MARGINAL
    return DtiBand.UNLIKELY


def analyze_dti(monthly_income, housing_payment, other_debts) -> DtiAnalysis:
    """Return front-end and back-end debt-to-income ratios with their band."""

    front = housing_payment / monthly_income * 100
    back = (housing_payment + other_debts) / monthly_income * 100
    band = dti_band(front, back)
    return DtiAnalysis(
        monthly_income=monthly_income,
        housing_payment=housing_payment,
        other_debts=other_debts,
        front_end_dti=front,
        back_end_dti=back,
        qualification=band,
        is_affordable=band is DtiBand.QUALIFIES,
        description=DTI_DESCRIPTIONS[band.value],
    )


def amortization_schedule(principal, annual_rate_pct, term_months) -> pd.DataFrame:
    """Month-by-month split of each payment into principal and interest.

    The final row's balance is forced to exactly zero.
    """

    pmt = monthly_payment(principal, annual_rate_pct, term_months)
    r = annual_rate_pct / 100 / 12
    if r < ZERO_RATE_EPSILON:
        r = 0.0
    balance = principal
    cum_interest = 0.0
    cum_principal = 0.0
    rows = []
    for month in range(1, term_months + 1):
        interest = balance * r
        principal_portion = pmt - interest
        balance -= principal_portion
        cum_interest += interest
        cum_principal += principal_portion
        rows.append(
            {
                "month": month,
                "payment": pmt,
                "principal": principal_portion,
                "interest": interest,
                "balance": 0.0 if month == term_months else max(balance, 0.0),
                "cumulative_interest": cum_interest,
                "cumulative_principal": cum_principal,
            }
        )
    return pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)


def payment_approvals(monthly_income) -> List[PaymentApproval]:
    """Maximum monthly payment at each payment-to-income guideline."""

    return [
        PaymentApproval(
            pti_type=name,
            ratio=ratio,
            max_payment=monthly_income * ratio,
            description=description,
        )
        for name, ratio, description in PTI_RATIOS
    ]


def loan_estimates(payment, term_months) -> List[LoanEstimate]:
    """How much a fixed payment buys at each credit tier's typical APR."""

    out = []
    total_cost = payment * term_months
    for tier in CREDIT_TIERS:
        loan = loan_amount_for_payment(payment, tier.typical_apr, term_months)
        out.append(
            LoanEstimate(
                credit_tier=CreditTier(**tier.model_dump()),
                loan_amount=loan,
                total_interest=total_cost - loan,
                total_cost=total_cost,
            )
        )
    return out


def rent_affordability(monthly_income, current_rent=None) -> RentAffordability:
    max_30 = monthly_income * RENT_RATIO
    max_25 = monthly_income * RENT_RATIO_CONSERVATIVE
    if current_rent is None:
        return RentAffordability(monthly_income=monthly_income, max_rent_30=max_30, max_rent_25=max_25)
    return RentAffordability(
        monthly_income=monthly_income,
        max_rent_30=max_30,
        max_rent_25=max_25,
        current_rent=current_rent,
        rent_percent=current_rent / monthly_income * 100,
        is_affordable=current_rent <= max_30,
    )


def max_home_price(
    monthly_income,
    down_payment_pct,
    annual_rate_pct,
    term_years,
    property_tax_rate_pct,
    annual_insurance,
) -> MaxHomePrice:
    """Rough price ceiling from the 28% housing guideline.

    Assumes principal and interest take 80% of the housing budget; the tax and
    insurance inputs are echoed back only as assumptions.
    """

    housing = monthly_income * HOME_HOUSING_RATIO
    pi_budget = housing * HOME_PI_SHARE
    loan = loan_amount_for_payment(pi_budget, annual_rate_pct, term_years * 12)
    return MaxHomePrice(
        monthly_income=monthly_income,
        max_housing_payment=housing,
        estimated_max_price=loan / (1 - down_payment_pct / 100),
        down_payment_percent=down_payment_pct,
        interest_rate=annual_rate_pct,
        term_years=term_years,
    )


def quick_reference(net_monthly, hours_per_week=DEFAULT_HOURS_PER_WEEK) -> QuickReference:
    hours = hours_per_week if hours_per_week > 0 else DEFAULT_HOURS_PER_WEEK
    needs = net_monthly * BUDGET_SPLITS["needs"]["percent"] / 100
    return QuickReference(
        daily_budget=net_monthly / DAYS_PER_MONTH,
        hourly_rate=net_monthly * MONTHS_PER_YEAR / (hours * WEEKS_PER_YEAR),
        emergency_fund_3mo=needs * 3,
        emergency_fund_6mo=needs * 6,
    )


class ReferenceBackend:
    """Strategy object exposing the reference functions to the engine."""

    name = "reference"
    version = "1"

    monthly_payment = staticmethod(monthly_payment)
    loan_amount_for_payment = staticmethod(loan_amount_for_payment)
    project_income = staticmethod(project_income)
    income_from_monthly = staticmethod(income_from_monthly)
    income_from_annual = staticmethod(income_from_annual)
    analyze_mortgage = staticmethod(analyze_mortgage)
    estimate_taxes = staticmethod(estimate_taxes)
    allocate_budget = staticmethod(allocate_budget)
    analyze_dti = staticmethod(analyze_dti)
    amortization_schedule = staticmethod(amortization_schedule)
    payment_approvals = staticmethod(payment_approvals)
    loan_estimates = staticmethod(loan_estimates)
    rent_affordability = staticmethod(rent_affordability)
    max_home_price = staticmethod(max_home_price)
    quick_reference = staticmethod(quick_reference)

"""Accelerated implementation of the calculation contract.

Every kernel is written against numpy arrays so the same code scores one
input or a whole batch in compiled ufunc loops. Results must match
``paycalc.calculators`` to the cent; the engine falls back to the reference
implementation whenever this module cannot be imported or raises.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

import numpy as np
import pandas as pd

from paycalc.calculators import SCHEDULE_COLUMNS
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

_BRACKET_LOWS = np.array([b[0] for b in FEDERAL_BRACKETS])
_BRACKET_WIDTHS = np.array([b[1] - b[0] for b in FEDERAL_BRACKETS])
_BRACKET_RATES = np.array([b[2] for b in FEDERAL_BRACKETS])
_CATEGORY_KEYS = ("needs", "wants", "savings")


def payment_kernel(principal, annual_rate_pct, term_months):
    """Vectorised level payment; zero-rate entries divide evenly."""

    p = np.asarray(principal, dtype=np.float64)
    apr = np.asarray(annual_rate_pct, dtype=np.float64)
    n = np.asarray(term_months, dtype=np.float64)
    r = apr / 100 / 12
    with np.errstate(divide="ignore", invalid="ignore"):
        growth = np.expm1(n * np.log1p(r))
        amortized = p * r * (growth + 1) / growth
    return np.where(r < ZERO_RATE_EPSILON, p / n, amortized)


def present_value_kernel(payment, annual_rate_pct, term_months):
    pmt = np.asarray(payment, dtype=np.float64)
    apr = np.asarray(annual_rate_pct, dtype=np.float64)
    n = np.asarray(term_months, dtype=np.float64)
    r = apr / 100 / 12
    with np.errstate(divide="ignore", invalid="ignore"):
        discounted = pmt * -np.expm1(-n * np.log1p(r)) / r
    return np.where(r < ZERO_RATE_EPSILON, pmt * n, discounted)


def federal_tax_kernel(adjusted_gross):
    """Tax for one or many incomes: clip each income into every bracket at once."""

    taxable = np.maximum(np.asarray(adjusted_gross, dtype=np.float64) - STANDARD_DEDUCTION, 0.0)
    in_bracket = np.clip(taxable[..., None] - _BRACKET_LOWS, 0.0, _BRACKET_WIDTHS)
    return in_bracket @ _BRACKET_RATES


def _scalar(x) -> float:
    return float(np.asarray(x))


class AcceleratedBackend:
    name = "accelerated"
    version = f"numpy-{np.__version__}"

    def monthly_payment(self, principal, annual_rate_pct, term_months):
        return _scalar(payment_kernel(principal, annual_rate_pct, term_months))

    def loan_amount_for_payment(self, payment, annual_rate_pct, term_months):
        return _scalar(present_value_kernel(payment, annual_rate_pct, term_months))

    def _projection(self, days_worked: int, daily: float) -> IncomeProjection:
        rates = np.float64(daily) * np.array([DAYS_PER_WEEK, DAYS_PER_YEAR], dtype=np.float64)
        monthly = np.float64(daily) * DAYS_PER_YEAR / MONTHS_PER_YEAR
        caps = monthly * np.array([INCOME_MAX_AUTO_RATIO, INCOME_MAX_RENT_RATIO])
        return IncomeProjection(
            days_worked=days_worked,
            daily=float(daily),
            weekly=float(rates[0]),
            monthly=float(monthly),
            annual=float(rates[1]),
            max_auto_payment=float(caps[0]),
            max_rent=float(caps[1]),
        )

    def project_income(self, cumulative_income, start_date: date, check_date: date) -> Optional[IncomeProjection]:
        start = np.datetime64(start_date, "D")
        check = np.datetime64(check_date, "D")
        if check < start:
            return None
        effective_start = max(start, check.astype("datetime64[Y]").astype("datetime64[D]"))
        days = int((check - effective_start).astype(np.int64)) + 1
        if days <= 0 or cumulative_income <= 0:
            return None
        return self._projection(days, np.float64(cumulative_income) / days)

    def income_from_monthly(self, monthly_income) -> IncomeProjection:
        return self._projection(0, np.float64(monthly_income) * MONTHS_PER_YEAR / DAYS_PER_YEAR)

    def income_from_annual(self, annual_income) -> IncomeProjection:
        return self._projection(0, np.float64(annual_income) / DAYS_PER_YEAR)

    def analyze_mortgage(
        self,
        home_price,
        down_payment_pct,
        annual_rate_pct,
        term_years,
        property_tax_rate_pct,
        annual_insurance,
    ) -> MortgageResult:
        price = np.float64(home_price)
        down_share = np.float64(down_payment_pct) / 100
        loan = price * (1 - down_share)
        n = term_years * 12
        pi = payment_kernel(loan, annual_rate_pct, n)
        pmi = loan * PMI_ANNUAL_RATE / 12 if down_payment_pct < PMI_DOWN_PAYMENT_THRESHOLD else np.float64(0.0)
        components = np.array(
            [pi, price * (np.float64(property_tax_rate_pct) / 100) / 12, np.float64(annual_insurance) / 12, pmi]
        )
        total_payments = pi * n
        return MortgageResult(
            home_price=float(price),
            down_payment=float(price * down_share),
            down_payment_percent=down_payment_pct,
            loan_amount=float(loan),
            interest_rate=annual_rate_pct,
            term_years=term_years,
            piti=PitiBreakdown(
                principal_interest=float(components[0]),
                property_tax=float(components[1]),
                insurance=float(components[2]),
                pmi=float(components[3]),
                total_monthly=float(components.sum()),
            ),
            total_payments=float(total_payments),
            total_interest=float(np.maximum(total_payments - loan, 0.0)),
        )

    def estimate_taxes(
        self,
        gross_annual,
        retirement_pct,
        annual_health_premium,
        state_rate_pct,
    ) -> TaxBreakdown:
        gross = np.float64(gross_annual)
        retirement = gross * (np.float64(retirement_pct) / 100)
        health = np.float64(annual_health_premium)
        agi = gross - retirement - health
        fed = _scalar(federal_tax_kernel(agi))
        state = np.maximum(agi, 0.0) * (np.float64(state_rate_pct) / 100)
        social_security = np.minimum(gross, SS_WAGE_BASE) * SS_RATE
        medicare = gross * MEDICARE_RATE
        fica_total = social_security + medicare
        total_deductions = fed + state + fica_total + retirement + health
        net = gross - total_deductions
        return TaxBreakdown(
            gross_annual=float(gross),
            federal_tax=fed,
            state_tax=float(state),
            fica_tax=float(fica_total),
            social_security=float(social_security),
            medicare=float(medicare),
            retirement_contribution=float(retirement),
            health_premium=float(health),
            total_deductions=float(total_deductions),
            net_annual=float(net),
            net_monthly=float(net / 12),
            effective_tax_rate=float((gross - net) / gross * 100),
        )

    def allocate_budget(self, net_monthly) -> BudgetAllocation:
        net = np.float64(net_monthly)
        categories = {}
        for key in _CATEGORY_KEYS:
            split = BUDGET_SPLITS[key]
            names = [name for name, _ in split["subcategories"]]
            pcts = np.array([pct for _, pct in split["subcategories"]], dtype=np.float64)
            monthly = net * split["percent"] / 100
            sub_monthly = net * pcts / 100
            categories[key] = BudgetCategory(
                name=split["name"],
                percent=split["percent"],
                monthly=float(monthly),
                weekly=float(monthly / WEEKS_PER_MONTH),
                daily=float(monthly / DAYS_PER_MONTH),
                subcategories=[
                    BudgetSubcategory(name=name, percent=float(pct), monthly=float(amount))
                    for name, pct, amount in zip(names, pcts, sub_monthly)
                ],
            )
        return BudgetAllocation(net_monthly=float(net), **categories)

    def analyze_dti(self, monthly_income, housing_payment, other_debts) -> DtiAnalysis:
        income = np.float64(monthly_income)
        front, back = np.array([housing_payment, housing_payment + other_debts], dtype=np.float64) / income * 100
        if front <= DTI_FRONT_END_LIMIT and back <= DTI_BACK_END_LIMIT:
            band = DtiBand.QUALIFIES
        elif back <= DTI_BACK_END_MARGINAL_LIMIT:
            band = DtiBand.MARGINAL
        else:
            band = DtiBand.UNLIKELY
        return DtiAnalysis(
            monthly_income=float(income),
            housing_payment=housing_payment,
            other_debts=other_debts,
            front_end_dti=float(front),
            back_end_dti=float(back),
            qualification=band,
            is_affordable=band is DtiBand.QUALIFIES,
            description=DTI_DESCRIPTIONS[band.value],
        )

    def amortization_schedule(self, principal, annual_rate_pct, term_months) -> pd.DataFrame:
        """Closed-form schedule: the balance after k payments is computed
        directly instead of carried forward month by month."""

        pmt = _scalar(payment_kernel(principal, annual_rate_pct, term_months))
        months = np.arange(1, term_months + 1)
        r = annual_rate_pct / 100 / 12
        if r >= ZERO_RATE_EPSILON:
            growth = np.expm1(months * np.log1p(r))
            prior_growth = np.expm1((months - 1) * np.log1p(r))
            balance = principal * (growth + 1) - pmt * growth / r
            prior_balance = principal * (prior_growth + 1) - pmt * prior_growth / r
            interest = prior_balance * r
        else:
            balance = principal - pmt * months
            interest = np.zeros(term_months)
        principal_portion = pmt - interest
        balance = np.maximum(balance, 0.0)
        balance[-1] = 0.0
        return pd.DataFrame(
            {
                "month": months,
                "payment": np.full(term_months, pmt),
                "principal": principal_portion,
                "interest": interest,
                "balance": balance,
                "cumulative_interest": np.cumsum(interest),
                "cumulative_principal": np.cumsum(principal_portion),
            },
            columns=SCHEDULE_COLUMNS,
        )

    def payment_approvals(self, monthly_income) -> List[PaymentApproval]:
        ratios = np.array([ratio for _, ratio, _ in PTI_RATIOS], dtype=np.float64)
        payments = np.float64(monthly_income) * ratios
        return [
            PaymentApproval(pti_type=name, ratio=ratio, max_payment=float(amount), description=description)
            for (name, ratio, description), amount in zip(PTI_RATIOS, payments)
        ]

    def loan_estimates(self, payment, term_months) -> List[LoanEstimate]:
        aprs = np.array([tier.typical_apr for tier in CREDIT_TIERS], dtype=np.float64)
        loans = present_value_kernel(payment, aprs, term_months)
        total_cost = np.float64(payment) * term_months
        return [
            LoanEstimate(
                credit_tier=CreditTier(**tier.model_dump()),
                loan_amount=float(loan),
                total_interest=float(total_cost - loan),
                total_cost=float(total_cost),
            )
            for tier, loan in zip(CREDIT_TIERS, loans)
        ]

    def rent_affordability(self, monthly_income, current_rent=None) -> RentAffordability:
        income = np.float64(monthly_income)
        max_30, max_25 = income * np.array([RENT_RATIO, RENT_RATIO_CONSERVATIVE])
        extra = {}
        if current_rent is not None:
            extra = {
                "current_rent": current_rent,
                "rent_percent": float(np.float64(current_rent) / income * 100),
                "is_affordable": bool(current_rent <= max_30),
            }
        return RentAffordability(
            monthly_income=float(income), max_rent_30=float(max_30), max_rent_25=float(max_25), **extra
        )

    def max_home_price(
        self,
        monthly_income,
        down_payment_pct,
        annual_rate_pct,
        term_years,
        property_tax_rate_pct,
        annual_insurance,
    ) -> MaxHomePrice:
        housing = np.float64(monthly_income) * HOME_HOUSING_RATIO
        loan = present_value_kernel(housing * HOME_PI_SHARE, annual_rate_pct, term_years * 12)
        return MaxHomePrice(
            monthly_income=monthly_income,
            max_housing_payment=float(housing),
            estimated_max_price=_scalar(loan / (1 - np.float64(down_payment_pct) / 100)),
            down_payment_percent=down_payment_pct,
            interest_rate=annual_rate_pct,
            term_years=term_years,
        )

    def quick_reference(self, net_monthly, hours_per_week=DEFAULT_HOURS_PER_WEEK) -> QuickReference:
        net = np.float64(net_monthly)
        hours = hours_per_week if hours_per_week > 0 else DEFAULT_HOURS_PER_WEEK
        needs = net * BUDGET_SPLITS["needs"]["percent"] / 100
        funds = needs * np.array([3.0, 6.0])
        return QuickReference(
            daily_budget=float(net / DAYS_PER_MONTH),
            hourly_rate=float(net * MONTHS_PER_YEAR / (hours * WEEKS_PER_YEAR)),
            emergency_fund_3mo=float(funds[0]),
            emergency_fund_6mo=float(funds[1]),
        )

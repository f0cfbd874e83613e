from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

# Money amounts are plain floats; rounding happens only in ``paycalc.utils``.
MoneyAmount = float


class ValueRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class IncomeProjection(ValueRecord):
    days_worked: int = 0
    daily: MoneyAmount = 0.0
    weekly: MoneyAmount = 0.0
    monthly: MoneyAmount = 0.0
    annual: MoneyAmount = 0.0
    max_auto_payment: MoneyAmount = 0.0
    max_rent: MoneyAmount = 0.0


class PitiBreakdown(ValueRecord):
    principal_interest: MoneyAmount = 0.0
    property_tax: MoneyAmount = 0.0
    insurance: MoneyAmount = 0.0
    pmi: MoneyAmount = 0.0
    total_monthly: MoneyAmount = 0.0


class MortgageResult(ValueRecord):
    home_price: MoneyAmount
    down_payment: MoneyAmount
    down_payment_percent: float
    loan_amount: MoneyAmount
    interest_rate: float
    term_years: int
    piti: PitiBreakdown
    total_payments: MoneyAmount
    total_interest: MoneyAmount


class TaxBreakdown(ValueRecord):
    gross_annual: MoneyAmount
    federal_tax: MoneyAmount
    state_tax: MoneyAmount
    fica_tax: MoneyAmount
    social_security: MoneyAmount
    medicare: MoneyAmount
    retirement_contribution: MoneyAmount
    health_premium: MoneyAmount
    total_deductions: MoneyAmount
    net_annual: MoneyAmount
    net_monthly: MoneyAmount
    effective_tax_rate: float


class BudgetSubcategory(ValueRecord):
    name: str
    percent: float
    monthly: MoneyAmount


class BudgetCategory(ValueRecord):
    name: str
    percent: float
    monthly: MoneyAmount
    weekly: MoneyAmount
    daily: MoneyAmount
    subcategories: List[BudgetSubcategory]


class BudgetAllocation(ValueRecord):
    net_monthly: MoneyAmount
    needs: BudgetCategory
    wants: BudgetCategory
    savings: BudgetCategory

    def categories(self) -> List[BudgetCategory]:
        return [self.needs, self.wants, self.savings]


class DtiBand(str, Enum):
    QUALIFIES = "qualifies"
    MARGINAL = "marginal"
    UNLIKELY = "unlikely"


class DtiAnalysis(ValueRecord):
    monthly_income: MoneyAmount
    housing_payment: MoneyAmount
    other_debts: MoneyAmount
    front_end_dti: float
    back_end_dti: float
    qualification: DtiBand
    is_affordable: bool
    description: str


class CreditTier(ValueRecord):
    id: str
    label: str
    score_range: str
    apr_low: float
    apr_high: float
    typical_apr: float


class PaymentApproval(ValueRecord):
    pti_type: str
    ratio: float
    max_payment: MoneyAmount
    description: str


class LoanEstimate(ValueRecord):
    credit_tier: CreditTier
    loan_amount: MoneyAmount
    total_interest: MoneyAmount
    total_cost: MoneyAmount


class AutoAffordability(ValueRecord):
    monthly_income: MoneyAmount
    standard_payment: MoneyAmount
    payment_approvals: List[PaymentApproval]
    loan_estimates: List[LoanEstimate]


class RentAffordability(ValueRecord):
    monthly_income: MoneyAmount
    max_rent_30: MoneyAmount
    max_rent_25: MoneyAmount
    current_rent: Optional[MoneyAmount] = None
    rent_percent: Optional[float] = None
    is_affordable: Optional[bool] = None


class MaxHomePrice(ValueRecord):
    monthly_income: MoneyAmount
    max_housing_payment: MoneyAmount
    estimated_max_price: MoneyAmount
    down_payment_percent: float
    interest_rate: float
    term_years: int


class QuickReference(ValueRecord):
    daily_budget: MoneyAmount
    hourly_rate: MoneyAmount
    emergency_fund_3mo: MoneyAmount
    emergency_fund_6mo: MoneyAmount


class Verdict(str, Enum):
    COMFORTABLE = "comfortable"
    TIGHT = "tight"
    RISKY = "risky"


class ImpactTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AffordabilityVerdict(ValueRecord):
    verdict: Verdict
    explanation: str
    # Which check decided the verdict: "payment_ratio", "dti", "margin" or None
    trigger: Optional[str] = None
    payment_to_income: float
    debt_to_income: float
    monthly_margin: MoneyAmount


class StressDriver(ValueRecord):
    id: str
    label: str
    impact: ImpactTier
    delta: float
    explanation: str


class ScenarioResult(ValueRecord):
    id: str
    monthly_payment: MoneyAmount
    verdict: Verdict
    delta: float
    explanation: str


class ScenarioSet(ValueRecord):
    income_drop: ScenarioResult
    higher_insurance: ScenarioResult
    longer_term: ScenarioResult


class VerdictResult(ValueRecord):
    credit_tier: CreditTier
    interest_rate: float
    loan_amount: MoneyAmount
    monthly_payment: MoneyAmount
    total_interest: MoneyAmount
    total_cost: MoneyAmount
    assessment: AffordabilityVerdict
    stress_drivers: List[StressDriver]
    scenarios: ScenarioSet

    @property
    def verdict(self) -> Verdict:
        return self.assessment.verdict

from datetime import date

import pytest

from paycalc import calculators
from paycalc.models import DtiBand
from paycalc.presets import SS_RATE, SS_WAGE_BASE


def test_zero_interest_is_plain_division():
    for principal, term in [(24500, 60), (1, 1), (999999.99, 360), (1234.56, 7)]:
        assert calculators.monthly_payment(principal, 0, term) == principal / term


def test_payment_for_typical_auto_loan():
    pmt = calculators.monthly_payment(24500, 7.99, 60)
    assert abs(pmt - 497) < 1


def test_amortization_inverse_roundtrip():
    for pmt, rate, term in [(497.0, 7.99, 60), (2240.0, 6.5, 360), (150.0, 0.0, 24), (800.0, 24.9, 84)]:
        principal = calculators.loan_amount_for_payment(pmt, rate, term)
        assert calculators.monthly_payment(principal, rate, term) == pytest.approx(pmt, rel=1e-12)


def test_tiny_rate_matches_zero_rate_limit():
    pmt = calculators.monthly_payment(12000, 1e-9, 48)
    assert pmt == pytest.approx(12000 / 48, rel=1e-9)


@pytest.mark.parametrize("rate", [5e-324, 1e-310, 1e-200, 1e-8])
def test_vanishing_rates_do_not_divide_by_zero(rate):
    assert calculators.monthly_payment(12000, rate, 48) == 250
    assert calculators.loan_amount_for_payment(250, rate, 48) == 12000
    assert (calculators.amortization_schedule(1200, rate, 12)["interest"] == 0).all()


def test_project_income_end_to_end():
    proj = calculators.project_income(45000, date(2026, 1, 1), date(2026, 6, 15))
    assert proj.days_worked == 166
    assert proj.daily == pytest.approx(271.08, abs=0.01)
    assert abs(proj.annual - 98944) < 5


def test_project_income_rates_derive_from_daily():
    proj = calculators.project_income(12345.67, date(2026, 2, 3), date(2026, 9, 30))
    assert proj.weekly == proj.daily * 7
    assert proj.annual == proj.daily * 365
    assert proj.monthly == proj.daily * 365 / 12
    assert proj.max_auto_payment == pytest.approx(proj.monthly * 0.12)
    assert proj.max_rent == pytest.approx(proj.monthly * 0.30)


def test_project_income_scales_linearly():
    start, check = date(2026, 1, 1), date(2026, 6, 15)
    base = calculators.project_income(30000, start, check)
    doubled = calculators.project_income(60000, start, check)
    assert doubled.annual == pytest.approx(2 * base.annual)
    assert doubled.daily == pytest.approx(2 * base.daily)


def test_project_income_ignores_prior_year():
    proj = calculators.project_income(1000, date(2025, 6, 1), date(2026, 1, 10))
    assert proj.days_worked == 10
    assert proj.daily == 100


def test_project_income_not_computable_states():
    assert calculators.project_income(1000, date(2026, 5, 2), date(2026, 5, 1)) is None
    assert calculators.project_income(0, date(2026, 1, 1), date(2026, 5, 1)) is None
    assert calculators.project_income(-50, date(2026, 1, 1), date(2026, 5, 1)) is None


def test_project_income_single_day():
    proj = calculators.project_income(200, date(2026, 3, 4), date(2026, 3, 4))
    assert proj.days_worked == 1
    assert proj.daily == 200


def test_manual_income_projections():
    monthly = calculators.income_from_monthly(5000)
    assert monthly.days_worked == 0
    assert monthly.annual == pytest.approx(60000)
    assert monthly.monthly == pytest.approx(5000)
    annual = calculators.income_from_annual(73000)
    assert annual.daily == pytest.approx(200)
    assert annual.weekly == pytest.approx(1400)


def test_pmi_below_twenty_percent_down():
    res = calculators.analyze_mortgage(300000, 10, 6.5, 30, 1.2, 1500)
    assert res.piti.pmi > 0
    assert res.piti.pmi == pytest.approx(270000 * 0.005 / 12)
    assert res.loan_amount == pytest.approx(270000)


def test_no_pmi_at_twenty_percent_down():
    res = calculators.analyze_mortgage(300000, 20, 6.5, 30, 1.2, 1500)
    assert res.piti.pmi == 0
    assert res.down_payment == pytest.approx(60000)


def test_piti_total_is_sum_of_components():
    piti = calculators.analyze_mortgage(425000, 5, 7.1, 15, 2.1, 2400).piti
    assert piti.total_monthly == piti.principal_interest + piti.property_tax + piti.insurance + piti.pmi


def test_mortgage_interest_non_negative():
    res = calculators.analyze_mortgage(250000, 3.5, 6.0, 30, 1.0, 1200)
    assert res.total_interest >= 0
    assert res.total_payments == pytest.approx(res.piti.principal_interest * 360)
    zero = calculators.analyze_mortgage(250000, 20, 0, 30, 1.0, 1200)
    assert zero.total_interest == pytest.approx(0, abs=1e-6)


def test_federal_tax_single_filer_sample():
    breakdown = calculators.estimate_taxes(60000, 0, 0, 0)
    # 45,400 taxable: 10% of 11,600 plus 12% of 33,800
    assert breakdown.federal_tax == pytest.approx(5216)
    assert breakdown.fica_tax == pytest.approx(4590)
    assert breakdown.net_annual == pytest.approx(50194)
    assert breakdown.net_monthly == pytest.approx(50194 / 12)


def test_federal_tax_is_monotonic():
    previous = -1.0
    for gross in range(0, 800001, 2500):
        tax = calculators.federal_tax(gross)
        assert tax >= previous
        previous = tax


def test_social_security_cap():
    for gross in [50000, 168600, 250000, 1000000]:
        breakdown = calculators.estimate_taxes(gross, 5, 2400, 4)
        assert breakdown.social_security <= SS_WAGE_BASE * SS_RATE + 1e-9
        assert breakdown.fica_tax == breakdown.social_security + breakdown.medicare


def test_net_below_gross_and_sane_rate():
    for gross in [20000, 55000, 120000, 400000]:
        breakdown = calculators.estimate_taxes(gross, 6, 3000, 5)
        assert breakdown.net_annual < breakdown.gross_annual
        assert 0 < breakdown.effective_tax_rate < 50
        assert breakdown.net_annual == pytest.approx(breakdown.gross_annual - breakdown.total_deductions)


def test_pretax_deductions_reduce_federal_tax():
    plain = calculators.estimate_taxes(90000, 0, 0, 5)
    with_401k = calculators.estimate_taxes(90000, 10, 0, 5)
    assert with_401k.federal_tax < plain.federal_tax
    assert with_401k.state_tax == pytest.approx(81000 * 0.05)
    assert with_401k.fica_tax == plain.fica_tax


def test_budget_sums():
    budget = calculators.allocate_budget(5000)
    assert budget.needs.monthly + budget.wants.monthly + budget.savings.monthly == pytest.approx(5000)
    for category in budget.categories():
        assert sum(s.monthly for s in category.subcategories) == pytest.approx(category.monthly)
    assert [c.percent for c in budget.categories()] == [50, 30, 20]
    assert budget.needs.weekly == pytest.approx(2500 / 4.33)
    assert budget.needs.daily == pytest.approx(2500 / 30)


def test_dti_end_to_end_marginal():
    res = calculators.analyze_dti(6000, 1800, 500)
    assert res.front_end_dti == pytest.approx(30)
    assert res.back_end_dti == pytest.approx(38.333, abs=0.001)
    assert res.qualification is DtiBand.MARGINAL
    assert res.is_affordable is False


@pytest.mark.parametrize(
    "front,back,band",
    [
        (28, 36, DtiBand.QUALIFIES),
        (20, 36.01, DtiBand.MARGINAL),
        (28.01, 30, DtiBand.MARGINAL),
        (30, 43, DtiBand.MARGINAL),
        (30, 43.01, DtiBand.UNLIKELY),
    ],
)
def test_dti_band_cut_points(front, back, band):
    assert calculators.dti_band(front, back) is band


def test_amortization_schedule_shape():
    df = calculators.amortization_schedule(24500, 7.99, 60)
    assert list(df.columns) == calculators.SCHEDULE_COLUMNS
    assert len(df) == 60
    assert df["balance"].iloc[-1] == 0
    assert df["principal"].sum() == pytest.approx(24500, abs=0.01)
    assert df["cumulative_interest"].iloc[-1] == pytest.approx(df["payment"].sum() - 24500, abs=0.01)
    assert (df["balance"] >= 0).all()


def test_zero_rate_schedule_has_no_interest():
    df = calculators.amortization_schedule(1200, 0, 12)
    assert (df["interest"] == 0).all()
    assert df["principal"].iloc[0] == 100


def test_payment_approvals():
    approvals = calculators.payment_approvals(5000)
    assert [a.pti_type for a in approvals] == ["Conservative", "Standard", "Aggressive"]
    assert [a.max_payment for a in approvals] == pytest.approx([400, 600, 750])


def test_loan_estimates_per_tier():
    estimates = calculators.loan_estimates(500, 60)
    assert [e.credit_tier.id for e in estimates] == ["excellent", "good", "fair", "poor", "rebuilding"]
    loans = [e.loan_amount for e in estimates]
    assert loans == sorted(loans, reverse=True)
    for e in estimates:
        assert e.total_cost == 30000
        assert e.total_interest == pytest.approx(e.total_cost - e.loan_amount)


def test_rent_affordability():
    res = calculators.rent_affordability(5000, 1600)
    assert res.max_rent_30 == pytest.approx(1500)
    assert res.max_rent_25 == pytest.approx(1250)
    assert res.rent_percent == pytest.approx(32)
    assert res.is_affordable is False
    bare = calculators.rent_affordability(5000)
    assert bare.current_rent is None and bare.is_affordable is None


def test_max_home_price_roundtrip():
    res = calculators.max_home_price(10000, 20, 6.5, 30, 1.2, 1500)
    assert res.max_housing_payment == pytest.approx(2800)
    pi = calculators.monthly_payment(res.estimated_max_price * 0.8, 6.5, 360)
    assert pi == pytest.approx(2240)


def test_quick_reference():
    ref = calculators.quick_reference(4000, 40)
    assert ref.daily_budget == pytest.approx(133.33, abs=0.01)
    assert ref.hourly_rate == pytest.approx(48000 / 2080)
    assert ref.emergency_fund_3mo == pytest.approx(6000)
    assert ref.emergency_fund_6mo == pytest.approx(12000)
    assert calculators.quick_reference(4000, 0) == ref

import threading
import time

import pytest
from structlog.testing import capture_logs

import paycalc
from paycalc.accelerated import AcceleratedBackend
from paycalc.calculators import ReferenceBackend
from paycalc.config import Settings
from paycalc.engine import CalculationEngine, EngineMode, LoadState, load_backend, reset_engine
from paycalc.exceptions import AcceleratedBackendError, InvalidInputError


class ExplodingBackend(ReferenceBackend):
    name = "exploding"

    @staticmethod
    def monthly_payment(principal, annual_rate_pct, term_months):
        raise RuntimeError("kernel bug")


class CountingLoader:
    def __init__(self, backend=None, error=None, delay=0.0):
        self.backend = backend
        self.error = error
        self.delay = delay
        self.calls = 0

    def __call__(self, path):
        self.calls += 1
        time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.backend


def _events(logs):
    return [entry["event"] for entry in logs]


def test_default_settings_load_accelerated_backend():
    engine = CalculationEngine(Settings())
    assert engine.state is LoadState.NOT_ATTEMPTED
    with capture_logs() as logs:
        assert engine.mode is EngineMode.ACCELERATED
    assert engine.state is LoadState.AVAILABLE
    assert _events(logs) == ["engine.accelerated.loaded"]
    assert logs[0]["backend"] == "accelerated"


def test_disabled_flag_never_attempts_load():
    loader = CountingLoader(backend=AcceleratedBackend())
    engine = CalculationEngine(Settings(accelerated_enabled=False), loader=loader)
    with capture_logs() as logs:
        assert engine.monthly_payment(1200, 0, 12) == 100
    assert loader.calls == 0
    assert engine.state is LoadState.UNAVAILABLE
    assert engine.mode is EngineMode.REFERENCE
    assert _events(logs) == ["engine.accelerated.disabled"]
    assert engine.stats["reference_calls"] == 1


def test_missing_module_falls_back_to_reference():
    engine = CalculationEngine(Settings(accelerated_backend="paycalc.no_such_backend:Backend"))
    with capture_logs() as logs:
        pmt = engine.monthly_payment(24500, 7.99, 60)
    assert pmt == ReferenceBackend.monthly_payment(24500, 7.99, 60)
    assert engine.state is LoadState.UNAVAILABLE
    assert logs[0]["event"] == "engine.accelerated.load_failed"
    assert logs[0]["log_level"] == "warning"
    assert "no_such_backend" in logs[0]["error"]


def test_load_failure_is_permanent():
    loader = CountingLoader(error=AcceleratedBackendError("broken", "boom"))
    engine = CalculationEngine(Settings(), loader=loader)
    for _ in range(3):
        engine.allocate_budget(4000)
    assert loader.calls == 1
    assert engine.is_accelerated_available is False


def test_load_backend_errors():
    with pytest.raises(AcceleratedBackendError):
        load_backend("paycalc.accelerated")
    with pytest.raises(AcceleratedBackendError):
        load_backend("paycalc.accelerated:NoSuchFactory")
    assert isinstance(load_backend("paycalc.accelerated:AcceleratedBackend"), AcceleratedBackend)


def test_call_failure_falls_back_for_that_call_only():
    engine = CalculationEngine(Settings(), loader=CountingLoader(backend=ExplodingBackend()))
    with capture_logs() as logs:
        pmt = engine.monthly_payment(24500, 7.99, 60)
        budget = engine.allocate_budget(5000)
    assert pmt == ReferenceBackend.monthly_payment(24500, 7.99, 60)
    assert budget.needs.monthly == pytest.approx(2500)
    assert engine.state is LoadState.AVAILABLE
    assert engine.mode is EngineMode.ACCELERATED
    assert engine.stats["fallback_calls"] == 1
    assert engine.stats["accelerated_calls"] == 1
    failures = [entry for entry in logs if entry["event"] == "engine.accelerated.call_failed"]
    assert len(failures) == 1
    assert failures[0]["operation"] == "monthly_payment"
    assert failures[0]["parity_risk"] is True
    assert failures[0]["log_level"] == "error"


def test_failing_backend_inside_verdict():
    engine = CalculationEngine(Settings(), loader=CountingLoader(backend=ExplodingBackend()))
    reference = CalculationEngine(Settings(accelerated_enabled=False))
    args = (30000, 3000, "fair", 72, 6000, 800)
    assert engine.calculate_affordability(*args) == reference.calculate_affordability(*args)
    assert engine.stats["fallback_calls"] > 1


def test_concurrent_first_calls_load_once():
    loader = CountingLoader(backend=AcceleratedBackend(), delay=0.05)
    engine = CalculationEngine(Settings(), loader=loader)
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(engine.monthly_payment(24500, 7.99, 60))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert loader.calls == 1
    assert len(results) == 8
    assert len(set(results)) == 1
    assert engine.state is LoadState.AVAILABLE


def test_module_level_functions_use_shared_engine():
    reset_engine(CalculationEngine(Settings(accelerated_enabled=False)))
    assert paycalc.get_engine_mode() == "reference"
    assert paycalc.is_accelerated_runtime_available() is False
    assert paycalc.monthly_payment(24500, 0, 49) == 500
    reset_engine(CalculationEngine(Settings()))
    assert paycalc.get_engine_mode() == "accelerated"
    assert paycalc.is_accelerated_runtime_available() is True


def test_public_surface_end_to_end():
    assert abs(paycalc.monthly_payment(24500, 7.99, 60) - 497) < 1
    proj = paycalc.project_income(45000, "2026-01-01", "2026-06-15")
    assert proj.daily == pytest.approx(271.08, abs=0.01)
    assert paycalc.analyze_mortgage(300000, 10, 6.5, 30).piti.pmi > 0
    assert paycalc.analyze_mortgage(300000, 20, 6.5, 30).piti.pmi == 0
    dti = paycalc.analyze_dti(6000, 1800, 500)
    assert dti.qualification.value == "marginal"
    assert paycalc.estimate_taxes(60000).federal_tax == pytest.approx(5216)
    assert len(paycalc.loan_estimates(450)) == 5
    assert len(paycalc.amortization_schedule(24500, 7.99, 60)) == 60
    assert paycalc.calculate_affordability(25000, 5000, "good", 60, 7000).verdict.value in {
        "comfortable",
        "tight",
        "risky",
    }


@pytest.mark.parametrize("enabled", [True, False])
def test_vanishing_rate_is_interest_free(enabled):
    engine = CalculationEngine(Settings(accelerated_enabled=enabled))
    assert engine.monthly_payment(12000, 5e-324, 48) == 250
    assert engine.loan_amount_for_payment(250, 5e-324, 48) == 12000
    schedule = engine.amortization_schedule(1200, 5e-324, 12)
    assert (schedule["interest"] == 0).all()
    assert engine.stats["fallback_calls"] == 0


def test_auto_affordability_prices_rounded_standard_payment():
    res = paycalc.auto_affordability(5004.2, 60)
    assert res.standard_payment == 601
    assert res.payment_approvals == paycalc.payment_approvals(5004.2)
    assert res.loan_estimates == paycalc.loan_estimates(601, 60)
    assert [e.total_cost for e in res.loan_estimates] == [601 * 60] * 5
    with pytest.raises(InvalidInputError):
        paycalc.auto_affordability(0)

import pytest

from paycalc.engine import reset_engine


@pytest.fixture(autouse=True)
def fresh_engine():
    reset_engine()
    yield
    reset_engine()

from __future__ import annotations

import pytest

from emi_calc.data_models import EducationParameters, LoanType
from emi_calc.engine import compute_schedule
from emi_calc_web.app import create_app
from tests.utils import FakeAdvisor


@pytest.fixture(autouse=True)
def _no_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("EMI_CALC_AI_MAX_RETRIES", "0")


@pytest.fixture
def standard_result():
    return compute_schedule(100_000, 7.5, 10)


@pytest.fixture
def education_result():
    params = EducationParameters(course_duration_years=4, apply_moratorium=True, apply_subsidy=False)
    return compute_schedule(500_000, 8, 10, LoanType.EDUCATION, params)


@pytest.fixture
def fake_advisor():
    return FakeAdvisor()


@pytest.fixture
def app(fake_advisor):
    return create_app({"TESTING": True, "LEDGER_DATABASE_URL": "sqlite://"}, advisor=fake_advisor)


@pytest.fixture
def client(app):
    return app.test_client()

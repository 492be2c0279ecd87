import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from pathlib import Path

import pytest

from common.rule_matching.catalog import load_rule_file
from common.rule_matching.context import EvaluationContext, build_context
from common.rule_matching.models import BusinessProfile, RuleRecord


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def catalog_rules() -> list[RuleRecord]:
    return load_rule_file(FIXTURES_DIR / "rules.json")


@pytest.fixture
def make_profile():
    def _make(**fields) -> BusinessProfile:
        data = {
            "businessName": "Acme",
            "industry": "Retail",
            "state": "CA",
            "city": "Los Angeles",
            "employeesTotal": 3,
        }
        data.update(fields)
        return BusinessProfile.model_validate(data)

    return _make


@pytest.fixture
def make_ctx(make_profile):
    def _make(**fields) -> EvaluationContext:
        return build_context(make_profile(**fields))

    return _make


@pytest.fixture
def make_rule():
    def _make(
        rule_id: str = "rule-1",
        *,
        title: str | None = None,
        level: str = "federal",
        state: str | None = None,
        city: str | None = None,
        conditions: dict | None = None,
        **extra,
    ) -> RuleRecord:
        return RuleRecord.model_validate(
            {
                "id": rule_id,
                "title": title or rule_id,
                "level": level,
                "jurisdiction": {"state": state, "city": city},
                "conditions": conditions,
                **extra,
            }
        )

    return _make

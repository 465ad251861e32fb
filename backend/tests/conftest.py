import os
import sys
from typing import Any

import pytest

# Ensure the backend root (containing the `servicedesk` package) is importable
_TESTS_DIR = os.path.dirname(__file__)
_BACKEND_ROOT = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _BACKEND_ROOT not in sys.path:
    sys.path.insert(0, _BACKEND_ROOT)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: Fast unit tests with fakes only")


@pytest.fixture
def fake_slack():  # type: ignore[no-untyped-def]
    from tests.fakes import FakeSlack

    return FakeSlack()


@pytest.fixture
def fake_jira():  # type: ignore[no-untyped-def]
    from tests.fakes import FakeJira

    return FakeJira()


@pytest.fixture
def make_ctx(fake_slack, fake_jira):  # type: ignore[no-untyped-def]
    from servicedesk.core.app_context import AppContext
    from tests.fakes import build_settings

    def _make(**overrides: Any) -> AppContext:
        return AppContext(settings=build_settings(**overrides), slack=fake_slack, jira=fake_jira)

    return _make

import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mapparser.api.models import ResolvedRouteInfo  # noqa: E402


class StubResolver:
    """Resolver returning canned results per mode and recording calls."""

    def __init__(self, fast=None, browser=None):
        self.results = {"fast": fast, "browser": browser}
        self.calls = []

    def resolve(self, url, mode="fast"):
        self.calls.append((url, mode))
        result = self.results[mode]
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(url)
        return result


@pytest.fixture
def stub_resolver():
    return StubResolver


@pytest.fixture
def resolved():
    def _make(url, **kwargs):
        return ResolvedRouteInfo(original_url=kwargs.pop("original_url", url), resolved_url=url, **kwargs)
    return _make

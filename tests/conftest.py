import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def clear_throttle_counters():
    """Start every test with fresh per-client throttle counters."""
    cache.clear()
    yield
    cache.clear()

"""Unit-specific fixtures (no network; HTTP is mocked with respx where needed)."""

from __future__ import annotations

import pytest
from helpers import CountingLoader, FakeClock

from wowdev.cache import SingleFlightTTLCache


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(1000.0)


@pytest.fixture()
def loader() -> CountingLoader:
    return CountingLoader()


@pytest.fixture()
def cache(loader: CountingLoader, clock: FakeClock) -> SingleFlightTTLCache[str]:
    """Small cache with a 60 second TTL on a manual clock."""
    return SingleFlightTTLCache(loader, capacity=3, ttl_seconds=60, timer=clock, name="test")

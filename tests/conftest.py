"""Shared fixtures."""

from __future__ import annotations

import pytest

from wowdev.config import Settings


@pytest.fixture()
def settings() -> Settings:
    """Settings with near-zero retry waits so failing fetches end quickly."""
    return Settings(
        fetcher={"request_timeout_seconds": 0.5, "retry_wait_seconds": 0.01},
        datasets={"retry_interval_seconds": 0.05},
    )

"""Integration test fixtures.

Provides a fully wired AppState whose HTTP traffic goes to a respx router
serving sample GlobalStrings, GlobalAPI and wiki export documents.
"""

from __future__ import annotations

import os

import httpx
import pytest
import respx
from helpers import (
    GLOBAL_API_LUA,
    RESOURCES_BASE,
    WIKI_EXPORT_URL,
    serve_global_strings,
    wiki_export_xml,
)

from wowdev.config import Settings
from wowdev.state import AppState


@pytest.fixture()
def router() -> respx.MockRouter:
    with respx.mock(assert_all_called=False) as router:
        router.get(url__regex=r"/Resources/GlobalStrings/\w+\.lua$", name="strings").mock(
            side_effect=serve_global_strings
        )
        router.get(url__regex=r"/Resources/GlobalAPI\.lua$", name="api").mock(
            return_value=httpx.Response(200, text=GLOBAL_API_LUA)
        )
        router.post(WIKI_EXPORT_URL, name="wiki").mock(
            return_value=httpx.Response(200, text=wiki_export_xml("API GetItemInfo"))
        )
        yield router


@pytest.fixture()
async def app_state(settings: Settings, router: respx.MockRouter) -> AppState:
    """AppState without the background loop; datasets populate on first read."""
    assert settings.sources.resources_base_url == RESOURCES_BASE
    async with httpx.AsyncClient() as client:
        state = AppState.build(settings, client)
        try:
            yield state
        finally:
            await state.aclose()


@pytest.fixture()
def subprocess_env() -> dict[str, str]:
    """Environment for server subprocesses; dataset sources point at a closed port."""
    env = os.environ.copy()
    env["WOWDEV__SOURCES__RESOURCES_BASE_URL"] = "http://127.0.0.1:9"
    env["WOWDEV__SOURCES__WIKI_BASE_URL"] = "http://127.0.0.1:9"
    env["WOWDEV__FETCHER__REQUEST_TIMEOUT_SECONDS"] = "1"
    env["WOWDEV__DATASETS__RETRY_INTERVAL_SECONDS"] = "60"
    return env

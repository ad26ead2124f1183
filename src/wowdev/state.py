"""Process-wide application state shared by every tool call."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
import structlog

from wowdev.config import Settings
from wowdev.fetcher import Fetcher, build_http_client
from wowdev.services import GlobalApiService, GlobalStringsService, WikiService

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    fetcher: Fetcher
    global_strings: GlobalStringsService
    global_apis: GlobalApiService
    wiki: WikiService
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def build(cls, settings: Settings, client: httpx.AsyncClient) -> AppState:
        fetcher = Fetcher(client, settings.fetcher)
        return cls(
            settings=settings,
            fetcher=fetcher,
            global_strings=GlobalStringsService.from_settings(fetcher, settings),
            global_apis=GlobalApiService.from_settings(fetcher, settings),
            wiki=WikiService(fetcher, settings),
            http_client=client,
        )

    def start(self) -> None:
        self.global_strings.dataset.start()
        self.global_apis.dataset.start()

    async def aclose(self) -> None:
        # Refresh tasks stop before the client they fetch through closes.
        await self.global_strings.dataset.aclose()
        await self.global_apis.dataset.aclose()


@asynccontextmanager
async def open_app_state(settings: Settings) -> AsyncIterator[AppState]:
    """Build the state, start background refresh, and tear both down on exit."""
    async with build_http_client(settings.fetcher) as client:
        state = AppState.build(settings, client)
        state.start()
        log.info("app_state_ready")
        try:
            yield state
        finally:
            await state.aclose()
            log.info("app_state_closed")

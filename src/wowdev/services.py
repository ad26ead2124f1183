"""Domain services: global strings, global API names and wiki pages."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import partial
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import structlog

from wowdev.cache import SingleFlightTTLCache
from wowdev.config import SearchSettings, Settings
from wowdev.datasets import RefreshableDataset
from wowdev.errors import ErrorCode, WowDevError
from wowdev.ingestion import load_global_api_names, load_global_strings
from wowdev.models.cache import WikiPage
from wowdev.models.datasets import (
    DEFAULT_FLAVOR,
    DEFAULT_LOCALE,
    SUPPORTED_FLAVORS,
    SUPPORTED_LOCALES,
    GameFlavor,
    Locale,
    SearchTarget,
    Translations,
)
from wowdev.search import identifier_target, multi_search, normalize_identifier, rank

if TYPE_CHECKING:
    from wowdev.fetcher import Fetcher

log = structlog.get_logger()

_PAGE_RE = re.compile(r"(<page>.*</page>)", re.DOTALL)


def check_locale(locale: str) -> Locale:
    if locale not in SUPPORTED_LOCALES:
        raise WowDevError(
            ErrorCode.INVALID_KEY,
            f"Unknown locale {locale!r}; expected one of {list(SUPPORTED_LOCALES)}",
            recoverable=False,
        )
    return locale  # type: ignore[return-value]


class _CorpusMemo:
    """Search corpora keyed by tag, rebuilt when the dataset generation moves."""

    def __init__(self) -> None:
        self._corpora: dict[str, tuple[int, list[SearchTarget]]] = {}

    def get(
        self, tag: str, generation: int, build: Callable[[], Iterable[SearchTarget]]
    ) -> list[SearchTarget]:
        memo = self._corpora.get(tag)
        if memo is not None and memo[0] == generation:
            return memo[1]
        corpus = list(build())
        self._corpora[tag] = (generation, corpus)
        return corpus


class GlobalStringsService:
    """Localized global strings per game flavor."""

    def __init__(
        self,
        dataset: RefreshableDataset[GameFlavor, Translations],
        settings: SearchSettings | None = None,
    ) -> None:
        self.dataset = dataset
        self._settings = settings or SearchSettings()
        self._corpora = _CorpusMemo()

    @classmethod
    def from_settings(cls, fetcher: Fetcher, settings: Settings) -> GlobalStringsService:
        dataset: RefreshableDataset[GameFlavor, Translations] = RefreshableDataset(
            "global_strings",
            SUPPORTED_FLAVORS,
            partial(load_global_strings, fetcher, settings.sources.resources_base_url),
            interval_seconds=settings.datasets.global_strings_refresh_hours * 3600,
            retry_interval_seconds=settings.datasets.retry_interval_seconds,
        )
        return cls(dataset, settings.search)

    async def list_keys(self, flavor: str = DEFAULT_FLAVOR) -> list[str]:
        return list(await self.dataset.get(flavor))

    async def get_values(self, flavor: str, keys: Iterable[str]) -> Translations:
        """Translations for ``keys``; keys that do not exist are left out."""
        translations = await self.dataset.get(flavor)
        return {key: dict(translations[key]) for key in keys if key in translations}

    async def search(
        self,
        query: str,
        threshold: float | None = None,
        limit: int | None = None,
        flavor: str = DEFAULT_FLAVOR,
        locale: str = DEFAULT_LOCALE,
    ) -> Translations:
        """Keys whose ``locale`` text is similar to ``query``, best match first."""
        locale = check_locale(locale)
        threshold = self._settings.strings_threshold if threshold is None else threshold
        limit = self._settings.strings_limit if limit is None else limit

        translations = await self.dataset.get(flavor)

        def _targets() -> Iterable[SearchTarget]:
            for key, by_locale in translations.items():
                text = by_locale.get(locale)
                if text:
                    yield SearchTarget(key=key, text=text.lower(), raw=text, tag=locale)

        corpus = self._corpora.get(f"{flavor}:{locale}", self.dataset.state.generation, _targets)
        keys = rank(query.lower(), corpus, threshold, limit)
        log.debug("global_strings_search", query=query, flavor=flavor, results=len(keys))
        return {key: {locale: translations[key][locale]} for key in keys}


class GlobalApiService:
    """Global Lua API function names per game flavor."""

    def __init__(
        self,
        dataset: RefreshableDataset[GameFlavor, tuple[str, ...]],
        settings: SearchSettings | None = None,
    ) -> None:
        self.dataset = dataset
        self._settings = settings or SearchSettings()
        self._corpora = _CorpusMemo()

    @classmethod
    def from_settings(cls, fetcher: Fetcher, settings: Settings) -> GlobalApiService:
        dataset: RefreshableDataset[GameFlavor, tuple[str, ...]] = RefreshableDataset(
            "global_api",
            SUPPORTED_FLAVORS,
            partial(load_global_api_names, fetcher, settings.sources.resources_base_url),
            interval_seconds=settings.datasets.global_api_refresh_hours * 3600,
            retry_interval_seconds=settings.datasets.retry_interval_seconds,
        )
        return cls(dataset, settings.search)

    async def list_names(self, flavor: str = DEFAULT_FLAVOR) -> list[str]:
        return list(await self.dataset.get(flavor))

    async def find(self, query: str, flavor: str = DEFAULT_FLAVOR) -> list[str]:
        """API names similar to any of the terms in ``query``."""
        names = await self.dataset.get(flavor)
        corpus = self._corpora.get(
            flavor,
            self.dataset.state.generation,
            lambda: (identifier_target(name) for name in names),
        )
        results = multi_search(
            query,
            corpus,
            self._settings.api_threshold,
            self._settings.api_limit,
            normalizer=normalize_identifier,
            cap=self._settings.result_cap,
        )
        log.debug("global_api_search", query=query, flavor=flavor, results=len(results))
        return results


class WikiService:
    """warcraft.wiki.gg page exports behind a single-flight TTL cache."""

    def __init__(self, fetcher: Fetcher, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self._fetcher = fetcher
        self._base_url = settings.sources.wiki_base_url.rstrip("/")
        self._timeout = settings.wiki.request_timeout_seconds
        self.cache: SingleFlightTTLCache[str | None] = SingleFlightTTLCache(
            self._export,
            capacity=settings.wiki.cache_capacity,
            ttl_seconds=settings.wiki.cache_ttl_minutes * 60,
            name="wiki_pages",
        )

    def page_url(self, api_name: str) -> str:
        return f"{self._base_url}/wiki/API_{api_name}"

    @staticmethod
    def export_request(page: str, *, current_only: bool = True) -> str:
        """Form body for Special:Export; also the cache key."""
        return urlencode({"pages": page, "curonly": 1 if current_only else 0})

    async def _export(self, request_body: str) -> str | None:
        text = await self._fetcher.post_form(
            f"{self._base_url}/wiki/Special:Export", request_body, timeout=self._timeout
        )
        match = _PAGE_RE.search(text)
        return match.group(1) if match else None

    async def lookup(self, api_name: str, include_history: bool = False) -> WikiPage:
        """Export the wiki page for ``api_name``; include_history keeps all revisions."""
        key = self.export_request(f"API_{api_name}", current_only=not include_history)
        cached = key in self.cache
        log.info("wiki_lookup", api_name=api_name, cached=cached)
        entry = await self.cache.lookup(key)
        return WikiPage(
            url=self.page_url(api_name),
            page_content=entry.value,
            cached=cached,
            cached_at=entry.inserted_at if cached else None,
        )

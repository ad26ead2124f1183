from __future__ import annotations

from wowdev.models.cache import CacheEntry, WikiPage
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
from wowdev.models.tools import (
    FindGlobalApisInput,
    FindGlobalStringsInput,
    GetGlobalApiWikiInfoInput,
    GetGlobalApiWikiInfoOutput,
    GetGlobalStringsForKeysInput,
    ListGlobalStringKeysInput,
    ListValidGlobalApisInput,
)

__all__ = [
    # datasets
    "GameFlavor",
    "Locale",
    "SUPPORTED_FLAVORS",
    "SUPPORTED_LOCALES",
    "DEFAULT_FLAVOR",
    "DEFAULT_LOCALE",
    "SearchTarget",
    "Translations",
    # cache
    "CacheEntry",
    "WikiPage",
    # tools
    "FindGlobalStringsInput",
    "ListGlobalStringKeysInput",
    "GetGlobalStringsForKeysInput",
    "ListValidGlobalApisInput",
    "FindGlobalApisInput",
    "GetGlobalApiWikiInfoInput",
    "GetGlobalApiWikiInfoOutput",
]

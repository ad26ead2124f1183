"""Parsing of the BlizzardInterfaceResources Lua dumps.

GlobalStrings/<locale>.lua holds one assignment per line::

    ACCEPT = "Accept";
    _G["ACCEPT"] = "Accept";

GlobalAPI.lua is a Lua table listing one quoted function name per line.
Lines containing braces belong to table syntax and are skipped in both.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

import structlog

from wowdev.errors import ErrorCode, WowDevError
from wowdev.models.datasets import SUPPORTED_LOCALES, GameFlavor, Locale, Translations

if TYPE_CHECKING:
    from wowdev.fetcher import Fetcher

log = structlog.get_logger()

_ASSIGNMENT_RE = re.compile(r'^(?:_G\[\s*"?)?([A-Za-z_][\w.]*)"?\s*\]?\s*=\s*"(.+?)";?$')
_API_NAME_RE = re.compile(r'"([\w.:]+)"')


def global_strings_url(base_url: str, flavor: GameFlavor, locale: Locale) -> str:
    return f"{base_url.rstrip('/')}/refs/heads/{flavor}/Resources/GlobalStrings/{locale}.lua"


def global_api_url(base_url: str, flavor: GameFlavor) -> str:
    return f"{base_url.rstrip('/')}/refs/heads/{flavor}/Resources/GlobalAPI.lua"


def _content_lines(text: str) -> Iterator[str]:
    for line in text.splitlines():
        line = line.strip()
        if not line or "{" in line or "}" in line:
            continue
        yield line


def parse_global_strings(text: str, *, source: str = "<text>") -> dict[str, str]:
    """Map each assigned global string key to its value.

    Later assignments of the same key win. Raises ``PARSE_FAILED`` when the
    text contains no assignments at all.
    """
    mapping: dict[str, str] = {}
    for line in _content_lines(text):
        match = _ASSIGNMENT_RE.match(line)
        if match:
            mapping[match.group(1)] = match.group(2)
    if not mapping:
        raise WowDevError(
            ErrorCode.PARSE_FAILED, f"No global strings found in {source}", recoverable=False
        )
    return mapping


def parse_global_api_names(text: str, *, source: str = "<text>") -> list[str]:
    """Return the first quoted name on each line, de-duplicated in file order."""
    names: dict[str, None] = {}
    for line in _content_lines(text):
        match = _API_NAME_RE.search(line)
        if match:
            names.setdefault(match.group(1))
    if not names:
        raise WowDevError(
            ErrorCode.PARSE_FAILED, f"No global API names found in {source}", recoverable=False
        )
    return list(names)


def fold_locales(per_locale: Mapping[str, Mapping[str, str]]) -> Translations:
    """Turn ``{locale: {key: value}}`` into ``{key: {locale: value}}``.

    Keys keep the order they are first seen in; locales keep the input order.
    """
    folded: Translations = {}
    for locale, mapping in per_locale.items():
        for key, value in mapping.items():
            folded.setdefault(key, {})[locale] = value
    return folded


async def load_global_strings(
    fetcher: Fetcher,
    base_url: str,
    flavor: GameFlavor,
    locales: tuple[Locale, ...] = SUPPORTED_LOCALES,
) -> Translations:
    """Fetch every locale file for ``flavor`` and fold them by key.

    The first failing locale cancels the remaining fetches and is re-raised.
    """

    async def _load(locale: Locale) -> dict[str, str]:
        url = global_strings_url(base_url, flavor, locale)
        return parse_global_strings(await fetcher.fetch(url), source=url)

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = {locale: tg.create_task(_load(locale)) for locale in locales}
    except ExceptionGroup as group:
        raise group.exceptions[0] from None
    translations = fold_locales({locale: task.result() for locale, task in tasks.items()})
    log.info("global_strings_loaded", flavor=flavor, keys=len(translations))
    return translations


async def load_global_api_names(
    fetcher: Fetcher, base_url: str, flavor: GameFlavor
) -> tuple[str, ...]:
    """Fetch and parse the global API name list for ``flavor``."""
    url = global_api_url(base_url, flavor)
    names = tuple(parse_global_api_names(await fetcher.fetch(url), source=url))
    log.info("global_api_names_loaded", flavor=flavor, names=len(names))
    return names

"""Sample Lua resources and wiki exports served by mocked routes."""

from __future__ import annotations

import asyncio
import re

import httpx

from wowdev.errors import ErrorCode, WowDevError

RESOURCES_BASE = "https://raw.githubusercontent.com/Ketho/BlizzardInterfaceResources"
WIKI_EXPORT_URL = "https://warcraft.wiki.gg/wiki/Special:Export"

EN_US_STRINGS = {
    "OKAY": "Okay",
    "CANCEL": "Cancel",
    "ACCEPT": "Accept",
    "QUEST_COMPLETE": "Quest completed!",
}

GLOBAL_API_NAMES = [
    "GetItemInfo",
    "GetItemInfoInstant",
    "UnitGUID",
    "UnitName",
    "C_QuestLog.IsQuestFlaggedCompleted",
    "C_QuestLog.GetQuestObjectives",
]

GLOBAL_API_LUA = (
    "local GlobalAPI = {\n"
    + "".join(f'\t"{name}",\n' for name in GLOBAL_API_NAMES)
    + "}\n\nreturn GlobalAPI\n"
)

_STRINGS_PATH_RE = re.compile(
    r"/refs/heads/(?P<flavor>\w+)/Resources/GlobalStrings/(?P<locale>\w+)\.lua$"
)


def global_strings_lua(flavor: str, locale: str) -> str:
    """Fake GlobalStrings/<locale>.lua; vanilla has no QUEST_COMPLETE."""
    lines = ["-- generated"]
    for key, text in EN_US_STRINGS.items():
        if flavor == "vanilla" and key == "QUEST_COMPLETE":
            continue
        value = text if locale == "enUS" else f"{text} [{locale}]"
        if key == "CANCEL":
            lines.append(f'_G["{key}"] = "{value}";')
        else:
            lines.append(f'{key} = "{value}";')
    return "\n".join(lines) + "\n"


def serve_global_strings(request: httpx.Request) -> httpx.Response:
    match = _STRINGS_PATH_RE.search(request.url.path)
    assert match is not None, request.url
    return httpx.Response(200, text=global_strings_lua(match["flavor"], match["locale"]))


def wiki_export_xml(title: str) -> str:
    return (
        '<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.11/">\n'
        "  <siteinfo><sitename>Warcraft Wiki</sitename></siteinfo>\n"
        f"  <page>\n    <title>{title}</title>\n    <revision><text>Body</text></revision>\n"
        "  </page>\n</mediawiki>\n"
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingLoader:
    """Async loader that records calls and can be told to fail or block."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.gate: asyncio.Event | None = None

    async def __call__(self, key: str) -> str:
        self.calls.append(key)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if key in self.failing:
            raise WowDevError(ErrorCode.FETCH_FAILED, f"boom: {key}", recoverable=True)
        return f"value:{key}:{len(self.calls)}"

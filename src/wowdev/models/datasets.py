from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, get_args

GameFlavor = Literal["mainline", "mists", "vanilla"]
Locale = Literal[
    "enUS",
    "frFR",
    "deDE",
    "esMX",
    "itIT",
    "koKR",
    "ptBR",
    "ruRU",
    "zhCN",
    "zhTW",
]

SUPPORTED_FLAVORS: tuple[GameFlavor, ...] = get_args(GameFlavor)
SUPPORTED_LOCALES: tuple[Locale, ...] = get_args(Locale)

DEFAULT_FLAVOR: GameFlavor = "mainline"
DEFAULT_LOCALE: Locale = "enUS"

# global string key → {locale: translated text}
Translations = dict[str, dict[str, str]]


@dataclass(frozen=True, slots=True)
class SearchTarget:
    """One searchable corpus entry.

    ``text`` is what the ranker compares against; ``raw`` is the value handed
    back to callers. ``tag`` records which partition/axis produced the entry.
    """

    key: str
    text: str
    raw: str
    tag: str | None = None

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

V = TypeVar("V")


class CacheEntry(BaseModel, Generic[V]):
    """A value held by the single-flight TTL cache."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: V
    inserted_at: datetime


class WikiPage(BaseModel):
    """Result of a wiki page lookup."""

    url: str
    page_content: str | None  # MediaWiki <page> XML export, None if the page is empty
    cached: bool
    cached_at: datetime | None

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from wowdev.models.datasets import DEFAULT_FLAVOR, DEFAULT_LOCALE, GameFlavor, Locale

_API_NAME_RE = re.compile(r"^[A-Za-z_][\w.:]*$")


def _clean_query(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("query must not be empty")
    if len(v) > 500:
        raise ValueError("query must not exceed 500 characters")
    return v


class FindGlobalStringsInput(BaseModel):
    query: str
    threshold: float | None = Field(default=None, ge=0, le=1)
    limit: int | None = Field(default=None, ge=0, le=100)  # 0 means no limit
    client: GameFlavor = DEFAULT_FLAVOR
    locale: Locale = DEFAULT_LOCALE

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _clean_query(v)


class ListGlobalStringKeysInput(BaseModel):
    client: GameFlavor = DEFAULT_FLAVOR


class GetGlobalStringsForKeysInput(BaseModel):
    global_keys: list[str]
    client: GameFlavor = DEFAULT_FLAVOR


class ListValidGlobalApisInput(BaseModel):
    game_version: GameFlavor = DEFAULT_FLAVOR


class FindGlobalApisInput(BaseModel):
    query: str
    game_version: GameFlavor = DEFAULT_FLAVOR

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _clean_query(v)


class GetGlobalApiWikiInfoInput(BaseModel):
    api_name: str
    include_history: bool = False

    @field_validator("api_name")
    @classmethod
    def validate_api_name(cls, v: str) -> str:
        v = v.strip()
        if not _API_NAME_RE.match(v):
            raise ValueError(f"Invalid API name: {v!r}")
        return v


class GetGlobalApiWikiInfoOutput(BaseModel):
    url: str
    page_content: str | None
    cached: bool
    cached_at: str | None = None

"""Tool handlers.

Each handler validates raw arguments into an input model, calls the owning
service and returns JSON-ready data. Validation failures become
``WowDevError(INVALID_INPUT)`` so the server reports every failure the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from wowdev.errors import ErrorCode, WowDevError
from wowdev.models.tools import (
    FindGlobalApisInput,
    FindGlobalStringsInput,
    GetGlobalApiWikiInfoInput,
    GetGlobalApiWikiInfoOutput,
    GetGlobalStringsForKeysInput,
    ListGlobalStringKeysInput,
    ListValidGlobalApisInput,
)

if TYPE_CHECKING:
    from wowdev.state import AppState

M = TypeVar("M", bound=BaseModel)


def _validate(model: type[M], **arguments: Any) -> M:
    try:
        return model(**{k: v for k, v in arguments.items() if v is not None})
    except ValidationError as exc:
        message = "; ".join(error["msg"] for error in exc.errors())
        raise WowDevError(ErrorCode.INVALID_INPUT, message, recoverable=False) from exc


async def find_global_strings(
    state: AppState,
    query: str,
    threshold: float | None = None,
    limit: int | None = None,
    client: str | None = None,
    locale: str | None = None,
) -> dict[str, dict[str, str]]:
    args = _validate(
        FindGlobalStringsInput,
        query=query,
        threshold=threshold,
        limit=limit,
        client=client,
        locale=locale,
    )
    return await state.global_strings.search(
        args.query, args.threshold, args.limit, args.client, args.locale
    )


async def list_global_string_keys(state: AppState, client: str | None = None) -> list[str]:
    args = _validate(ListGlobalStringKeysInput, client=client)
    return await state.global_strings.list_keys(args.client)


async def get_global_strings_for_keys(
    state: AppState, global_keys: list[str], client: str | None = None
) -> dict[str, dict[str, str]]:
    args = _validate(GetGlobalStringsForKeysInput, global_keys=global_keys, client=client)
    return await state.global_strings.get_values(args.client, args.global_keys)


async def list_valid_global_apis(state: AppState, game_version: str | None = None) -> list[str]:
    args = _validate(ListValidGlobalApisInput, game_version=game_version)
    return await state.global_apis.list_names(args.game_version)


async def find_global_apis(
    state: AppState, query: str, game_version: str | None = None
) -> list[str]:
    args = _validate(FindGlobalApisInput, query=query, game_version=game_version)
    return await state.global_apis.find(args.query, args.game_version)


async def get_global_api_wiki_info(
    state: AppState, api_name: str, include_history: bool | None = None
) -> dict[str, Any]:
    args = _validate(
        GetGlobalApiWikiInfoInput, api_name=api_name, include_history=include_history
    )
    page = await state.wiki.lookup(args.api_name, include_history=args.include_history)
    return GetGlobalApiWikiInfoOutput(
        url=page.url,
        page_content=page.page_content,
        cached=page.cached,
        cached_at=page.cached_at.isoformat() if page.cached_at else None,
    ).model_dump()

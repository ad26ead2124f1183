"""MCP server entry point.

Run with ``python -m wowdev.server`` or the ``wow-dev-mcp`` script. All logs go
to stderr; stdout is reserved for the stdio transport.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from wowdev import tools
from wowdev.config import LoggingSettings, Settings
from wowdev.errors import WowDevError
from wowdev.models.datasets import DEFAULT_FLAVOR, DEFAULT_LOCALE, SUPPORTED_FLAVORS
from wowdev.state import AppState, open_app_state

log = structlog.get_logger()

R = TypeVar("R")

_FLAVORS = ", ".join(SUPPORTED_FLAVORS)


def configure_logging(settings: LoggingSettings) -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


async def _call(result: Awaitable[R]) -> R:
    """Await a handler, turning WowDevError into a structured tool error."""
    try:
        return await result
    except WowDevError as exc:
        log.info("tool_error", code=exc.code.value, message=exc.message)
        raise ToolError(json.dumps(exc.to_dict())) from exc


def create_server(settings: Settings) -> FastMCP:
    @asynccontextmanager
    async def lifespan(_: FastMCP) -> AsyncIterator[AppState]:
        async with open_app_state(settings) as state:
            yield state

    mcp = FastMCP(
        "wow-dev-mcp",
        lifespan=lifespan,
        host=settings.server.host,
        port=settings.server.port,
    )

    def _state(ctx: Context) -> AppState:
        return ctx.request_context.lifespan_context

    @mcp.tool(
        description=(
            "Search global string keys whose text is similar to a plain-text query. "
            "Use a threshold around 0.2-0.5 for one or two words, 0.08 or lower with a "
            "higher limit for long phrases, and 0.8 for near-exact matches. "
            "limit 0 means no limit."
        )
    )
    async def find_global_strings(
        query: str,
        ctx: Context,
        threshold: float | None = None,
        limit: int | None = None,
        client: str = DEFAULT_FLAVOR,
        locale: str = DEFAULT_LOCALE,
    ) -> dict[str, dict[str, str]]:
        return await _call(
            tools.find_global_strings(_state(ctx), query, threshold, limit, client, locale)
        )

    @mcp.tool(description=f"List every global string key for a game client ({_FLAVORS}).")
    async def list_global_string_keys(ctx: Context, client: str = DEFAULT_FLAVOR) -> list[str]:
        return await _call(tools.list_global_string_keys(_state(ctx), client))

    @mcp.tool(
        description="Get translations in every supported locale for a set of global string keys."
    )
    async def get_global_strings_for_keys(
        global_keys: list[str], ctx: Context, client: str = DEFAULT_FLAVOR
    ) -> dict[str, dict[str, str]]:
        return await _call(tools.get_global_strings_for_keys(_state(ctx), global_keys, client))

    @mcp.tool(description=f"List all global API names for a game version ({_FLAVORS}).")
    async def list_valid_global_apis(
        ctx: Context, game_version: str = DEFAULT_FLAVOR
    ) -> list[str]:
        return await _call(tools.list_valid_global_apis(_state(ctx), game_version))

    @mcp.tool(
        description=(
            "Find global API names similar to the given name(s), e.g. 'IsQuestComplete'. "
            "Several names may be separated by spaces, '|' or '-'."
        )
    )
    async def find_global_apis(
        query: str, ctx: Context, game_version: str = DEFAULT_FLAVOR
    ) -> list[str]:
        return await _call(tools.find_global_apis(_state(ctx), query, game_version))

    @mcp.tool(
        description=(
            "Fetch the warcraft.wiki.gg page export for a global API name. "
            "Only set include_history when the user asks for revision history."
        )
    )
    async def get_global_api_wiki_info(
        api_name: str, ctx: Context, include_history: bool = False
    ) -> dict[str, Any]:
        return await _call(tools.get_global_api_wiki_info(_state(ctx), api_name, include_history))

    @mcp.resource(
        "resource://lua_global_apis/valid_api_names/{game_version}",
        name="valid_global_api_names",
        description=(
            f"All valid global API names for a game version ({_FLAVORS}). "
            "Meant for browsing or bulk reasoning; use find_global_apis for lookups."
        ),
        mime_type="application/json",
    )
    async def valid_api_names(game_version: str) -> str:
        state: AppState = mcp.get_context().request_context.lifespan_context
        names = await _call(tools.list_valid_global_apis(state, game_version))
        return json.dumps(names, indent=2)

    return mcp


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    transport = "streamable-http" if settings.server.transport == "http" else "stdio"
    log.info("server_starting", transport=transport)
    create_server(settings).run(transport=transport)


if __name__ == "__main__":
    main()

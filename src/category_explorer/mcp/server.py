"""MCP server exposing category exploration and selection tools."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from category_explorer.config import resolve_settings
from category_explorer.errors import ExplorerError
from category_explorer.explorer import CategoryExplorer
from category_explorer.export import ExportFormat
from category_explorer.fetcher import CategoryFetcher
from category_explorer.protocols import CategoryFetcherProtocol


def _session_key(category: str, locale: str) -> tuple[str, str]:
    title = category.split(":", 1)[-1]
    return locale, title.replace("_", " ").strip().lower()


@dataclass
class SessionRegistry:
    """Open exploration sessions, keyed by locale and category."""

    fetcher: CategoryFetcherProtocol
    default_locale: str = "en"
    depth_limit: int = 1
    sessions: dict[tuple[str, str], CategoryExplorer] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def open(self, category: str, locale: str | None = None) -> CategoryExplorer:
        locale = locale or self.default_locale
        key = _session_key(category, locale)
        async with self.lock:
            if key not in self.sessions:
                self.sessions[key] = await CategoryExplorer.open(
                    category, self.fetcher, locale=locale, depth_limit=self.depth_limit
                )
            return self.sessions[key]

    def get(self, category: str, locale: str | None = None) -> CategoryExplorer | None:
        return self.sessions.get(_session_key(category, locale or self.default_locale))


def _not_open(category: str) -> dict[str, Any]:
    return {"error": f"Category '{category}' is not open. Call explorer_open_tool first."}


def _drain_notices(explorer: CategoryExplorer) -> list[str]:
    notices = list(explorer.notices)
    explorer.notices.clear()
    return notices


# --- Core functions (testable without MCP context) ---


async def explorer_open(
    registry: SessionRegistry,
    *,
    category: str,
    locale: str | None = None,
    max_depth: int = 1,
) -> dict[str, Any]:
    """Open a category (or reuse an open session) and show its first level."""
    try:
        explorer = await registry.open(category, locale)
    except ExplorerError as e:
        return {"error": str(e)}
    return {
        "category": explorer.describe(explorer.top_id),
        "tree": explorer.render(max_depth=max_depth),
        "notices": _drain_notices(explorer),
    }


async def explorer_expand(
    registry: SessionRegistry,
    *,
    category: str,
    node_id: str,
    locale: str | None = None,
) -> dict[str, Any]:
    """Expand a node, prefetching one level below it."""
    explorer = registry.get(category, locale)
    if explorer is None:
        return _not_open(category)
    try:
        stats = await explorer.expand(node_id)
    except ExplorerError as e:
        return {"error": str(e)}
    return {
        "node": explorer.describe(node_id),
        "fetch_calls": stats.fetch_calls,
        "nodes_added": stats.nodes_added,
        "tree": explorer.render(node_id=node_id, max_depth=2),
        "notices": _drain_notices(explorer),
    }


async def explorer_select(
    registry: SessionRegistry,
    *,
    category: str,
    node_id: str,
    selected: bool = True,
    locale: str | None = None,
) -> dict[str, Any]:
    """Select or deselect a node."""
    explorer = registry.get(category, locale)
    if explorer is None:
        return _not_open(category)
    try:
        applied = await explorer.select(node_id, selected)
    except ExplorerError as e:
        return {"error": str(e)}
    output: dict[str, Any] = {
        "applied": applied,
        "node": explorer.describe(node_id),
        "selected_articles": len(explorer.selected_articles()),
        "notices": _drain_notices(explorer),
    }
    if not applied:
        output["error"] = f"Node '{node_id}' cannot be selected; expand it first."
    return output


def explorer_show_tree(
    registry: SessionRegistry,
    *,
    category: str,
    node_id: str | None = None,
    max_depth: int | None = 2,
    include_articles: bool = False,
    locale: str | None = None,
) -> dict[str, Any]:
    """Render the known tree with selection checkboxes."""
    explorer = registry.get(category, locale)
    if explorer is None:
        return _not_open(category)
    try:
        tree = explorer.render(
            node_id=node_id, max_depth=max_depth, include_articles=include_articles
        )
    except ExplorerError as e:
        return {"error": str(e)}
    return {"tree": tree, "selected": list(explorer.tracker.selected_ids)}


def explorer_export(
    registry: SessionRegistry,
    *,
    category: str,
    fmt: str = "csv",
    locale: str | None = None,
) -> dict[str, Any]:
    """Encode the selected articles."""
    explorer = registry.get(category, locale)
    if explorer is None:
        return _not_open(category)
    try:
        content = explorer.export(fmt)
    except ValueError as e:
        return {"error": str(e)}
    return {
        "format": fmt,
        "count": len(explorer.selected_articles()),
        "incomplete": explorer.tracker.incomplete_nodes(),
        "content": content,
    }


# --- MCP server ---


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[SessionRegistry]:
    """Hold exploration sessions for the lifetime of the server."""
    settings = resolve_settings()
    registry = SessionRegistry(
        fetcher=CategoryFetcher(),
        default_locale=settings.locale,
        depth_limit=settings.depth_limit,
    )
    try:
        yield registry
    finally:
        logger.debug("Closing {} exploration sessions", len(registry.sessions))
        registry.sessions.clear()


mcp_server = FastMCP(
    "category-explorer",
    instructions="""\
Browse Wikipedia category trees and build an article list from them.

1. Call explorer_open_tool with a category title.
2. Expand interesting subcategories with explorer_expand_tool, using node ids
   from the tree output. Each expand also looks one level further ahead.
3. Select categories with explorer_select_tool. A category marked [/] has not
   been fetched yet and must be expanded before it can be selected.
4. Call explorer_export_tool to get the selected articles as csv, txt or wikicode.

A "!" after a selected category means some of its subcategories were never
fetched, so the export may be missing their articles.
""",
    lifespan=server_lifespan,
)


def _registry(mcp_ctx: Context) -> SessionRegistry:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[no-any-return]


@mcp_server.tool()
async def explorer_open_tool(ctx: Context, category: str, locale: str | None = None) -> dict[str, Any]:
    """Open a Wikipedia category and list its subcategories.

    Args:
        category: Category title, with or without the "Category:" prefix.
        locale: Wikipedia language code (default: en).
    """
    return await explorer_open(_registry(ctx), category=category, locale=locale)


@mcp_server.tool()
async def explorer_expand_tool(
    ctx: Context, category: str, node_id: str, locale: str | None = None
) -> dict[str, Any]:
    """Fetch the subcategories of a node in an open category tree.

    Args:
        category: The category passed to explorer_open_tool.
        node_id: Id of the node to expand.
        locale: Wikipedia language code (default: en).
    """
    return await explorer_expand(_registry(ctx), category=category, node_id=node_id, locale=locale)


@mcp_server.tool()
async def explorer_select_tool(
    ctx: Context,
    category: str,
    node_id: str,
    selected: bool = True,
    locale: str | None = None,
) -> dict[str, Any]:
    """Select (or deselect) a category for export.

    Args:
        category: The category passed to explorer_open_tool.
        node_id: Id of the node to select.
        selected: False to deselect.
        locale: Wikipedia language code (default: en).
    """
    return await explorer_select(
        _registry(ctx), category=category, node_id=node_id, selected=selected, locale=locale
    )


@mcp_server.tool()
async def explorer_show_tree_tool(
    ctx: Context,
    category: str,
    node_id: str | None = None,
    max_depth: int | None = 2,
    include_articles: bool = False,
    locale: str | None = None,
) -> dict[str, Any]:
    """Show the known part of a category tree with selection state.

    Args:
        category: The category passed to explorer_open_tool.
        node_id: Start rendering from this node (default: the category).
        max_depth: Max levels to render (None = everything known).
        include_articles: List the known articles of each category.
        locale: Wikipedia language code (default: en).
    """
    return explorer_show_tree(
        _registry(ctx),
        category=category,
        node_id=node_id,
        max_depth=max_depth,
        include_articles=include_articles,
        locale=locale,
    )


@mcp_server.tool()
async def explorer_export_tool(
    ctx: Context, category: str, fmt: str = ExportFormat.CSV.value, locale: str | None = None
) -> dict[str, Any]:
    """Export the articles of all selected categories.

    Args:
        category: The category passed to explorer_open_tool.
        fmt: "csv", "txt" or "wikicode".
        locale: Wikipedia language code (default: en).
    """
    return explorer_export(_registry(ctx), category=category, fmt=fmt, locale=locale)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from category_explorer.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")

"""CLI for the category explorer (tree, export, MCP server)."""

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from loguru import logger

from category_explorer.api import WikiActionApi
from category_explorer.config import resolve_settings
from category_explorer.errors import ExplorerError
from category_explorer.explorer import CategoryExplorer
from category_explorer.export import ExportFormat
from category_explorer.fetcher import CategoryFetcher
from category_explorer.logging_config import configure_logging

app = typer.Typer(help="Category explorer: browse Wikipedia category trees and export articles.")

_T = TypeVar("_T")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _make_fetcher(use_cache: bool) -> CategoryFetcher:
    return CategoryFetcher(lambda locale: WikiActionApi(locale, from_cache=use_cache))


def _run(coro: Coroutine[Any, Any, _T]) -> _T:
    """Run a coroutine, turning explorer errors into a non-zero exit."""
    try:
        return asyncio.run(coro)
    except ExplorerError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from None


async def _open(
    category: str,
    *,
    locale: str | None,
    expand: list[str],
    use_cache: bool,
) -> CategoryExplorer:
    settings = resolve_settings()
    explorer = await CategoryExplorer.open(
        category,
        _make_fetcher(use_cache or settings.use_cache),
        locale=locale or settings.locale,
        depth_limit=settings.depth_limit,
    )
    for node_id in expand:
        await explorer.expand(node_id)
    return explorer


CategoryArgument = Annotated[
    str,
    typer.Argument(help="Category title, with or without 'Category:'"),
]
LocaleOption = Annotated[
    str | None,
    typer.Option("--locale", "-l", help="Wikipedia language code (default: en)"),
]
ExpandOption = Annotated[
    list[str] | None,
    typer.Option("--expand", "-e", help="Node id to expand (repeatable)"),
]
CacheOption = Annotated[
    bool,
    typer.Option("--cache", "-C", help="Cache API responses on disk while developing"),
]


@app.command()
def tree(
    category: CategoryArgument,
    locale: LocaleOption = None,
    expand: ExpandOption = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    articles: bool = typer.Option(False, "--articles", "-a", help="List known articles"),
    cache: CacheOption = False,
) -> None:
    """Print the known category tree."""

    async def _tree() -> str:
        explorer = await _open(category, locale=locale, expand=expand or [], use_cache=cache)
        return explorer.render(max_depth=max_depth, include_articles=articles)

    typer.echo(_run(_tree()), nl=False)


@app.command()
def export(
    category: CategoryArgument,
    select: Annotated[
        list[str],
        typer.Option("--select", "-s", help="Node id to select (repeatable)"),
    ],
    locale: LocaleOption = None,
    expand: ExpandOption = None,
    fmt: Annotated[
        ExportFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = ExportFormat.CSV,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    cache: CacheOption = False,
) -> None:
    """Select categories and export their known articles."""

    async def _export() -> tuple[str, int]:
        explorer = await _open(category, locale=locale, expand=expand or [], use_cache=cache)
        for node_id in select:
            if not await explorer.select(node_id):
                logger.warning("Could not select {}; expand it first", node_id)
        return explorer.export(fmt), len(explorer.selected_articles())

    text, count = _run(_export())
    if output is None:
        typer.echo(text, nl=False)
        return

    output.write_text(text, encoding="utf-8")
    typer.echo(f"Exported {count} articles to {output}")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from category_explorer.mcp.server import run_mcp_server

    run_mcp_server()

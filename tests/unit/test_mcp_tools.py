"""Tests for MCP tool core functions."""

import pytest

from category_explorer.mcp.server import (
    SessionRegistry,
    explorer_expand,
    explorer_export,
    explorer_open,
    explorer_select,
    explorer_show_tree,
)
from tests.unit.fakes import FakeFetcher


@pytest.fixture
def registry(birds_fetcher: FakeFetcher) -> SessionRegistry:
    return SessionRegistry(fetcher=birds_fetcher)


@pytest.mark.asyncio
async def test_explorer_open_returns_category_and_tree(registry: SessionRegistry) -> None:
    result = await explorer_open(registry, category="Birds")

    assert "error" not in result
    assert result["category"]["id"] == "100"
    assert result["category"]["children"] == ["101", "102", "103"]
    assert "[/] Raptors (2 C, 4 P)  (id=101)" in result["tree"]
    assert result["notices"] == []


@pytest.mark.asyncio
async def test_explorer_open_reuses_session(
    registry: SessionRegistry, birds_fetcher: FakeFetcher
) -> None:
    """Title spelling variants map to the same session."""
    await explorer_open(registry, category="Birds")
    await explorer_open(registry, category="Category:birds")

    assert len(registry.sessions) == 1
    assert birds_fetcher.calls == ["100"]


@pytest.mark.asyncio
async def test_explorer_open_unknown_category(registry: SessionRegistry) -> None:
    result = await explorer_open(registry, category="Fish")

    assert "category not found" in result["error"]
    assert registry.sessions == {}


@pytest.mark.asyncio
async def test_explorer_expand_reports_stats(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")

    result = await explorer_expand(registry, category="Birds", node_id="101")

    assert result["fetch_calls"] == 3
    assert result["nodes_added"] == 3
    assert result["node"]["load_state"] == "expanded"
    assert "Eagles (1 C, 3 P)  (id=111)" in result["tree"]


@pytest.mark.asyncio
async def test_explorer_expand_surfaces_fetch_failures(
    registry: SessionRegistry, birds_fetcher: FakeFetcher
) -> None:
    await explorer_open(registry, category="Birds")
    birds_fetcher.fail("102")

    result = await explorer_expand(registry, category="Birds", node_id="102")

    assert "error" not in result
    assert result["node"]["load_state"] == "failed"
    assert result["notices"] == ["Failed to fetch subcategories of '102': scripted failure"]


@pytest.mark.asyncio
async def test_explorer_expand_unknown_node(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")

    result = await explorer_expand(registry, category="Birds", node_id="999")

    assert result == {"error": "Unknown node: '999'"}


@pytest.mark.asyncio
async def test_tools_require_open_session(registry: SessionRegistry) -> None:
    result = await explorer_select(registry, category="Birds", node_id="103")

    assert "not open" in result["error"]
    assert "not open" in explorer_show_tree(registry, category="Birds")["error"]
    assert "not open" in explorer_export(registry, category="Birds")["error"]


@pytest.mark.asyncio
async def test_explorer_select_and_export(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")

    selected = await explorer_select(registry, category="Birds", node_id="103")
    exported = explorer_export(registry, category="Birds", fmt="txt")

    assert selected["applied"] is True
    assert selected["selected_articles"] == 3
    assert exported == {
        "format": "txt",
        "count": 3,
        "incomplete": [],
        "content": "Robin\nWren\nThrush\n",
    }


@pytest.mark.asyncio
async def test_explorer_select_disabled_node(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")

    result = await explorer_select(registry, category="Birds", node_id="101")

    assert result["applied"] is False
    assert "expand it first" in result["error"]
    assert result["node"]["visual_state"] == "disabled"


@pytest.mark.asyncio
async def test_explorer_export_flags_incomplete_selection(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")
    await explorer_select(registry, category="Birds", node_id="100")

    result = explorer_export(registry, category="Birds")

    assert result["incomplete"] == ["100"]
    assert result["count"] == 5


@pytest.mark.asyncio
async def test_explorer_export_unknown_format(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")

    result = explorer_export(registry, category="Birds", fmt="xml")

    assert "Unknown export format" in result["error"]


@pytest.mark.asyncio
async def test_explorer_show_tree_with_articles(registry: SessionRegistry) -> None:
    await explorer_open(registry, category="Birds")
    await explorer_select(registry, category="Birds", node_id="103")

    result = explorer_show_tree(registry, category="Birds", node_id="103", include_articles=True)

    assert result["tree"] == (
        "- [x] Songbirds (0 C, 3 P)  (id=103)\n  > Robin\n  > Wren\n  > Thrush\n"
    )
    assert result["selected"] == ["103"]

"""Tests for SelectionTracker: tri-state display and incomplete selections."""

import pytest

from category_explorer.core.selection import SelectionTracker
from category_explorer.core.tree.store import TreeStore
from category_explorer.errors import UnknownNodeError
from category_explorer.models.node import Article, Page, VisualState
from tests.unit.fakes import branch, terminal


@pytest.fixture
def tracker(store: TreeStore) -> SelectionTracker:
    return SelectionTracker(store)


def test_undiscovered_branch_is_disabled(store: TreeStore, tracker: SelectionTracker) -> None:
    assert tracker.visual_state("100") == VisualState.DISABLED


def test_toggling_disabled_node_is_a_no_op(store: TreeStore, tracker: SelectionTracker) -> None:
    assert tracker.toggle("100", True) is False
    assert tracker.selected_ids == ()


def test_one_of_two_selected_children_is_some(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), terminal("102")])

    tracker.toggle("101", True)

    assert tracker.visual_state("100") == VisualState.SOME
    assert tracker.visual_state("101") == VisualState.ALL
    assert tracker.visual_state("102") == VisualState.NONE


def test_all_children_selected_is_all(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), terminal("102")])

    tracker.toggle("101", True)
    tracker.toggle("102", True)

    assert tracker.visual_state("100") == VisualState.ALL


def test_nothing_selected_is_none(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), terminal("102")])

    assert tracker.visual_state("100") == VisualState.NONE


def test_state_is_computed_recursively(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [branch("101"), terminal("102")])
    store.merge("101", [terminal("111", parent_id="101"), terminal("112", parent_id="101")])

    tracker.toggle("111", True)

    assert tracker.visual_state("101") == VisualState.SOME
    assert tracker.visual_state("100") == VisualState.SOME

    tracker.toggle("112", True)
    tracker.toggle("102", True)

    assert tracker.visual_state("100") == VisualState.ALL


def test_selected_parent_displays_descendants_as_selected(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    """Propagation is for display only; children keep their own entries."""
    store.merge("100", [terminal("101"), terminal("102")])

    tracker.toggle("100", True)

    assert tracker.visual_state("100") == VisualState.ALL
    assert tracker.visual_state("101") == VisualState.ALL
    assert tracker.is_selected("101") is False


def test_shared_subcategory_follows_any_selected_parent(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    """A category listed under two parents shows as selected under either one."""
    store.merge("100", [branch("101"), branch("102")])
    store.merge("101", [terminal("111", parent_id="101")])
    store.merge("102", [terminal("111", parent_id="102")])

    tracker.toggle("102", True)

    assert store.get("111").parent_id == "101"
    assert tracker.visual_state("102") == VisualState.ALL
    assert tracker.visual_state("111") == VisualState.ALL
    assert tracker.visual_state("101") == VisualState.ALL


def test_toggle_never_touches_other_nodes(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), terminal("102")])
    tracker.toggle("101", True)

    tracker.toggle("100", True)
    tracker.toggle("100", False)

    assert tracker.selected_ids == ("101",)


def test_deselect_prunes_entry(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101")])
    tracker.toggle("101", True)

    assert tracker.toggle("101", False) is True

    assert tracker.selected_ids == ()
    assert tracker.is_selected("101") is False


def test_disabled_child_counts_as_unselected(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), branch("102")])

    tracker.toggle("101", True)

    assert tracker.visual_state("102") == VisualState.DISABLED
    assert tracker.visual_state("100") == VisualState.SOME


def test_selected_branch_with_undiscovered_child_is_incomplete(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    store.merge("100", [terminal("101"), branch("102")])

    tracker.toggle("100", True)

    assert tracker.is_incomplete("100") is True
    assert tracker.incomplete_nodes() == ["100"]


def test_incomplete_clears_once_child_is_expanded_empty(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    """Expanding the undiscovered child, even with zero results, completes the selection."""
    store.merge("100", [terminal("101"), branch("102")])
    tracker.toggle("100", True)

    store.merge("102", [])

    assert tracker.is_incomplete("100") is False
    assert tracker.visual_state("100") == VisualState.ALL


def test_unselected_node_is_never_incomplete(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    store.merge("100", [terminal("101"), branch("102")])

    assert tracker.is_incomplete("100") is False


def test_selected_articles_expands_selected_branches(
    store: TreeStore, tracker: SelectionTracker
) -> None:
    store.merge("100", [terminal("101"), terminal("102")])
    store.fold_pages("101", [Page(id="r1", title="Raptor"), Page(id="x", title="Shared")])
    store.fold_pages("102", [Page(id="x", title="Shared"), Page(id="s1", title="Puffin")])

    tracker.toggle("102", True)
    tracker.toggle("101", True)

    assert tracker.selected_articles() == [
        Article(id="x", title="Shared"),
        Article(id="s1", title="Puffin"),
        Article(id="r1", title="Raptor"),
    ]


def test_clear_drops_every_selection(store: TreeStore, tracker: SelectionTracker) -> None:
    store.merge("100", [terminal("101"), terminal("102")])
    tracker.toggle("101", True)
    tracker.toggle("102", True)

    tracker.clear()

    assert tracker.selected_ids == ()
    assert tracker.visual_state("100") == VisualState.NONE


def test_toggle_unknown_node_raises(tracker: SelectionTracker) -> None:
    with pytest.raises(UnknownNodeError):
        tracker.toggle("missing", True)

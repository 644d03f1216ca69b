"""Tri-state selection over the explored category tree."""

from loguru import logger

from category_explorer.core.tree.store import TreeStore
from category_explorer.models.node import Article, NodeId, VisualState


class SelectionTracker:
    """Track explicitly selected nodes and derive their displayed state.

    Selection is per node and never cascades: toggling one node leaves every
    other entry alone. The displayed state is recomputed from the tree on each
    call: a node shows as selected when any selected node reaches it through
    child links, so a category listed under several parents follows each of them.
    """

    def __init__(self, store: TreeStore) -> None:
        self.store = store
        # Insertion-ordered set of selected ids.
        self._selected: dict[NodeId, None] = {}

    @property
    def selected_ids(self) -> tuple[NodeId, ...]:
        return tuple(self._selected)

    def is_selected(self, node_id: NodeId) -> bool:
        return node_id in self._selected

    def toggle(self, node_id: NodeId, is_selected: bool) -> bool:
        """Select or deselect one node. Disabled nodes are left untouched.

        Returns:
            True if the selection was applied.
        """
        node = self.store.get(node_id)
        if node.is_disabled:
            logger.debug("Ignoring selection of {}: nothing discovered below it yet", node_id)
            return False
        if is_selected:
            self._selected.setdefault(node_id, None)
        else:
            self._selected.pop(node_id, None)
        return True

    def clear(self) -> None:
        self._selected.clear()

    def _covered(self) -> set[NodeId]:
        """Ids reachable through ``children`` from any selected node, selections included."""
        covered: set[NodeId] = set()
        stack = [node_id for node_id in self._selected if node_id in self.store]
        while stack:
            node_id = stack.pop()
            if node_id in covered:
                continue
            covered.add(node_id)
            stack.extend(c for c in self.store.get(node_id).children if c in self.store)
        return covered

    def visual_state(self, node_id: NodeId) -> VisualState:
        """Return none/some/all for a node, or disabled if it cannot be selected yet."""
        return self._state(node_id, self._covered(), frozenset())

    def _state(
        self, node_id: NodeId, covered: set[NodeId], visiting: frozenset[NodeId]
    ) -> VisualState:
        node = self.store.get(node_id)
        if node.is_disabled:
            return VisualState.DISABLED
        selected = node_id in covered
        if not node.children:
            return VisualState.ALL if selected else VisualState.NONE

        visiting = visiting | {node_id}
        child_states = {
            self._state(child_id, covered, visiting)
            for child_id in node.children
            if child_id not in visiting
        }
        # Disabled children hold nothing selectable yet.
        if VisualState.DISABLED in child_states:
            child_states.discard(VisualState.DISABLED)
            child_states.add(VisualState.NONE)

        if not child_states:
            return VisualState.ALL if selected else VisualState.NONE
        if child_states == {VisualState.ALL}:
            return VisualState.ALL
        if child_states == {VisualState.NONE}:
            return VisualState.NONE
        return VisualState.SOME

    def is_incomplete(self, node_id: NodeId) -> bool:
        """True when a selected node has a child branch with nothing discovered yet."""
        if node_id not in self._selected:
            return False
        return any(child.is_disabled for child in self.store.children_of(node_id))

    def incomplete_nodes(self) -> list[NodeId]:
        return [node_id for node_id in self._selected if self.is_incomplete(node_id)]

    def selected_articles(self) -> list[Article]:
        """Known articles under every selected node, first occurrence wins."""
        articles: dict[NodeId, Article] = {}
        for node_id in self._selected:
            for article in self.store.known_articles(node_id):
                articles.setdefault(article.id, article)
        return list(articles.values())

"""Depth-bounded, incremental expansion of the category tree."""

import asyncio
from collections.abc import Callable

from loguru import logger

from category_explorer.config import DEFAULT_LOCALE, DEPTH_LIMIT
from category_explorer.core.tree.store import TreeStore
from category_explorer.errors import FetchFailure
from category_explorer.models.node import ExpansionStats, LoadState, NodeId, TreeNode
from category_explorer.protocols import CategoryFetcherProtocol


def _log_failure(failure: FetchFailure) -> None:
    logger.warning("{}", failure)


class Orchestrator:
    """Fetch children on demand and merge them into the store as they arrive.

    A manual ``expand`` loads one level and then prefetches each discovered
    category up to ``depth_limit`` levels of lookahead, so the caller can tell
    right away whether those children are expandable themselves. Sibling
    subtrees load concurrently; a failure in one never aborts the others.

    ``loaded`` holds every node whose fetch has started and not failed. A node
    in it, or one that already has children, is never fetched again until
    ``invalidate`` is called.
    """

    def __init__(
        self,
        store: TreeStore,
        fetcher: CategoryFetcherProtocol,
        *,
        locale: str = DEFAULT_LOCALE,
        depth_limit: int = DEPTH_LIMIT,
        loaded: set[NodeId] | None = None,
        notify: Callable[[FetchFailure], None] | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.locale = locale
        self.depth_limit = depth_limit
        self.loaded: set[NodeId] = loaded if loaded is not None else set()
        self._notify = notify or _log_failure
        self._loading: set[NodeId] = set()
        self._failed: set[NodeId] = set()

    def _is_loaded(self, node: TreeNode) -> bool:
        return bool(node.children) or node.id in self.loaded

    def state(self, node_id: NodeId) -> LoadState:
        node = self.store.get(node_id)
        if node_id in self._loading:
            return LoadState.LOADING
        if self._is_loaded(node):
            return LoadState.EXPANDED
        if node_id in self._failed:
            return LoadState.FAILED
        return LoadState.UNEXPANDED

    def invalidate(self, node_id: NodeId) -> None:
        """Allow a node to be fetched again.

        Only childless nodes are refetched: a node with attached children still
        counts as loaded, and its children are never replaced.
        """
        self.store.get(node_id)
        self.loaded.discard(node_id)
        self._failed.discard(node_id)

    async def expand(self, node_id: NodeId, *, lookahead: bool = True) -> ExpansionStats:
        """Load a node's children, then prefetch below them unless ``lookahead`` is off."""
        node = self.store.get(node_id)
        if self._is_loaded(node):
            logger.debug("Node {} already loaded, skipping expand", node_id)
            return ExpansionStats(node_id=node_id)

        stats = await self._load(node_id, depth=0 if lookahead else self.depth_limit)
        logger.info(
            "Expanded {}: {} fetches, {} new nodes, {} failures",
            node.name,
            stats.fetch_calls,
            stats.nodes_added,
            len(stats.failures),
        )
        return stats

    async def prefetch(self, node_id: NodeId, depth: int) -> ExpansionStats:
        """Speculatively load a node found ``depth`` levels below a manual expand."""
        if depth > self.depth_limit:
            return ExpansionStats(node_id=node_id)
        if self._is_loaded(self.store.get(node_id)):
            return ExpansionStats(node_id=node_id)
        return await self._load(node_id, depth)

    async def load_pages(self, node_id: NodeId) -> ExpansionStats:
        """Fetch a single level for a node, without lookahead.

        Used for terminal categories, whose articles are only known once they
        have been fetched.
        """
        if self._is_loaded(self.store.get(node_id)):
            return ExpansionStats(node_id=node_id)
        return await self._load(node_id, depth=self.depth_limit)

    async def _load(self, node_id: NodeId, depth: int) -> ExpansionStats:
        # Mark first, so requests arriving while the fetch is in flight are no-ops.
        self.loaded.add(node_id)
        self._loading.add(node_id)
        self._failed.discard(node_id)
        try:
            listing = await self.fetcher.fetch_children(node_id, self.locale, True)
        except FetchFailure as failure:
            self.loaded.discard(node_id)
            self._failed.add(node_id)
            self._notify(failure)
            return ExpansionStats(node_id=node_id, fetch_calls=1, failures=(failure,))
        finally:
            self._loading.discard(node_id)

        size_before = len(self.store)
        children = [sub.to_node(node_id) for sub in listing.subcategories]
        self.store.fold_pages(node_id, listing.pages)
        self.store.merge(node_id, children)
        stats = ExpansionStats(
            node_id=node_id,
            fetch_calls=1,
            nodes_added=len(self.store) - size_before,
        )

        child_depth = depth + 1
        if children and child_depth <= self.depth_limit:
            results = await asyncio.gather(
                *(self.prefetch(child.id, child_depth) for child in children)
            )
            for result in results:
                stats = stats.combine(result)

        return stats

"""An exploration session over one category tree."""

from typing import Any

from loguru import logger

from category_explorer.config import DEFAULT_LOCALE, DEPTH_LIMIT, ROOT_ID
from category_explorer.core.orchestrator import Orchestrator
from category_explorer.core.selection import SelectionTracker
from category_explorer.core.tree.render import render_outline
from category_explorer.core.tree.store import TreeStore
from category_explorer.errors import FetchFailure
from category_explorer.export import ExportFormat, encode
from category_explorer.models.node import Article, ExpansionStats, LoadState, NodeId, VisualState
from category_explorer.protocols import CategoryFetcherProtocol


class CategoryExplorer:
    """Wire a TreeStore, Orchestrator and SelectionTracker for one category.

    Fetch failures never raise out of ``expand`` or ``select``; they are
    collected in ``notices`` for the user.
    """

    def __init__(
        self,
        category: str,
        fetcher: CategoryFetcherProtocol,
        *,
        locale: str = DEFAULT_LOCALE,
        depth_limit: int = DEPTH_LIMIT,
        root_id: NodeId = ROOT_ID,
    ) -> None:
        self.category = category
        self.locale = locale
        self.notices: list[str] = []
        self.store = TreeStore.create(root_id)
        self.orchestrator = Orchestrator(
            self.store,
            fetcher,
            locale=locale,
            depth_limit=depth_limit,
            notify=self._on_failure,
        )
        self.tracker = SelectionTracker(self.store)

    @classmethod
    async def open(
        cls,
        category: str,
        fetcher: CategoryFetcherProtocol,
        *,
        locale: str = DEFAULT_LOCALE,
        depth_limit: int = DEPTH_LIMIT,
        root_id: NodeId = ROOT_ID,
    ) -> "CategoryExplorer":
        """Resolve a category and load its first level.

        Raises:
            FetchFailure: If the category itself cannot be found or fetched.
        """
        explorer = cls(category, fetcher, locale=locale, depth_limit=depth_limit, root_id=root_id)
        top = await fetcher.resolve_category(category, locale)
        explorer.store.add_top_level(top.to_node(explorer.store.root_id))

        stats = await explorer.orchestrator.expand(top.id, lookahead=False)
        if stats.failures:
            raise stats.failures[0]
        logger.info("Opened {} ({}) with {} nodes", top.label, locale, len(explorer.store))
        return explorer

    def _on_failure(self, failure: FetchFailure) -> None:
        logger.warning("{}", failure)
        self.notices.append(str(failure))

    @property
    def top_id(self) -> NodeId:
        top_id = self.store.top_id
        if top_id is None:
            msg = "Explorer has not been opened"
            raise RuntimeError(msg)
        return top_id

    async def expand(self, node_id: NodeId) -> ExpansionStats:
        return await self.orchestrator.expand(node_id)

    async def select(self, node_id: NodeId, is_selected: bool = True) -> bool:
        """Select or deselect a node, fetching a terminal category's articles first.

        Terminal categories are never expanded, so their articles are only
        fetched here, the first time one is selected. Children of the explored
        category always need this, since the initial load does not look ahead.

        Returns:
            True if the selection was applied.
        """
        node = self.store.get(node_id)
        needs_pages = not node.is_branch and self.orchestrator.state(node_id) != LoadState.EXPANDED
        if is_selected and needs_pages:
            if self.store.is_first_level(node_id):
                logger.debug("Eagerly fetching first-level category {}", node_id)
            stats = await self.orchestrator.load_pages(node_id)
            if stats.failures:
                return False
        return self.tracker.toggle(node_id, is_selected)

    def visual_state(self, node_id: NodeId) -> VisualState:
        return self.tracker.visual_state(node_id)

    def is_incomplete(self, node_id: NodeId) -> bool:
        return self.tracker.is_incomplete(node_id)

    def selected_articles(self) -> list[Article]:
        return self.tracker.selected_articles()

    def render(
        self,
        *,
        node_id: NodeId | None = None,
        max_depth: int | None = None,
        include_articles: bool = False,
    ) -> str:
        return render_outline(
            self.store,
            self.tracker,
            node_id=node_id,
            max_depth=max_depth,
            include_articles=include_articles,
        )

    def export(self, fmt: ExportFormat | str = ExportFormat.CSV) -> str:
        incomplete = self.tracker.incomplete_nodes()
        if incomplete:
            logger.warning(
                "Selection may be missing articles below unexpanded categories: {}",
                ", ".join(incomplete),
            )
        return encode(self.selected_articles(), fmt)

    def describe(self, node_id: NodeId) -> dict[str, Any]:
        """Summarize one node for tool output."""
        node = self.store.get(node_id)
        return {
            "id": node.id,
            "name": node.name,
            "is_branch": node.is_branch,
            "load_state": str(self.orchestrator.state(node_id)),
            "visual_state": str(self.tracker.visual_state(node_id)),
            "selected": self.tracker.is_selected(node_id),
            "incomplete": self.tracker.is_incomplete(node_id),
            "children": list(node.children),
            "article_count": len(node.metadata),
        }

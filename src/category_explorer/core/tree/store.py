"""Flat, id-indexed store of the explored category tree."""

import dataclasses
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from loguru import logger

from category_explorer.config import ROOT_ID
from category_explorer.errors import InvalidParentError, UnknownNodeError
from category_explorer.models.node import Article, NodeId, Page, TreeNode


class TreeStore:
    """Own the node mapping and apply merges to it.

    Nodes reference their children by id, never directly. Every mutation swaps
    in a new mapping, so ``nodes`` keeps its identity until the tree changes.
    Nodes are never removed.
    """

    def __init__(self, nodes: Mapping[NodeId, TreeNode], *, root_id: NodeId = ROOT_ID) -> None:
        if root_id not in nodes:
            raise UnknownNodeError(root_id)
        self.root_id = root_id
        self._set_nodes(dict(nodes))

    @classmethod
    def create(cls, root_id: NodeId = ROOT_ID) -> "TreeStore":
        """Create a store holding only the synthetic root."""
        root = TreeNode(id=root_id, name="root", is_branch=True)
        return cls({root_id: root}, root_id=root_id)

    def _set_nodes(self, nodes: dict[NodeId, TreeNode]) -> None:
        self._nodes = nodes
        self._view: Mapping[NodeId, TreeNode] = MappingProxyType(nodes)

    @property
    def nodes(self) -> Mapping[NodeId, TreeNode]:
        return self._view

    @property
    def top_id(self) -> NodeId | None:
        """Id of the explored category: the root's first child."""
        children = self._nodes[self.root_id].children
        return children[0] if children else None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: NodeId) -> TreeNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def children_of(self, node_id: NodeId) -> list[TreeNode]:
        return [self._nodes[child_id] for child_id in self.get(node_id).children]

    def parent_of(self, node_id: NodeId) -> TreeNode | None:
        parent_id = self.get(node_id).parent_id
        return self._nodes.get(parent_id) if parent_id is not None else None

    def is_first_level(self, node_id: NodeId) -> bool:
        """True for direct children of the explored category."""
        top_id = self.top_id
        return top_id is not None and self.get(node_id).parent_id == top_id

    # --- Mutations ---

    def merge(self, parent_id: NodeId, children: Iterable[TreeNode]) -> Mapping[NodeId, TreeNode]:
        """Attach fetched children to a parent without duplicating anything.

        Children not yet in the tree are inserted. The parent's child list is
        set only while it is still empty, so the first expansion to complete
        wins and a later, overlapping one only contributes standalone nodes.
        An empty result for a childless branch means the source reported no
        subcategories, so the parent stops being a branch.
        """
        if parent_id not in self._nodes:
            raise InvalidParentError(parent_id)

        children = list(children)
        new_nodes = dict(self._nodes)
        added = 0
        for child in children:
            if child.id not in new_nodes:
                new_nodes[child.id] = child
                added += 1

        parent = new_nodes[parent_id]
        attached = False
        if not parent.children:
            child_ids = tuple(dict.fromkeys(c.id for c in children if c.id != parent_id))
            if child_ids:
                new_nodes[parent_id] = dataclasses.replace(parent, children=child_ids)
                attached = True
            elif parent.is_branch and parent_id != self.root_id:
                new_nodes[parent_id] = dataclasses.replace(parent, is_branch=False)
                attached = True

        if not added and not attached:
            return self._view

        logger.debug(
            "Merged {} children into {} ({} new, attached={})",
            len(children),
            parent_id,
            added,
            attached,
        )
        self._set_nodes(new_nodes)
        return self._view

    def add_top_level(self, node: TreeNode) -> Mapping[NodeId, TreeNode]:
        """Make ``node`` the explored category, the root's only child."""
        node = dataclasses.replace(node, parent_id=self.root_id)
        return self.merge(self.root_id, [node])

    def fold_pages(self, node_id: NodeId, pages: Iterable[Page]) -> Mapping[NodeId, TreeNode]:
        """Record leaf articles in a category's metadata; known ids are kept."""
        node = self.get(node_id)
        metadata = dict(node.metadata)
        for page in pages:
            metadata.setdefault(page.id, page.title)
        if len(metadata) == len(node.metadata):
            return self._view

        new_nodes = dict(self._nodes)
        new_nodes[node_id] = dataclasses.replace(node, metadata=MappingProxyType(metadata))
        self._set_nodes(new_nodes)
        return self._view

    # --- Traversal ---

    def iter_subtree(self, node_id: NodeId) -> Iterator[TreeNode]:
        """Walk a node and its known descendants in pre-order."""
        todo: list[NodeId] = [self.get(node_id).id]
        seen: set[NodeId] = set()
        while todo:
            current = todo.pop(0)
            if current in seen or current not in self._nodes:
                continue
            seen.add(current)
            node = self._nodes[current]
            todo = list(node.children) + todo
            yield node

    def known_articles(self, node_id: NodeId) -> list[Article]:
        """Articles listed by a node and by every known descendant, de-duplicated."""
        articles: dict[NodeId, Article] = {}
        for node in self.iter_subtree(node_id):
            for article_id, title in node.metadata.items():
                if article_id not in articles:
                    articles[article_id] = Article(id=article_id, title=title)
        return list(articles.values())

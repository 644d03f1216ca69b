"""Domain models for the category explorer."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from category_explorer.errors import FetchFailure

NodeId = str

_EMPTY: Mapping[str, str] = MappingProxyType({})


def _empty_metadata() -> Mapping[str, str]:
    return _EMPTY


def remove_category_prefix(title: str) -> str:
    """Strip a namespace prefix such as ``Category:`` from a page title."""
    return title[title.find(":") + 1 :]


@dataclass(frozen=True, eq=True)
class TreeNode:
    """A category (branch or terminal) in the explored tree.

    Leaf articles are not nodes; they live in the ``metadata`` of the category
    that lists them, keyed by article id.
    """

    id: NodeId
    name: str
    is_branch: bool
    children: tuple[NodeId, ...] = ()
    parent_id: NodeId | None = None
    metadata: Mapping[str, str] = field(default_factory=_empty_metadata, hash=False)

    @property
    def is_disabled(self) -> bool:
        """A branch with nothing discovered below it cannot be selected yet."""
        return self.is_branch and not self.children


@dataclass(frozen=True)
class Subcategory:
    """A category member of a listing, with its declared descendant counts."""

    id: NodeId
    title: str
    subcat_count: int = 0
    page_count: int = 0

    @property
    def is_branch(self) -> bool:
        return self.subcat_count > 0

    @property
    def label(self) -> str:
        name = remove_category_prefix(self.title).replace("_", " ")
        return f"{name} ({self.subcat_count} C, {self.page_count} P)"

    def to_node(self, parent_id: NodeId | None) -> TreeNode:
        return TreeNode(id=self.id, name=self.label, is_branch=self.is_branch, parent_id=parent_id)


@dataclass(frozen=True)
class Page:
    """A non-category member of a listing (an article)."""

    id: NodeId
    title: str


@dataclass(frozen=True)
class CategoryListing:
    """The immediate children of one category, already partitioned."""

    subcategories: tuple[Subcategory, ...] = ()
    pages: tuple[Page, ...] = ()


@dataclass(frozen=True)
class Article:
    """An exported leaf: article id and title."""

    id: NodeId
    title: str


class VisualState(StrEnum):
    NONE = "none"
    SOME = "some"
    ALL = "all"
    DISABLED = "disabled"


class LoadState(StrEnum):
    UNEXPANDED = "unexpanded"
    LOADING = "loading"
    EXPANDED = "expanded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExpansionStats:
    """Summary of one expansion, including any fetch failures below it."""

    node_id: NodeId
    fetch_calls: int = 0
    nodes_added: int = 0
    failures: tuple[FetchFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def combine(self, other: "ExpansionStats") -> "ExpansionStats":
        """Fold a child subtree's stats into this one."""
        return ExpansionStats(
            node_id=self.node_id,
            fetch_calls=self.fetch_calls + other.fetch_calls,
            nodes_added=self.nodes_added + other.nodes_added,
            failures=self.failures + other.failures,
        )

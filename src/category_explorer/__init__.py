"""Incremental explorer for hierarchical category trees."""

from category_explorer.core.orchestrator import Orchestrator
from category_explorer.core.selection import SelectionTracker
from category_explorer.core.tree.store import TreeStore
from category_explorer.explorer import CategoryExplorer
from category_explorer.fetcher import CategoryFetcher
from category_explorer.protocols import CategoryFetcherProtocol, ListingApiProtocol

__all__ = [
    "CategoryExplorer",
    "CategoryFetcher",
    "CategoryFetcherProtocol",
    "ListingApiProtocol",
    "Orchestrator",
    "SelectionTracker",
    "TreeStore",
]

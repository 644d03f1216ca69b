"""Shared test fixtures."""

import pytest

from category_explorer.core.tree.store import TreeStore
from category_explorer.models.node import TreeNode
from tests.unit.fakes import FakeFetcher, make_birds_fetcher


@pytest.fixture
def birds_fetcher() -> FakeFetcher:
    """Return a fake fetcher serving the bird taxonomy."""
    return make_birds_fetcher()


@pytest.fixture
def store() -> TreeStore:
    """Return a store with root -> Birds (100), nothing fetched yet."""
    tree = TreeStore.create()
    tree.add_top_level(TreeNode(id="100", name="Birds (3 C, 5 P)", is_branch=True))
    return tree

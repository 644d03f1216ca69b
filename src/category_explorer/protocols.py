"""Protocols for dependency injection in the category explorer."""

from typing import Any, Protocol, runtime_checkable

from category_explorer.models.node import CategoryListing, NodeId, Subcategory


@runtime_checkable
class ListingApiProtocol(Protocol):
    """Protocol for MediaWiki Action API clients."""

    def fetch_all(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run a query, following continuation, and return the merged JSON."""
        ...


@runtime_checkable
class CategoryFetcherProtocol(Protocol):
    """Protocol for the paginated category-listing collaborator.

    Implementations raise ``FetchFailure`` when no data could be obtained.
    """

    async def fetch_children(
        self,
        node_id: NodeId,
        locale: str,
        include_metadata: bool = True,
    ) -> CategoryListing:
        """Return the immediate subcategories and pages of a category."""
        ...

    async def resolve_category(self, title: str, locale: str) -> Subcategory:
        """Look up a category by title and return its id and declared counts."""
        ...

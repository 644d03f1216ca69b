"""Category listing adapter over the MediaWiki Action API."""

import asyncio
from collections.abc import Callable
from typing import Any

import requests
from loguru import logger

from category_explorer.api import WikiActionApi
from category_explorer.errors import FetchFailure
from category_explorer.models.node import CategoryListing, NodeId, Page, Subcategory
from category_explorer.protocols import ListingApiProtocol

CATEGORY_PREFIX = "Category:"
CATEGORY_NAMESPACE = 14

_FETCH_ERRORS = (requests.RequestException, RuntimeError, ValueError, KeyError)


def _default_api_factory(locale: str) -> ListingApiProtocol:
    return WikiActionApi(locale)


def parse_listing(response: dict[str, Any]) -> CategoryListing:
    """Partition a categorymembers response into subcategories and pages.

    Members in the category namespace or carrying ``categoryinfo`` are
    categories; everything else is an article. Empty categories come back
    without ``categoryinfo``. Response order is kept as discovery order.
    """
    subcategories: list[Subcategory] = []
    pages: list[Page] = []
    for member in response.get("query", {}).get("pages", []):
        member_id = str(member["pageid"])
        info = member.get("categoryinfo")
        if info is None and member.get("ns") == CATEGORY_NAMESPACE:
            info = {}
        if info is not None:
            subcategories.append(
                Subcategory(
                    id=member_id,
                    title=member["title"],
                    subcat_count=int(info.get("subcats", 0)),
                    page_count=int(info.get("pages", 0)),
                )
            )
        else:
            pages.append(Page(id=member_id, title=member["title"]))
    return CategoryListing(subcategories=tuple(subcategories), pages=tuple(pages))


class CategoryFetcher:
    """Fetch the immediate children of a category, one node at a time.

    Pagination of large categories is resolved by the API client before a
    listing is returned. The blocking HTTP call runs in a worker thread.
    """

    def __init__(
        self,
        api_factory: Callable[[str], ListingApiProtocol] = _default_api_factory,
    ) -> None:
        self._api_factory = api_factory
        self._apis: dict[str, ListingApiProtocol] = {}

    def _api(self, locale: str) -> ListingApiProtocol:
        if locale not in self._apis:
            self._apis[locale] = self._api_factory(locale)
        return self._apis[locale]

    async def _call(self, node_id: NodeId, locale: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(self._api(locale).fetch_all, params)
        except _FETCH_ERRORS as e:
            raise FetchFailure(node_id, str(e)) from e

    async def fetch_children(
        self,
        node_id: NodeId,
        locale: str,
        include_metadata: bool = True,
    ) -> CategoryListing:
        """List subcategories (and, with ``include_metadata``, pages) of a category."""
        params: dict[str, Any] = {
            "generator": "categorymembers",
            "gcmpageid": node_id,
            "gcmlimit": "max",
            "gcmtype": "subcat|page" if include_metadata else "subcat",
            "prop": "categoryinfo",
        }
        logger.debug("Fetching children of {} ({})", node_id, locale)
        response = await self._call(node_id, locale, params)
        try:
            listing = parse_listing(response)
        except _FETCH_ERRORS as e:
            raise FetchFailure(node_id, f"malformed listing: {e}") from e
        logger.debug(
            "Node {}: {} subcategories, {} pages",
            node_id,
            len(listing.subcategories),
            len(listing.pages),
        )
        return listing

    async def resolve_category(self, title: str, locale: str) -> Subcategory:
        """Look up a category by title, adding the namespace prefix if missing."""
        full_title = title if ":" in title else CATEGORY_PREFIX + title
        params = {"titles": full_title, "prop": "categoryinfo"}
        response = await self._call(full_title, locale, params)

        pages = response.get("query", {}).get("pages", [])
        if not pages or pages[0].get("missing") or "pageid" not in pages[0]:
            raise FetchFailure(full_title, "category not found")

        page = pages[0]
        info = page.get("categoryinfo", {})
        return Subcategory(
            id=str(page["pageid"]),
            title=page["title"],
            subcat_count=int(info.get("subcats", 0)),
            page_count=int(info.get("pages", 0)),
        )

"""MediaWiki Action API client with optional caching."""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from category_explorer.config import (
    API_CACHE_PREFIX,
    API_URL_TEMPLATE,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF,
    USER_AGENT,
)

_BASE_PARAMS: dict[str, Any] = {"action": "query", "format": "json", "formatversion": "2"}


class WikiActionApi:
    """Encapsulated MediaWiki Action API for one wiki, with caching."""

    def __init__(self, locale: str, *, from_cache: bool = False) -> None:
        self.locale = locale
        self.url = API_URL_TEMPLATE.format(locale=locale)
        self.from_cache = from_cache
        self.logger = logging.getLogger("api")

        self.sess = requests.Session()
        self.sess.headers["User-Agent"] = USER_AGENT
        # Retry only transport-level trouble; API errors in the body are not retried.
        retry = Retry(
            total=MAX_RETRIES,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        self.sess.mount("https://", HTTPAdapter(max_retries=retry))

        self.api_cache_prefix: str | None = API_CACHE_PREFIX if from_cache else None

        self.logger.debug(
            f"API ready: {self.url!r}, from_cache {self.from_cache!r}, "
            f"api_cache_prefix {self.api_cache_prefix!r}"
        )

        if self.api_cache_prefix:
            Path(self.api_cache_prefix).parent.mkdir(parents=True, exist_ok=True)

    def _cache_name(self, params: dict[str, Any]) -> str | None:
        if not self.api_cache_prefix:
            return None
        params_str = json.dumps(params, sort_keys=True, separators=(",", ":"))
        digest = hashlib.sha1(params_str.encode("utf-8")).hexdigest()
        return f"{self.api_cache_prefix}{self.locale}--{digest}"

    def query(self, params: dict[str, Any]) -> dict[str, Any]:
        """Invoke one action=query request, return json."""
        full_params = {**_BASE_PARAMS, **params}

        cache_name = self._cache_name(full_params)
        if cache_name and Path(cache_name).exists():
            self.logger.debug(f"Filled from cache: {cache_name!r}")
            with open(cache_name, encoding="utf-8") as f:
                return json.load(f)  # type: ignore[no-any-return]

        self.logger.debug(f"Making request: {self.locale!r} {repr(params)[:64]}")

        r = self.sess.get(self.url, params=full_params, timeout=REQUEST_TIMEOUT)
        r.raise_for_status()
        rv: dict[str, Any] = r.json()
        if "error" in rv:
            error = rv["error"]
            msg = f"API call failed: {params!r} -> ({error.get('code')!r}, {error.get('info')!r})"
            raise RuntimeError(msg)
        if cache_name:
            with open(cache_name, "w", encoding="utf-8") as f:
                f.write(r.text)

        return rv

    def fetch_all(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run a query, following ``continue`` until the batch is complete.

        Pages returned across batches are merged by page id, so a page whose
        properties were split over several responses comes back as one entry.
        Other keys under ``query`` keep the value from the first batch.
        """
        pages: dict[int | str, dict[str, Any]] = {}
        merged: dict[str, Any] = {}
        continue_args: dict[str, Any] = {}
        num_batches = 0

        while True:
            rv = self.query({**params, **continue_args})
            num_batches += 1
            query = rv.get("query", {})
            for page in query.get("pages", []):
                pages.setdefault(page.get("pageid", page.get("title", "")), {}).update(page)
            for key, value in query.items():
                if key != "pages":
                    merged.setdefault(key, value)

            if "continue" not in rv:
                break
            continue_args = rv["continue"]

        self.logger.debug(f"Fetched {len(pages)} pages in {num_batches} batches")
        return {"query": {**merged, "pages": list(pages.values())}}

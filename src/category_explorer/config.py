"""Configuration constants for category-explorer."""

import os
from dataclasses import dataclass

# Levels of speculative lookahead below a manually expanded node.
DEPTH_LIMIT: int = 1

DEFAULT_LOCALE: str = "en"

# Id of the synthetic root node. Its only child is the explored category.
ROOT_ID: str = "root"

API_URL_TEMPLATE: str = "https://{locale}.wikipedia.org/w/api.php"

# Wikimedia asks API clients to identify themselves.
USER_AGENT: str = "category-explorer/0.1 (https://github.com/category-explorer)"

# Transport-level retries for 429 and 5xx responses, handled by the HTTP adapter.
MAX_RETRIES: int = 3
RETRY_BACKOFF: float = 1.0

# Seconds, for both connect and read.
REQUEST_TIMEOUT: float = 30.0

# Cache prefix, used only when the cache is enabled.
API_CACHE_PREFIX: str = "/tmp/category-explorer-cache/cache-"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Effective settings after applying environment overrides."""

    locale: str = DEFAULT_LOCALE
    depth_limit: int = DEPTH_LIMIT
    use_cache: bool = False


def resolve_settings() -> Settings:
    """Read CATEGORY_EXPLORER_* environment variables over the defaults."""
    locale = os.environ.get("CATEGORY_EXPLORER_LOCALE") or DEFAULT_LOCALE

    depth_env = os.environ.get("CATEGORY_EXPLORER_DEPTH_LIMIT")
    depth_limit = DEPTH_LIMIT
    if depth_env:
        try:
            depth_limit = int(depth_env)
        except ValueError:
            msg = f"CATEGORY_EXPLORER_DEPTH_LIMIT must be an integer, got {depth_env!r}"
            raise ValueError(msg) from None
        if depth_limit < 0:
            msg = f"CATEGORY_EXPLORER_DEPTH_LIMIT must not be negative, got {depth_limit}"
            raise ValueError(msg)

    use_cache = os.environ.get("CATEGORY_EXPLORER_CACHE", "").strip().lower() in _TRUTHY

    return Settings(locale=locale, depth_limit=depth_limit, use_cache=use_cache)

"""Error types raised and reported by the category explorer."""


class ExplorerError(Exception):
    """Base class for category explorer errors."""


class FetchFailure(ExplorerError):
    """The listing collaborator returned no data for a node.

    Recoverable: the node stays retryable and the failure is reported to the
    caller instead of being raised across a prefetch boundary.
    """

    def __init__(self, node_id: str, reason: str) -> None:
        super().__init__(f"Failed to fetch subcategories of {node_id!r}: {reason}")
        self.node_id = node_id
        self.reason = reason


class UnknownNodeError(ExplorerError, KeyError):
    """A node id that is not part of the tree."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown node: {self.node_id!r}"


class InvalidParentError(UnknownNodeError):
    """A merge was requested against a parent id that is not in the tree."""

    def __str__(self) -> str:
        return f"Cannot merge children into unknown parent {self.node_id!r}"

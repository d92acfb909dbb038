class BloomCartError(Exception):
    """Base class for all exceptions in bloomcart."""


class CacheError(BloomCartError):
    """Exception raised for cache-related errors."""


class BackendNotFoundError(CacheError):
    """Exception raised when a required cache backend is not configured."""


class FetchError(BloomCartError):
    """Exception raised when a catalog collaborator fails to return data."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Failed to fetch data for cache key {key!r}")


class CatalogEntityNotFoundError(BloomCartError):
    """Exception raised when a referenced catalog entity does not exist."""


class CartItemNotFoundError(BloomCartError):
    """Exception raised when a cart line cannot be found by id."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Cart item {item_id!r} not found")


class OrderSubmissionError(BloomCartError):
    """Exception raised when an order cannot be submitted."""


class EmptyCartError(OrderSubmissionError):
    """Exception raised when checking out a cart with no lines."""

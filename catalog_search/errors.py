"""Error kinds raised by the search core and their transport status codes."""
from __future__ import annotations


class CatalogSearchError(Exception):
    """Base class for errors surfaced to callers of the search core."""


class InvalidQuery(CatalogSearchError):
    """The query (or product payload) is empty or malformed."""


class RetrievalError(CatalogSearchError):
    """The product store could not answer the candidate query."""


class ProductNotFound(CatalogSearchError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id!r} not found")
        self.product_id = product_id


# Transport-level status for each error kind. Unlisted kinds map to 500.
ERROR_STATUS: dict[type[CatalogSearchError], int] = {
    InvalidQuery: 400,
    ProductNotFound: 404,
    RetrievalError: 503,
}


def status_for(exc: BaseException) -> int:
    for kind in type(exc).__mro__:
        if kind in ERROR_STATUS:
            return ERROR_STATUS[kind]
    return 500

"""
Pagination over inFlow collection endpoints.

Collection endpoints are paged with `top`/`skip` query parameters. Depending
on the endpoint, a page body is a bare JSON array, an envelope object with a
`value` array, or a single object (the endpoint is not paginated at all).

The walker is schema-agnostic: items are deduplicated by the first field whose
name ends in "Id" and holds a string, which covers every inFlow resource type
(`productId`, `customerId`, `salesOrderId`, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ID_SUFFIX = "Id"
DEFAULT_PAGE_SIZE = 100


# =============================================================================
# Page Shapes
# =============================================================================


@dataclass(frozen=True)
class ItemList:
    """A page returned as a bare JSON array."""

    items: list[Any]


@dataclass(frozen=True)
class Envelope:
    """A page returned as an object wrapping the items in `value`."""

    items: list[Any]


@dataclass(frozen=True)
class SingleItem:
    """A body holding one item; the endpoint is not paginated."""

    item: Any


PageShape = ItemList | Envelope | SingleItem


def decode_page(body: Any) -> PageShape:
    """
    Classify a decoded response body by its shape.

    Example:
        >>> decode_page([{"productId": "a"}])
        ItemList(items=[{'productId': 'a'}])
        >>> decode_page({"value": []})
        Envelope(items=[])
        >>> decode_page({"productId": "a"})
        SingleItem(item={'productId': 'a'})
    """
    if isinstance(body, list):
        return ItemList(items=body)
    if isinstance(body, dict) and isinstance(body.get("value"), list):
        return Envelope(items=body["value"])
    return SingleItem(item=body)


def extract_id(item: Any) -> str | None:
    """
    Return the item's identifier, or None if it has none.

    The identifier is the value of the first field whose name ends in "Id"
    and whose value is a string.
    """
    if not isinstance(item, dict):
        return None
    for key, value in item.items():
        if isinstance(key, str) and key.endswith(ID_SUFFIX) and isinstance(value, str):
            return value
    return None


# =============================================================================
# Walker
# =============================================================================


@dataclass
class PageCursor:
    """
    Position of the next page to request.

    Attributes:
        offset: Number of items to skip (`skip`).
        page_size: Number of items requested per page (`top`).
    """

    offset: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    def advance(self, count: int) -> None:
        """Move past `count` received items."""
        assert count > 0, "A cursor only advances past non-empty pages."
        self.offset += count

    def as_params(self) -> dict[str, int]:
        return {"top": self.page_size, "skip": self.offset}


class Paginator:
    """
    Drains a paginated endpoint into a deduplicated, order-stable list.

    Termination:
        - a single-item body returns immediately as a one-element list;
        - an empty page ends the walk;
        - a page that adds no new item ends the walk, which protects against
          servers that keep echoing the last page once `skip` runs past the
          end of the collection.

    Items without an extractable identifier are always kept.

    Args:
        fetch_page: Callable taking `(endpoint, params)` and returning the
            decoded JSON body (usually `InflowClient.get`).
        page_size: Number of items requested per page.

    Example:
        >>> paginator = Paginator(fetch_page=client.get, page_size=100)
        >>> products = paginator.fetch_all("/products", {"includeInactive": True})
    """

    def __init__(
        self,
        fetch_page: Callable[[str, dict[str, Any]], Any],
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        assert fetch_page is not None, "fetch_page cannot be None."
        assert page_size is not None, "page_size cannot be None."
        assert page_size > 0, "page_size must be greater than 0."

        self.fetch_page = fetch_page
        self.page_size = page_size

    def fetch_all(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        """
        Fetch every page of `endpoint`.

        Args:
            endpoint: Endpoint path (e.g. "/products").
            params: Extra query parameters. They never override `top`/`skip`.
            limit: Stop once this many items have been collected.

        Returns:
            The deduplicated items, in the order the server returned them.
        """
        assert limit is None or limit > 0, "limit must be greater than 0 or None."

        cursor = PageCursor(offset=0, page_size=self.page_size)
        seen_ids: set[str] = set()
        items: list[Any] = []
        page_number = 1

        while True:
            logger.info(f"  Fetching {endpoint} page {page_number} (skip={cursor.offset})...")
            body = self.fetch_page(endpoint, {**(params or {}), **cursor.as_params()})

            match decode_page(body):
                case SingleItem(item=item):
                    logger.info(f"  Fetched 1 record from {endpoint}")
                    return [item]
                case ItemList(items=page) | Envelope(items=page):
                    pass

            if not page:
                logger.info(f"  Completed {endpoint}: {len(items)} total records")
                break

            new_count = 0
            for item in page:
                item_id = extract_id(item)
                if item_id is not None:
                    if item_id in seen_ids:
                        continue
                    seen_ids.add(item_id)
                items.append(item)
                new_count += 1

                if limit is not None and len(items) >= limit:
                    logger.info(f"  Completed {endpoint}: reached limit of {limit} records")
                    return items

            if new_count == 0:
                logger.info(f"  Completed {endpoint}: {len(items)} total records (no new items)")
                break

            cursor.advance(len(page))
            page_number += 1

        return items

"""
Offset based pagination over list endpoints.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, List, Mapping, Optional, Sequence, TypeVar

from .errors import ErrorKind, PayOSError

__all__ = [
    "Page",
    "Pagination",
    "build_page",
    "iterate_items",
]

T = TypeVar("T")
R = TypeVar("R")

FetchPage = Callable[[int, int], R]


@dataclass(frozen=True)
class Pagination:
    limit: int
    offset: int
    total: int
    count: int
    has_more: bool

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Pagination":
        return cls(
            limit=int(payload.get("limit") or 0),
            offset=int(payload.get("offset") or 0),
            total=int(payload.get("total") or 0),
            count=int(payload.get("count") or 0),
            has_more=bool(payload.get("hasMore", False)),
        )


class Page(Generic[T, R]):
    """
    One fetched page plus the means to fetch its neighbours.

    ``fetch_page(offset, limit)`` is shared with every page derived through
    :meth:`next_page` and :meth:`previous_page`. Iterating a page yields its
    items and then those of every following page, fetching lazily until the
    server reports ``hasMore`` false.
    """

    def __init__(
        self,
        response: R,
        fetch_page: FetchPage,
        get_pagination: Callable[[R], Pagination],
        get_items: Callable[[R], Sequence[T]],
    ) -> None:
        if response is None:
            raise PayOSError(ErrorKind.INVALID_INPUT, "Page response must not be None")
        self.response = response
        self._fetch_page = fetch_page
        self._get_pagination = get_pagination
        self._get_items = get_items
        self.pagination = get_pagination(response)
        self.data: List[T] = list(get_items(response) or ())

    @property
    def has_next_page(self) -> bool:
        return self.pagination.has_more

    @property
    def has_previous_page(self) -> bool:
        return self.pagination.offset > 0

    def _derive(self, response: R) -> "Page[T, R]":
        return Page(response, self._fetch_page, self._get_pagination, self._get_items)

    def next_page(self) -> "Page[T, R]":
        if not self.has_next_page:
            raise PayOSError(ErrorKind.NO_MORE_PAGES, "No more pages available")
        offset = self.pagination.offset + self.pagination.count
        return self._derive(self._fetch_page(offset, self.pagination.limit))

    def previous_page(self) -> "Page[T, R]":
        # Steps back by ``limit`` rather than the previous page's count, so
        # after a short page this does not land on the exact prior window.
        if not self.has_previous_page:
            raise PayOSError(ErrorKind.NO_PREVIOUS_PAGES, "No previous pages available")
        offset = max(0, self.pagination.offset - self.pagination.limit)
        return self._derive(self._fetch_page(offset, self.pagination.limit))

    def iter_pages(self, cancel_event: Optional[threading.Event] = None) -> Iterator["Page[T, R]"]:
        page: Page[T, R] = self
        while True:
            yield page
            if not page.has_next_page or (cancel_event is not None and cancel_event.is_set()):
                return
            page = page.next_page()

    def iter_items(self, cancel_event: Optional[threading.Event] = None) -> Iterator[T]:
        """
        Single-pass iterator over this page's items and all following pages.

        Setting ``cancel_event`` stops the iteration before the next fetch.
        """
        for page in self.iter_pages(cancel_event):
            for item in page.data:
                if cancel_event is not None and cancel_event.is_set():
                    return
                yield item

    def __iter__(self) -> Iterator[T]:
        return self.iter_items()

    def to_list(self, cancel_event: Optional[threading.Event] = None) -> List[T]:
        return list(self.iter_items(cancel_event))

    def __repr__(self) -> str:
        p = self.pagination
        return (
            f"Page(offset={p.offset}, limit={p.limit}, count={p.count}, "
            f"total={p.total}, has_more={p.has_more})"
        )


def build_page(
    initial_response: R,
    fetch_page: FetchPage,
    get_pagination: Callable[[R], Pagination],
    get_items: Callable[[R], Sequence[T]],
) -> Page[T, R]:
    return Page(initial_response, fetch_page, get_pagination, get_items)


def iterate_items(
    fetch_page: FetchPage,
    get_pagination: Callable[[R], Pagination],
    get_items: Callable[[R], Sequence[T]],
    *,
    page_size: int = 50,
    starting_offset: int = 0,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[T]:
    """Fetch the first page at ``starting_offset`` and yield every item from there on."""
    response = fetch_page(starting_offset, page_size)
    yield from Page(response, fetch_page, get_pagination, get_items).iter_items(cancel_event)

"""Paginated collections shared by every list endpoint.

A Page is an immutable snapshot of one server page plus everything needed
to ask for the next one: the original request parameters and the opaque
continuation token. Fetching the next page never mutates the current one.

Traversal over many pages is lazy. `Page.all()` returns an iterable that
starts from the page it was created on every time it is iterated, while
each individual iterator is single-pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence, TypeVar

import structlog

from gcops.core.errors import PreconditionViolation

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PageQuery:
    """
    The replayable part of a list request.

    Attributes:
        params: Filter and size criteria of the original request
                (for example `max_results`, `prefix`, `all_users`).
        token: Continuation token of the page to fetch, None for the first page.
    """

    params: Mapping[str, Any] = field(default_factory=dict)
    token: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def with_token(self, token: str | None) -> PageQuery:
        """Return the same query positioned at `token`."""
        return replace(self, params=dict(self.params), token=token)


@dataclass(frozen=True)
class Page(Sequence[T]):
    """
    One page of a server-paginated collection.

    Attributes:
        items: Items of this page only.
        token: Continuation token; None means this is the final page.
        query: Request that produced this page, replayed for the next one.
        fetch: Callable turning a PageQuery into the next Page.
        etag: Optional hash of the page as reported by the server.
        total: Optional total count reported by the server. Informational
               only: traversal trusts `token`, never `total`.
    """

    items: tuple[T, ...] = ()
    token: str | None = None
    query: PageQuery = field(default_factory=PageQuery)
    fetch: Callable[[PageQuery], Page[T]] | None = field(
        default=None, repr=False, compare=False
    )
    etag: str | None = None
    total: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        # an empty string token is how some APIs spell "no more pages"
        if not self.token:
            object.__setattr__(self, "token", None)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def has_next(self) -> bool:
        """Whether the server reported another page after this one."""
        return self.token is not None

    def next_page(self) -> Page[T]:
        """
        Fetch the page following this one.

        Raises:
            PreconditionViolation: If this is the final page, or the page was
                built without a fetcher.
        """
        if not self.has_next():
            raise PreconditionViolation("There is no next page: this is the final page.")
        if self.fetch is None:
            raise PreconditionViolation("This page has no connection to fetch more results.")
        logger.debug("page_requested", token=self.token, params=dict(self.query.params))
        return self.fetch(self.query.with_token(self.token))

    def all(
        self,
        request_limit: int | None = None,
        callback: Callable[[T], Any] | None = None,
    ) -> Traversal[T] | None:
        """
        Traverse this page and the pages after it.

        Args:
            request_limit: Upper bound on additional page fetches. 0 yields
                only the items of this page. None means no limit.
            callback: When given, the traversal runs immediately and the
                callback receives every item. When omitted a lazy Traversal
                is returned instead.

        Returns:
            A Traversal when no callback is given, otherwise None.
        """
        traversal = Traversal(self, request_limit=request_limit)
        if callback is None:
            return traversal
        for item in traversal:
            callback(item)
        return None


class Traversal(Iterable[T]):
    """Lazy, restartable iteration over a page and its successors."""

    def __init__(self, start: Page[T], request_limit: int | None = None):
        self.start = start
        self.request_limit = int(request_limit) if request_limit is not None else None

    def __iter__(self) -> Iterator[T]:
        page = self.start
        remaining = self.request_limit
        while True:
            yield from page.items
            if remaining is not None:
                remaining -= 1
                if remaining < 0:
                    return
            if not page.has_next():
                return
            page = page.next_page()

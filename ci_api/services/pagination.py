"""
Offset/limit pagination: window clamping, in-memory paging and link generation.

All functions here are pure; the same inputs always produce the same links.
"""

from typing import Any, Callable, Sequence
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel

from ci_api.config import settings
from ci_api.core.errors import WrongParamsError
from ci_api.schemas.pagination import Pagination, PaginationLink


class Page(BaseModel):
    """One window of a collection plus the size of the whole (filtered) collection."""

    items: list
    total_count: int
    offset: int
    limit: int


def resolve_window(
    limit: int | None,
    offset: int | None,
    default_limit: int | None = None,
    max_limit: int | None = None,
) -> tuple[int, int]:
    """
    Apply the window policy to caller-supplied values and return (offset, limit).
    Missing limit -> default; limit above max -> max; limit < 1 or offset < 0 -> WrongParamsError.
    """
    default_limit = default_limit or settings.pagination_default_limit
    max_limit = max_limit or settings.pagination_max_limit
    if offset is None:
        offset = 0
    if offset < 0:
        raise WrongParamsError("offset must be zero or a positive integer")
    if limit is None:
        limit = default_limit
    if limit < 1:
        raise WrongParamsError("limit must be a positive integer")
    return offset, min(limit, max_limit)


def paginate(
    items: Sequence[Any],
    offset: int,
    limit: int,
    item_filter: Callable[[Any], bool] | None = None,
) -> Page:
    """Build a page from an in-memory sequence. The filter runs before counting."""
    if item_filter is not None:
        items = [item for item in items if item_filter(item)]
    return Page(
        items=list(items[offset:offset + limit]),
        total_count=len(items),
        offset=offset,
        limit=limit,
    )


def last_offset(limit: int, total_count: int) -> int:
    """Largest multiple of limit strictly below total_count (0 for an empty collection)."""
    if total_count <= 0:
        return 0
    return ((total_count - 1) // limit) * limit


def page_href(base_uri: str, offset: int, limit: int, default_limit: int | None = None) -> str:
    """
    Rewrite base_uri to point at another window. Other query params keep their order,
    limit keeps its position, offset is dropped for the first page and appended otherwise.
    """
    path, _, query = base_uri.partition("?")
    params: list[tuple[str, str]] = []
    has_limit = False
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == "offset":
            continue
        if key == "limit":
            if has_limit:
                continue
            has_limit = True
            value = str(limit)
        params.append((key, value))
    if not has_limit and limit != default_limit:
        params.append(("limit", str(limit)))
    if offset > 0:
        params.append(("offset", str(offset)))
    query = urlencode(params, safe="/")
    return f"{path}?{query}" if query else path


def compute(
    base_uri: str,
    offset: int,
    limit: int,
    total_count: int,
    default_limit: int | None = None,
) -> Pagination:
    """Compute the @pagination block (window flags and first/prev/next/last links)."""
    if offset < 0:
        raise ValueError("offset must be >= 0")
    if limit <= 0:
        raise ValueError("limit must be > 0")
    total_count = max(total_count, 0)
    default_limit = default_limit or settings.pagination_default_limit

    def link(at: int) -> PaginationLink:
        return PaginationLink(href=page_href(base_uri, at, limit, default_limit), offset=at, limit=limit)

    is_first = offset == 0
    is_last = offset + limit >= total_count
    return Pagination(
        limit=limit,
        offset=offset,
        count=total_count,
        is_first=is_first,
        is_last=is_last,
        next=None if is_last else link(offset + limit),
        prev=None if is_first else link(max(offset - limit, 0)),
        first=link(0),
        last=link(last_offset(limit, total_count)),
    )

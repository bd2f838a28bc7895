"""
Ordering, pagination, and grouping helpers for post collections.

All functions are pure: they return new lists/dicts and never mutate the
post dicts they are given.
"""

import math
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple


def _date_key(post: Dict[str, Any]):
    return post['date']


def sort_posts(posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return posts sticky-first (higher sticky earlier), then newest first, then by title."""
    by_title = sorted(posts, key=lambda p: p.get('title', '').lower())
    by_date = sorted(by_title, key=_date_key, reverse=True)
    return sorted(by_date, key=lambda p: p.get('sticky') or 0, reverse=True)


def sort_by_date(posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return posts newest first, ignoring the sticky flag."""
    by_title = sorted(posts, key=lambda p: p.get('title', '').lower())
    return sorted(by_title, key=_date_key, reverse=True)


def recent_posts(posts: List[Dict[str, Any]], size: int) -> List[Dict[str, Any]]:
    """Return the *size* newest posts."""
    return sort_by_date(posts)[:max(size, 0)]


def page_url(base_url: str, page: int) -> str:
    """Return the URL of listing page *page* under *base_url* (e.g. ``/blog`` -> ``/blog/2/``)."""
    return f"{base_url.rstrip('/')}/{page}/"


def page_numbers(current: int, total: int, window: int = 2) -> List[Optional[int]]:
    """
    Return the page numbers to show in a pagination bar.

    Always includes the first and last page plus *window* pages either side
    of *current*; ``None`` marks a gap rendered as an ellipsis.

    Examples:
        >>> page_numbers(1, 3)
        [1, 2, 3]
        >>> page_numbers(6, 12)
        [1, None, 4, 5, 6, 7, 8, None, 12]
    """
    if total <= 0:
        return []
    shown = {1, total}
    shown.update(range(max(1, current - window), min(total, current + window) + 1))

    numbers: List[Optional[int]] = []
    previous = 0
    for number in sorted(shown):
        if number - previous > 1:
            numbers.append(None)
        numbers.append(number)
        previous = number
    return numbers


def paginate(items: List[Any], page_size: int, base_url: str) -> List[Dict[str, Any]]:
    """
    Split *items* into fixed-size pages.

    Page N (1-based) holds ``items[(N-1)*page_size : N*page_size]``. An empty
    list still produces a single empty page so the first listing URL exists.

    Args:
        items: Already ordered items
        page_size: Items per page, at least 1
        base_url: Listing root such as ``/blog``

    Returns:
        One pagination descriptor dict per page
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / page_size))

    pages = []
    for number in range(1, total_pages + 1):
        start = (number - 1) * page_size
        pages.append({
            'current_page': number,
            'total_pages': total_pages,
            'page_size': page_size,
            'total_items': total_items,
            'items': items[start:start + page_size],
            'url': page_url(base_url, number),
            'prev_url': page_url(base_url, number - 1) if number > 1 else None,
            'next_url': page_url(base_url, number + 1) if number < total_pages else None,
            'page_numbers': page_numbers(number, total_pages),
            'base_url': base_url.rstrip('/'),
        })
    return pages


def group_by_year(posts: List[Dict[str, Any]]) -> List[Tuple[int, List[Dict[str, Any]]]]:
    """Group posts by publication year, newest year first, newest post first within a year."""
    groups: Dict[int, List[Dict[str, Any]]] = OrderedDict()
    for post in sort_by_date(posts):
        groups.setdefault(post['date'].year, []).append(post)
    return list(groups.items())


def _group_by(posts: List[Dict[str, Any]], names_for) -> Dict[str, List[Dict[str, Any]]]:
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for post in sort_posts(posts):
        for name in names_for(post):
            groups.setdefault(name, []).append(post)
    return OrderedDict((name, groups[name]) for name in sorted(groups, key=str.lower))


def group_by_tag(posts: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Map each tag to its posts in listing order; tags sorted case-insensitively."""
    return _group_by(posts, lambda p: list(OrderedDict.fromkeys(p.get('tags') or [])))


def group_by_category(posts: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Map each category to its posts in listing order; uncategorized posts are left out."""
    return _group_by(posts, lambda p: [p['category']] if p.get('category') else [])


__all__ = [
    "sort_posts",
    "sort_by_date",
    "recent_posts",
    "page_url",
    "page_numbers",
    "paginate",
    "group_by_year",
    "group_by_tag",
    "group_by_category",
]

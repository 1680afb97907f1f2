"""Utility functions for GitHub API interactions."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

T = TypeVar('T')

logger = logging.getLogger("pipewatch.github.utils")


def mask_token(token: Optional[str]) -> str:
    """Mask a token for display, keeping only its first and last characters.

    Args:
        token: Token to mask

    Returns:
        Masked token, e.g. ``ghp_********wxyz``; short tokens become ``****``
    """
    if not token:
        return ''
    if len(token) <= 8:
        return '****'
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"


def paginate(
    fetch_page: Callable[[int], Any],
    per_page: int,
    max_pages: int,
    items_key: Optional[str] = None,
    label: str = '',
) -> List[Dict[str, Any]]:
    """Fetch pages until a short page is returned.

    Args:
        fetch_page: Callable taking a 1-based page number, returning decoded JSON
        per_page: Page size that was requested
        max_pages: Upper bound on the number of pages fetched
        items_key: Key holding the item list when the payload is an object
            (e.g. ``workflows``); ``None`` when the payload is the list itself
        label: Used in log messages only

    Returns:
        Items of all pages concatenated, in page order
    """
    items: List[Dict[str, Any]] = []
    page = 1

    while page <= max_pages:
        payload = fetch_page(page)
        if items_key is not None:
            page_items = (payload or {}).get(items_key) or []
        else:
            page_items = payload or []

        items.extend(page_items)

        # A short page is the last page
        if len(page_items) < per_page:
            return items

        page += 1

    logger.warning(f"Stopped paginating {label or 'listing'} after {max_pages} pages; results may be incomplete")
    return items


def filter_repositories(
    repos: Iterable[T],
    include_archived: bool = True,
    include_forks: bool = True,
) -> List[T]:
    """Filter repositories based on criteria.

    Args:
        repos: Repository objects with ``is_archived`` / ``is_fork`` flags
        include_archived: Whether to include archived repositories
        include_forks: Whether to include forked repositories

    Returns:
        Filtered list of repositories
    """
    filtered = []

    for repo in repos:
        if not include_archived and getattr(repo, 'is_archived', False):
            continue
        if not include_forks and getattr(repo, 'is_fork', False):
            continue
        filtered.append(repo)

    return filtered


def unique_by(items: Iterable[T], key: Callable[[T], Any]) -> List[T]:
    """Drop later duplicates, keeping first occurrences in order."""
    seen = set()
    out: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out

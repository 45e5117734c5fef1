"""
Listing search pipeline.

Stages run in a fixed order: text, category, condition, then sort. Each
filter narrows the working set; the sort always runs last.
"""
from typing import Iterable, Union

from vbay.models import ALL, Category, Condition, Listing, SortMode


def query_listings(
    listings: Iterable[Listing],
    text: str = "",
    category: Union[Category, str] = ALL,
    condition: Union[Condition, str] = ALL,
    sort: SortMode = SortMode.NEWEST,
) -> list[Listing]:
    """
    Return a new list of the listings matching every active filter.

    Args:
        listings: Source sequence, never mutated
        text: Case-insensitive substring matched against title, description
            or category; empty disables the stage
        category: Exact category, or "All"
        condition: Exact condition, or "All"
        sort: NEWEST (createdAt descending), PRICE_ASC or PRICE_DESC

    Returns:
        Filtered and sorted listings. Ties keep their input order.
    """
    result = list(listings)

    if text:
        result = _filter_by_text(result, text)

    if category != ALL:
        result = [l for l in result if l.category == Category(category)]

    if condition != ALL:
        result = [l for l in result if l.condition == Condition(condition)]

    return _sort(result, SortMode(sort))


def _filter_by_text(listings: list[Listing], text: str) -> list[Listing]:
    needle = text.lower()
    return [
        l for l in listings
        if needle in l.title.lower()
        or needle in l.description.lower()
        or needle in l.category.value.lower()
    ]


def _sort(listings: list[Listing], mode: SortMode) -> list[Listing]:
    # sorted() is stable, including with reverse=True
    if mode == SortMode.PRICE_ASC:
        return sorted(listings, key=lambda l: l.price)
    if mode == SortMode.PRICE_DESC:
        return sorted(listings, key=lambda l: l.price, reverse=True)
    # ISO-8601 strings order lexicographically the same as chronologically
    return sorted(listings, key=lambda l: l.created_at, reverse=True)

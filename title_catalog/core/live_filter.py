"""Live text filter over presented catalog groups."""

from __future__ import annotations

from typing import List, Sequence

from .entry_models import CatalogGroup


def matches_query(group: CatalogGroup, query: str) -> bool:
    return query.lower() in group.root.display_name.lower()


def filter_groups(groups: Sequence[CatalogGroup], query: str) -> Sequence[CatalogGroup]:
    """Case-insensitive substring filter on each group's root display name.

    An empty query returns ``groups`` itself. Groups are kept or dropped
    whole and keep their relative order.
    """
    if not query:
        return groups
    result: List[CatalogGroup] = [group for group in groups if matches_query(group, query)]
    return result

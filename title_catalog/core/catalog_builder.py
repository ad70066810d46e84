"""Catalog builder - groups entries under their owning title.

Base (and Unknown) entries anchor a group; Update and DLC entries attach to
the group whose root title id equals their parent title id.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .entry_models import CHILD_ROLES, CatalogGroup, EntryRole, RawEntry
from .validation import validate_entry

logger = logging.getLogger(__name__)


# Stored sort setting meaning "keep discovery order".
UNSORTED = -1


class SortPolicy(IntEnum):
    """Sort order of catalog roots; stored in settings by ordinal."""

    ALPHABETICAL_ASC = 0
    ALPHABETICAL_DESC = 1

    @classmethod
    def from_setting(cls, value: Any) -> Optional["SortPolicy"]:
        """Map a stored setting to a policy; unknown values mean "no sort"."""
        if isinstance(value, SortPolicy):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            aliases = {"asc": cls.ALPHABETICAL_ASC, "desc": cls.ALPHABETICAL_DESC}
            if text in aliases:
                return aliases[text]
            if text.lstrip("-").isdigit():
                value = int(text)
            else:
                return None
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


@dataclass
class BuildStats:
    """Counters from the last build, for logging and diagnostics."""

    total_entries: int = 0
    roots: int = 0
    attached_children: int = 0
    orphaned_children: int = 0
    rejected_entries: int = 0
    orphaned_parent_ids: List[str] = field(default_factory=list)


class CatalogBuilder:
    """Builds the ordered list of catalog groups.

    ``build`` is pure: the same entries, flag and policy always yield equal
    output. ``last_stats`` is informational only.
    """

    def __init__(self) -> None:
        self.last_stats = BuildStats()

    def build(
        self,
        entries: Sequence[RawEntry],
        hide_invalid: bool,
        sort_policy: Any = SortPolicy.ALPHABETICAL_ASC,
    ) -> List[CatalogGroup]:
        """Group and order ``entries``.

        Args:
            entries: All entries from the scan, in encounter order
            hide_invalid: Drop parse failures and non-root roles from the roots
            sort_policy: SortPolicy or stored setting; anything else keeps input order

        Returns:
            List of CatalogGroups in root order
        """
        stats = BuildStats(total_entries=len(entries))

        roots = self._select_roots(entries, hide_invalid, stats)
        roots = sort_roots(roots, SortPolicy.from_setting(sort_policy))

        updates_by_parent, dlc_by_parent = _index_children(entries)

        groups: List[CatalogGroup] = []
        claimed: Set[str] = set()
        for root in roots:
            title_id = root.title_id
            # A title id is owned by the first root that carries it, so each
            # child lands in at most one group.
            if title_id is None or title_id in claimed:
                groups.append(CatalogGroup(root=root))
                continue
            claimed.add(title_id)
            updates = tuple(updates_by_parent.get(title_id, ()))
            dlc = tuple(dlc_by_parent.get(title_id, ()))
            stats.attached_children += len(updates) + len(dlc)
            groups.append(CatalogGroup(root=root, updates=updates, dlc=dlc))

        orphaned = sorted(
            (set(updates_by_parent) | set(dlc_by_parent)) - claimed
        )
        stats.orphaned_parent_ids = orphaned
        stats.orphaned_children = sum(
            len(updates_by_parent.get(pid, ())) + len(dlc_by_parent.get(pid, ()))
            for pid in orphaned
        )
        stats.roots = len(groups)
        if stats.orphaned_children:
            logger.debug(
                "Dropped %d update/DLC entries without a matching title: %s",
                stats.orphaned_children,
                ", ".join(orphaned),
            )
        self.last_stats = stats
        return groups

    @staticmethod
    def _select_roots(
        entries: Sequence[RawEntry], hide_invalid: bool, stats: BuildStats
    ) -> List[RawEntry]:
        roots: List[RawEntry] = []
        for entry in entries:
            if not validate_entry(entry, hide_invalid):
                stats.rejected_entries += 1
                continue
            # Updates and DLC never anchor a group, whatever the filter says.
            if entry.is_root_role:
                roots.append(entry)
        return roots


def sort_roots(roots: List[RawEntry], policy: Optional[SortPolicy]) -> List[RawEntry]:
    """Stable sort by display name; ``None`` keeps discovery order."""
    if policy == SortPolicy.ALPHABETICAL_ASC:
        return sorted(roots, key=lambda entry: entry.display_name)
    if policy == SortPolicy.ALPHABETICAL_DESC:
        # reverse=True keeps equal names in input order.
        return sorted(roots, key=lambda entry: entry.display_name, reverse=True)
    return list(roots)


def _index_children(
    entries: Sequence[RawEntry],
) -> Tuple[Dict[str, List[RawEntry]], Dict[str, List[RawEntry]]]:
    updates: Dict[str, List[RawEntry]] = defaultdict(list)
    dlc: Dict[str, List[RawEntry]] = defaultdict(list)
    for entry in entries:
        if entry.role not in CHILD_ROLES or entry.parent_title_id is None:
            continue
        if entry.role == EntryRole.UPDATE:
            updates[entry.parent_title_id].append(entry)
        else:
            dlc[entry.parent_title_id].append(entry)
    return dict(updates), dict(dlc)


def build_catalog(
    entries: Sequence[RawEntry],
    hide_invalid: bool,
    sort_policy: Any = SortPolicy.ALPHABETICAL_ASC,
) -> List[CatalogGroup]:
    """Convenience function around :class:`CatalogBuilder`."""
    return CatalogBuilder().build(entries, hide_invalid, sort_policy)

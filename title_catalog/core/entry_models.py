"""Entry and catalog data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntryRole(str, Enum):
    """Role of a discovered entry."""

    BASE = "base"
    UPDATE = "update"
    DLC = "dlc"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "EntryRole":
        text = str(value or "").strip().lower()
        for role in cls:
            if role.value == text or role.name.lower() == text:
                return role
        raise ValueError(f"Unknown entry role: {value!r}")


class ParseOutcome(str, Enum):
    """Outcome reported by the external loader for one entry.

    Only PARSING_ERROR marks an entry as invalid; the missing-key outcomes
    are shown in the catalog but cannot be launched.
    """

    SUCCESS = "success"
    PARSING_ERROR = "parsing_error"
    MISSING_HEADER_KEY = "missing_header_key"
    MISSING_TITLE_KEY = "missing_title_key"
    MISSING_TITLE_KEK = "missing_title_kek"
    MISSING_KEY_AREA = "missing_key_area"

    @classmethod
    def parse(cls, value: Any) -> "ParseOutcome":
        text = str(value or "").strip().lower().replace("-", "_")
        for outcome in cls:
            if outcome.value == text:
                return outcome
        raise ValueError(f"Unknown parse outcome: {value!r}")


ROOT_ROLES = frozenset({EntryRole.BASE, EntryRole.UNKNOWN})
CHILD_ROLES = frozenset({EntryRole.UPDATE, EntryRole.DLC})


@dataclass(frozen=True)
class RawEntry:
    """One discovered file/title as reported by an entry source.

    ``title_id`` is ``None`` for entries without an embedded identity.
    ``parent_title_id`` is only set for Update/DLC entries.
    """

    display_name: str
    role: EntryRole = EntryRole.UNKNOWN
    parse_outcome: ParseOutcome = ParseOutcome.SUCCESS
    title_id: Optional[str] = None
    parent_title_id: Optional[str] = None
    path: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None
    format: Optional[str] = None

    @property
    def is_root_role(self) -> bool:
        return self.role in ROOT_ROLES

    @property
    def is_launchable(self) -> bool:
        return self.parse_outcome == ParseOutcome.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "role": self.role.value,
            "parse_outcome": self.parse_outcome.value,
            "title_id": self.title_id,
            "parent_title_id": self.parent_title_id,
            "path": self.path,
            "version": self.version,
            "author": self.author,
            "format": self.format,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawEntry":
        """Build an entry from a mapping; raises ValueError/KeyError on bad rows."""
        name = str(data["display_name"] if "display_name" in data else data["name"]).strip()
        if not name:
            raise ValueError("display_name is empty")
        return cls(
            display_name=name,
            role=EntryRole.parse(data.get("role", EntryRole.UNKNOWN.value)),
            parse_outcome=ParseOutcome.parse(data.get("parse_outcome", ParseOutcome.SUCCESS.value)),
            title_id=_optional_id(data.get("title_id")),
            parent_title_id=_optional_id(data.get("parent_title_id")),
            path=_optional_text(data.get("path")),
            version=_optional_text(data.get("version")),
            author=_optional_text(data.get("author")),
            format=_optional_text(data.get("format")),
        )


# Entries accepted into the catalog are the same immutable records.
ValidatedEntry = RawEntry


@dataclass(frozen=True)
class CatalogGroup:
    """A base/unknown root entry with its updates and DLC."""

    root: ValidatedEntry
    updates: Tuple[ValidatedEntry, ...] = field(default_factory=tuple)
    dlc: Tuple[ValidatedEntry, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return self.root.display_name

    @property
    def child_count(self) -> int:
        return len(self.updates) + len(self.dlc)


@dataclass(frozen=True)
class SearchLocation:
    """A directory the entry source scans."""

    path: str

    @classmethod
    def coerce(cls, value: Any) -> "SearchLocation":
        if isinstance(value, SearchLocation):
            return value
        return cls(path=str(value))


def _optional_id(value: Any) -> Optional[str]:
    # Zero and empty identifiers mean "no embedded identity".
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return None if value == 0 else format(value, "016X")
    text = str(value).strip()
    if not text or text.strip("0") == "":
        return None
    return text.upper()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple


class RowKind(str, Enum):
    BASE = "base"
    UPDATE = "update"
    DLC = "dlc"


class SelectionOutcome(str, Enum):
    IGNORED = "ignored"
    SHOW_DETAILS = "show_details"
    LAUNCH = "launch"
    NOT_LAUNCHABLE = "not_launchable"


@dataclass(frozen=True)
class CatalogRowDTO:
    kind: RowKind
    display_name: str
    title_id: Optional[str]
    parent_title_id: Optional[str]
    version: Optional[str]
    parse_outcome: str
    launchable: bool = False
    path: Optional[str] = None
    children: Tuple["CatalogRowDTO", ...] = ()


@dataclass(frozen=True)
class PresentationHints:
    is_refreshing: bool = False
    placeholder: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class ViewModelEvents:
    rows_changed: Optional[Callable[[Tuple[CatalogRowDTO, ...]], None]] = None
    hints_changed: Optional[Callable[[PresentationHints], None]] = None
    error: Optional[Callable[[str], None]] = None

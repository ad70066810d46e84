from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from ...app.catalog_controller import CatalogController
from ...core.entry_models import CatalogGroup, RawEntry
from ...core.live_filter import filter_groups
from ..state_machine import CatalogState, Error, Loaded, Loading
from .viewmodel_types import (
    CatalogRowDTO,
    PresentationHints,
    RowKind,
    SelectionOutcome,
    ViewModelEvents,
)

logger = logging.getLogger(__name__)

SEARCHING_PLACEHOLDER = "Searching for titles…"
EMPTY_PLACEHOLDER = "No titles found"


def entry_to_row(entry: RawEntry, kind: RowKind) -> CatalogRowDTO:
    return CatalogRowDTO(
        kind=kind,
        display_name=entry.display_name,
        title_id=entry.title_id,
        parent_title_id=entry.parent_title_id,
        version=entry.version,
        parse_outcome=entry.parse_outcome.value,
        launchable=entry.is_launchable,
        path=entry.path,
    )


def group_to_row(group: CatalogGroup) -> CatalogRowDTO:
    children = tuple(entry_to_row(e, RowKind.UPDATE) for e in group.updates) + tuple(
        entry_to_row(e, RowKind.DLC) for e in group.dlc
    )
    root = group.root
    return CatalogRowDTO(
        kind=RowKind.BASE,
        display_name=root.display_name,
        title_id=root.title_id,
        parent_title_id=root.parent_title_id,
        version=root.version,
        parse_outcome=root.parse_outcome.value,
        launchable=root.is_launchable,
        path=root.path,
        children=children,
    )


def hints_for_state(state: CatalogState, previous: PresentationHints) -> PresentationHints:
    if isinstance(state, Loading):
        # A cache load keeps the current view; only a fresh scan announces itself.
        placeholder = previous.placeholder if state.from_cache else SEARCHING_PLACEHOLDER
        return PresentationHints(is_refreshing=True, placeholder=placeholder)
    if isinstance(state, Loaded):
        return PresentationHints(
            is_refreshing=False,
            placeholder=None if state.groups else EMPTY_PLACEHOLDER,
        )
    return PresentationHints(
        is_refreshing=False,
        placeholder=previous.placeholder,
        error_message=f"Error: {state.cause}",
    )


class CatalogViewModel:
    """Turns catalog states into rows and hints for a list widget."""

    def __init__(
        self,
        controller: CatalogController,
        events: Optional[ViewModelEvents] = None,
    ) -> None:
        self._controller = controller
        self.events = events or ViewModelEvents()
        self.rows: Tuple[CatalogRowDTO, ...] = ()
        self.hints = PresentationHints()
        self._groups: Sequence[CatalogGroup] = ()
        self._unsubscribe: Optional[Callable[[], None]] = controller.observe(self._on_state)

    def set_events(self, events: ViewModelEvents) -> None:
        self.events = events

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def query(self) -> str:
        return self._controller.filter_query

    def set_query(self, query: str) -> None:
        self._controller.set_filter_query(query)
        self._refresh_rows()

    def handle_back(self) -> bool:
        """Clear an active query; returns False when there was nothing to clear."""
        if not self.query:
            return False
        self.set_query("")
        return True

    def select_entry(self, row: CatalogRowDTO, long_press: bool = False) -> SelectionOutcome:
        if self.hints.is_refreshing:
            return SelectionOutcome.IGNORED
        if long_press or self._controller.settings.select_action:
            return SelectionOutcome.SHOW_DETAILS
        if row.launchable:
            return SelectionOutcome.LAUNCH
        return SelectionOutcome.NOT_LAUNCHABLE

    def _on_state(self, state: CatalogState) -> None:
        self.hints = hints_for_state(state, self.hints)
        if isinstance(state, Loaded):
            self._groups = state.groups
            self._refresh_rows()
        elif isinstance(state, Error):
            logger.debug("Catalog error shown to user: %s", state.cause)
            if self.events.error:
                self.events.error(self.hints.error_message or state.cause)
        if self.events.hints_changed:
            self.events.hints_changed(self.hints)

    def _refresh_rows(self) -> None:
        visible = filter_groups(self._groups, self.query)
        self.rows = tuple(group_to_row(group) for group in visible)
        if self.events.rows_changed:
            self.events.rows_changed(self.rows)

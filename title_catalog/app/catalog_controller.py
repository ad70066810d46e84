"""Catalog controller - loads entries and publishes the catalog state."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Any, List, Optional, Sequence, Tuple

from ..config.config_service import ConfigService
from ..config.models import CatalogSettings, validate_settings
from ..core.catalog_builder import UNSORTED, BuildStats, CatalogBuilder, SortPolicy
from ..core.entry_cache import EntryCache
from ..core.entry_models import CatalogGroup, RawEntry, SearchLocation
from ..core.entry_source import EntrySource
from ..core.live_filter import filter_groups
from ..exceptions import CacheError
from ..logging_config import LoggingTimer
from ..ui.state_machine import (
    CatalogState,
    CatalogStateMachine,
    Loaded,
    Loading,
    StateObserver,
)
from ..utils.async_utils import run_blocking
from ..utils.result import capture, is_err
from .async_controller import fingerprint_async, load_cache_async, run_scan_async, save_cache_async

logger = logging.getLogger(__name__)


class CatalogController:
    """Owns one catalog: settings, last entries, state and live filter.

    Loads run the entry source off the event loop; the build and filter
    steps are pure and run on the caller's thread. Sort policy and the
    hide-invalid flag are read when a build happens; changing them does not
    touch the published state until ``rebuild`` is called.
    """

    def __init__(
        self,
        source: EntrySource,
        settings: Optional[CatalogSettings] = None,
        *,
        state_machine: Optional[CatalogStateMachine] = None,
        cache: Optional[EntryCache] = None,
        config_service: Optional[ConfigService] = None,
        builder: Optional[CatalogBuilder] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._source = source
        self._settings = settings or CatalogSettings()
        self._state_machine = state_machine or CatalogStateMachine()
        self._cache = cache
        self._config_service = config_service
        self._builder = builder or CatalogBuilder()
        self._executor = executor
        self._entries: Optional[Tuple[RawEntry, ...]] = None
        self._fingerprint: Optional[str] = None
        self._filter_query = ""

    # ------------------------------------------------------------------ state

    @property
    def settings(self) -> CatalogSettings:
        return self._settings

    @property
    def state(self) -> CatalogState:
        return self._state_machine.state

    @property
    def state_machine(self) -> CatalogStateMachine:
        return self._state_machine

    @property
    def entries(self) -> Optional[Tuple[RawEntry, ...]]:
        """Entries of the last applied load, ``None`` before the first one."""
        return self._entries

    @property
    def last_build_stats(self) -> BuildStats:
        return self._builder.last_stats

    @property
    def filter_query(self) -> str:
        return self._filter_query

    def observe(self, on_change: StateObserver):
        return self._state_machine.observe(on_change)

    def search_locations(self) -> List[SearchLocation]:
        return [SearchLocation(path) for path in self._settings.search_locations]

    # ---------------------------------------------------------- configuration

    def set_filter_query(self, query: str) -> None:
        self._filter_query = query or ""

    def set_sort_policy(self, policy: Any) -> None:
        """Store ``policy`` by ordinal; values that name no policy store ``UNSORTED``."""
        resolved = SortPolicy.from_setting(policy)
        self._update_settings(sort_apps_by=UNSORTED if resolved is None else int(resolved))

    def set_hide_invalid(self, hide_invalid: bool) -> None:
        self._update_settings(filter_invalid_files=bool(hide_invalid))

    def rebuild(self) -> bool:
        """Rebuild the published groups from the last entries with current settings."""
        if self._entries is None or not isinstance(self.state, Loaded):
            return False
        groups = self._build(self._entries)
        return self._state_machine.replace_loaded(groups)

    # ------------------------------------------------------------ presentation

    def current_groups(self) -> Sequence[CatalogGroup]:
        state = self.state
        if isinstance(state, Loaded):
            return state.groups
        return ()

    def visible_groups(self) -> Sequence[CatalogGroup]:
        return filter_groups(self.current_groups(), self._filter_query)

    # ------------------------------------------------------------------ loads

    async def start_load(self, from_cache: bool = False) -> CatalogState:
        """Run one load cycle and return the state it left behind.

        ``Loading`` is published before anything is awaited. Only the latest
        started cycle may publish its outcome.
        """
        locations = self.search_locations()
        epoch = self._state_machine.begin_load(from_cache=from_cache)
        logger.info(
            "Catalog load %d started (%d locations, from_cache=%s)", epoch, len(locations), from_cache
        )
        if self._settings.refresh_required:
            self._change_settings(refresh_required=False)
            await self._persist_settings_async()

        result = await capture(self._load_entries(locations, from_cache))
        if is_err(result):
            logger.warning("Catalog load %d failed: %s", epoch, result.error)
            self._state_machine.fail(epoch, result.error)
            return self.state

        entries, fingerprint, scanned = result.value
        groups = self._build(entries)
        if self._state_machine.complete(epoch, groups):
            self._entries = tuple(entries)
            self._fingerprint = fingerprint
            if scanned:
                await self._save_cache(entries, fingerprint)
            stats = self._builder.last_stats
            logger.info(
                "Catalog load %d finished: %d entries, %d titles, %d orphaned",
                epoch,
                stats.total_entries,
                stats.roots,
                stats.orphaned_children,
            )
        return self.state

    async def start_up(self) -> CatalogState:
        """First load: from cache unless settings ask for a refresh."""
        return await self.start_load(from_cache=not self._settings.refresh_required)

    async def apply_settings(self, settings: CatalogSettings) -> bool:
        """Adopt edited settings; reload when they request a refresh."""
        self._settings = settings
        if settings.refresh_required:
            await self.start_load(from_cache=False)
            return True
        return False

    async def check_for_changes(self) -> bool:
        """Reload when the files under the search locations changed.

        Returns True when a reload was started.
        """
        if self._fingerprint is None or isinstance(self.state, Loading):
            return False
        current = await fingerprint_async(self.search_locations(), executor=self._executor)
        if current == self._fingerprint:
            return False
        logger.info("Search locations changed, reloading catalog")
        await self.start_load(from_cache=False)
        return True

    async def add_search_location(self, path: str) -> CatalogState:
        locations = list(self._settings.search_locations)
        text = str(path).strip()
        if text and text not in locations:
            locations.append(text)
            self._change_settings(search_locations=locations)
            await self._persist_settings_async()
        return await self.start_load(from_cache=False)

    # ---------------------------------------------------------------- helpers

    def _build(self, entries: Sequence[RawEntry]) -> List[CatalogGroup]:
        with LoggingTimer("catalog.build"):
            return self._builder.build(
                entries,
                self._settings.filter_invalid_files,
                self._settings.sort_apps_by,
            )

    async def _load_entries(
        self, locations: List[SearchLocation], from_cache: bool
    ) -> Tuple[List[RawEntry], Optional[str], bool]:
        if from_cache and self._cache is not None:
            try:
                cached, fingerprint = await load_cache_async(self._cache, executor=self._executor)
            except CacheError as exc:
                logger.warning("Entry cache unusable, scanning instead: %s", exc)
                cached, fingerprint = None, None
            if cached is not None:
                return cached, fingerprint, False

        fingerprint = await fingerprint_async(locations, executor=self._executor)
        entries = await run_scan_async(
            self._source, locations, self._settings.system_language, executor=self._executor
        )
        return entries, fingerprint, True

    async def _save_cache(self, entries: Sequence[RawEntry], fingerprint: Optional[str]) -> None:
        if self._cache is None:
            return
        try:
            await save_cache_async(self._cache, entries, fingerprint, executor=self._executor)
        except CacheError as exc:
            logger.warning("Entry cache not updated: %s", exc)

    def _change_settings(self, **changes: Any) -> None:
        payload = self._settings.model_dump()
        payload.update(changes)
        self._settings = validate_settings(payload)

    def _update_settings(self, **changes: Any) -> None:
        self._change_settings(**changes)
        if self._config_service is not None:
            self._config_service.save_settings(self._settings)

    async def _persist_settings_async(self) -> None:
        if self._config_service is not None:
            await run_blocking(self._config_service.save_settings, self._settings, executor=self._executor)

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, List

from title_catalog.app.catalog_controller import CatalogController
from title_catalog.config import CatalogSettings, ConfigService
from title_catalog.core.catalog_builder import SortPolicy
from title_catalog.core.entry_cache import EntryCache
from title_catalog.core.entry_source import ManifestEntrySource, StaticEntrySource
from title_catalog.exceptions import ScanFailure
from title_catalog.ui.state_machine import Error, Loaded, Loading

from conftest import ZELDA_ID, make_entry, write_manifest


def _names(state) -> List[str]:
    return [g.display_name for g in state.groups]


class _FlakySource:
    """Fails the first scan, then serves ``entries``."""

    def __init__(self, entries):
        self.entries = list(entries)
        self.calls = 0

    def scan(self, locations, language_hint):
        self.calls += 1
        if self.calls == 1:
            raise ScanFailure("storage not mounted", location="/media/sd")
        return list(self.entries)


class _GatedSource:
    """First scan blocks until ``gate`` is set; later scans return at once."""

    def __init__(self):
        self.gate = threading.Event()
        self.calls = 0

    def scan(self, locations, language_hint):
        self.calls += 1
        if self.calls == 1:
            self.gate.wait(5)
            return [make_entry("Old Title", title_id="01")]
        return [make_entry("New Title", title_id="02")]


def _memory_config(initial: Dict[str, Any]):
    store: Dict[str, Any] = {"data": dict(initial)}

    def _save(data):
        store["data"] = dict(data)

    return store, ConfigService(lambda: store["data"], _save)


def test_failed_load_then_successful_reload(scenario_entries):
    source = _FlakySource(scenario_entries)
    controller = CatalogController(source)

    async def _flow():
        first = await controller.start_load()
        assert isinstance(first, Error)
        assert "storage not mounted" in first.cause
        second = await controller.start_load()
        assert isinstance(second, Loaded)
        return second

    state = asyncio.run(_flow())
    assert _names(state) == ["Mario", "Zelda"]
    assert [u.display_name for u in state.groups[1].updates] == ["Zelda Update 1.1"]


def test_loading_is_published_before_the_scan_runs(scenario_entries):
    seen = []

    class _Probe(StaticEntrySource):
        def scan(self, locations, language_hint):
            seen.append(("scan", controller.state))
            return super().scan(locations, language_hint)

    controller = CatalogController(_Probe(scenario_entries))
    controller.observe(lambda state: seen.append(("state", state)))
    asyncio.run(controller.start_load())

    kinds = [(kind, type(state).__name__) for kind, state in seen]
    assert kinds == [
        ("state", "Loading"),
        ("state", "Loading"),
        ("scan", "Loading"),
        ("state", "Loaded"),
    ]
    assert seen[1][1].epoch == 1


def test_superseded_load_never_publishes():
    source = _GatedSource()
    controller = CatalogController(source)

    async def _flow():
        first = asyncio.create_task(controller.start_load())
        while source.calls < 1:
            await asyncio.sleep(0.01)
        second = await controller.start_load()
        assert _names(second) == ["New Title"]
        source.gate.set()
        return await first

    state_after_first = asyncio.run(_flow())
    assert isinstance(state_after_first, Loaded)
    assert _names(state_after_first) == ["New Title"]
    assert [e.display_name for e in controller.entries] == ["New Title"]


def test_failure_keeps_previous_entries(scenario_entries):
    source = StaticEntrySource(scenario_entries)
    controller = CatalogController(source)
    asyncio.run(controller.start_load())
    previous = controller.entries

    source.error = ScanFailure("card removed")
    state = asyncio.run(controller.start_load())

    assert isinstance(state, Error)
    assert controller.entries == previous
    assert controller.current_groups() == ()


def test_settings_changes_apply_on_rebuild(scenario_entries):
    controller = CatalogController(StaticEntrySource(scenario_entries))
    asyncio.run(controller.start_load())
    assert _names(controller.state) == ["Mario", "Zelda"]

    controller.set_sort_policy(SortPolicy.ALPHABETICAL_DESC)
    assert _names(controller.state) == ["Mario", "Zelda"]

    assert controller.rebuild() is True
    assert _names(controller.state) == ["Zelda", "Mario"]


def test_rebuild_before_first_load_is_a_no_op():
    controller = CatalogController(StaticEntrySource())
    assert controller.rebuild() is False
    assert isinstance(controller.state, Loading)


def test_hide_invalid_toggle(entry_factory):
    from title_catalog.core.entry_models import ParseOutcome

    entries = [
        entry_factory("Good", title_id="01"),
        entry_factory("Broken", title_id="02", outcome=ParseOutcome.PARSING_ERROR),
    ]
    controller = CatalogController(StaticEntrySource(entries))
    asyncio.run(controller.start_load())
    assert _names(controller.state) == ["Good"]

    controller.set_hide_invalid(False)
    controller.rebuild()
    assert _names(controller.state) == ["Broken", "Good"]


def test_visible_groups_apply_filter(scenario_entries):
    controller = CatalogController(StaticEntrySource(scenario_entries))
    asyncio.run(controller.start_load())

    controller.set_filter_query("zel")
    assert [g.display_name for g in controller.visible_groups()] == ["Zelda"]
    controller.set_filter_query("")
    assert [g.display_name for g in controller.visible_groups()] == ["Mario", "Zelda"]


def test_cache_load_skips_the_scan(tmp_path, scenario_entries):
    cache = EntryCache(tmp_path / "cache.json")
    cache.save([make_entry("Cached Title", title_id="09")], fingerprint="abc")
    source = StaticEntrySource(scenario_entries)
    controller = CatalogController(source, cache=cache)

    state = asyncio.run(controller.start_load(from_cache=True))

    assert source.calls == 0
    assert _names(state) == ["Cached Title"]


def test_scan_load_refreshes_the_cache(tmp_path, scenario_entries):
    cache = EntryCache(tmp_path / "cache.json")
    controller = CatalogController(StaticEntrySource(scenario_entries), cache=cache)

    asyncio.run(controller.start_load())

    assert cache.load() == scenario_entries
    assert cache.fingerprint()


def test_corrupt_cache_falls_back_to_scan(tmp_path, scenario_entries):
    cache_file = tmp_path / "cache.json"
    cache_file.write_text("{not json", encoding="utf-8")
    source = StaticEntrySource(scenario_entries)
    controller = CatalogController(source, cache=EntryCache(cache_file))

    state = asyncio.run(controller.start_load(from_cache=True))

    assert source.calls == 1
    assert isinstance(state, Loaded)
    assert len(state.groups) == 2


def test_failed_scan_does_not_touch_cache(tmp_path):
    cache = EntryCache(tmp_path / "cache.json")
    cache.save([make_entry("Kept", title_id="01")])
    controller = CatalogController(StaticEntrySource(error=ScanFailure("boom")), cache=cache)

    asyncio.run(controller.start_load())

    assert [e.display_name for e in cache.load()] == ["Kept"]


def test_start_up_honours_refresh_flag(tmp_path, scenario_entries):
    cache = EntryCache(tmp_path / "cache.json")
    cache.save([make_entry("Cached Title", title_id="09")])
    store, service = _memory_config({"refresh_required": True})
    settings = service.load_validated()
    source = StaticEntrySource(scenario_entries)
    controller = CatalogController(source, settings, cache=cache, config_service=service)

    state = asyncio.run(controller.start_up())

    assert source.calls == 1
    assert _names(state) == ["Mario", "Zelda"]
    assert controller.settings.refresh_required is False
    assert store["data"]["refresh_required"] is False


def test_apply_settings_reloads_only_on_request(scenario_entries):
    source = StaticEntrySource(scenario_entries)
    controller = CatalogController(source)

    assert asyncio.run(controller.apply_settings(CatalogSettings(sort_apps_by=1))) is False
    assert source.calls == 0

    assert asyncio.run(controller.apply_settings(CatalogSettings(refresh_required=True))) is True
    assert source.calls == 1
    assert controller.settings.refresh_required is False


def test_sort_policy_is_persisted(scenario_entries):
    store, service = _memory_config({})
    controller = CatalogController(StaticEntrySource(scenario_entries), config_service=service)
    controller.set_sort_policy(SortPolicy.ALPHABETICAL_DESC)
    assert store["data"]["sort_apps_by"] == 1


def test_check_for_changes_reloads_after_edit(tmp_path):
    library = tmp_path / "library"
    write_manifest(library, [{"display_name": "Zelda", "role": "base", "title_id": ZELDA_ID}])
    settings = CatalogSettings(search_locations=[str(library)])
    controller = CatalogController(ManifestEntrySource(), settings)

    async def _flow():
        await controller.start_load()
        unchanged = await controller.check_for_changes()
        write_manifest(
            library,
            [
                {"display_name": "Zelda", "role": "base", "title_id": ZELDA_ID},
                {"display_name": "Metroid", "role": "base", "title_id": "0100000000050000"},
            ],
        )
        changed = await controller.check_for_changes()
        return unchanged, changed

    unchanged, changed = asyncio.run(_flow())
    assert unchanged is False
    assert changed is True
    assert _names(controller.state) == ["Metroid", "Zelda"]


def test_check_for_changes_needs_a_finished_load():
    controller = CatalogController(StaticEntrySource())
    assert asyncio.run(controller.check_for_changes()) is False


def test_add_search_location_reloads(tmp_path):
    first = tmp_path / "sd"
    second = tmp_path / "usb"
    write_manifest(first, [{"display_name": "Zelda", "role": "base", "title_id": ZELDA_ID}])
    write_manifest(second, [{"display_name": "Kirby", "role": "base", "title_id": "0100000000070000"}])
    controller = CatalogController(ManifestEntrySource(), CatalogSettings(search_locations=[str(first)]))

    async def _flow():
        await controller.start_load()
        return await controller.add_search_location(str(second))

    state = asyncio.run(_flow())
    assert _names(state) == ["Kirby", "Zelda"]
    assert controller.settings.search_locations == [str(first), str(second)]


def test_missing_location_surfaces_as_error(tmp_path):
    settings = CatalogSettings(search_locations=[str(tmp_path / "gone")])
    controller = CatalogController(ManifestEntrySource(), settings)

    state = asyncio.run(controller.start_load())

    assert isinstance(state, Error)
    assert "not a directory" in state.cause


def test_sort_policy_is_stored_as_a_valid_ordinal(scenario_entries):
    from title_catalog.config import validate_settings

    store, service = _memory_config({})
    controller = CatalogController(StaticEntrySource(scenario_entries), config_service=service)
    asyncio.run(controller.start_load())

    controller.set_sort_policy("desc")
    assert controller.settings.sort_apps_by == 1
    assert validate_settings(store["data"]).sort_apps_by == 1

    controller.set_sort_policy(None)
    assert controller.settings.sort_apps_by == -1
    assert validate_settings(store["data"]).sort_apps_by == -1

    controller.rebuild()
    assert _names(controller.state) == ["Zelda", "Mario"]


def test_refresh_flag_is_saved_off_the_event_loop(scenario_entries):
    loop_thread = threading.get_ident()
    save_threads = []
    store = {"data": {"refresh_required": True}}

    def _save(data):
        save_threads.append(threading.get_ident())
        store["data"] = dict(data)

    service = ConfigService(lambda: store["data"], _save)
    controller = CatalogController(
        StaticEntrySource(scenario_entries), service.load_validated(), config_service=service
    )

    asyncio.run(controller.start_load())

    assert store["data"]["refresh_required"] is False
    assert save_threads and all(ident != loop_thread for ident in save_threads)

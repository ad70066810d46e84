"""Entry sources - produce RawEntry records for the search locations."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

import yaml

from ..exceptions import EntryParseError, ScanFailure
from .entry_models import EntryRole, ParseOutcome, RawEntry, SearchLocation

logger = logging.getLogger(__name__)

MANIFEST_NAMES = ("catalog.yaml", "catalog.yml", "catalog.json")


class EntrySource(Protocol):
    def scan(self, locations: Sequence[SearchLocation], language_hint: str) -> List[RawEntry]: ...


class StaticEntrySource:
    """Serves a fixed list of entries, or raises a fixed error."""

    name = "static"

    def __init__(self, entries: Iterable[RawEntry] = (), error: Optional[Exception] = None) -> None:
        self.entries = list(entries)
        self.error = error
        self.calls = 0

    def scan(self, locations: Sequence[SearchLocation], language_hint: str) -> List[RawEntry]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.entries)


class ManifestEntrySource:
    """Reads entries from a ``catalog.yaml``/``catalog.json`` in each location.

    Manifest layout::

        entries:
          - display_name: Zelda
            role: base
            title_id: "0100000000010000"
          - display_name: Zelda Update 1.1
            role: update
            parent_title_id: "0100000000010000"

    Title ids should be quoted; YAML reads bare digit strings as numbers.
    A bad row becomes a PARSING_ERROR entry; a missing location or an
    unreadable manifest fails the whole scan.
    """

    name = "manifest"

    def __init__(self, manifest_names: Sequence[str] = MANIFEST_NAMES) -> None:
        self.manifest_names = tuple(manifest_names)

    def scan(self, locations: Sequence[SearchLocation], language_hint: str) -> List[RawEntry]:
        entries: List[RawEntry] = []
        for location in locations:
            location = SearchLocation.coerce(location)
            entries.extend(self._scan_location(Path(location.path)))
        logger.debug(
            "Manifest scan found %d entries in %d locations (language=%s)",
            len(entries),
            len(locations),
            language_hint,
        )
        return entries

    def find_manifest(self, directory: Path) -> Optional[Path]:
        for name in self.manifest_names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    def _scan_location(self, directory: Path) -> List[RawEntry]:
        if not directory.is_dir():
            raise ScanFailure(
                f"Search location is not a directory: {directory}",
                location=str(directory),
                source_name=self.name,
            )
        manifest = self.find_manifest(directory)
        if manifest is None:
            logger.info("No manifest in %s, skipping", directory)
            return []

        rows = _read_manifest_rows(manifest)
        entries: List[RawEntry] = []
        for index, row in enumerate(rows):
            try:
                entry = _row_to_entry(row, directory)
            except EntryParseError as exc:
                logger.warning("Malformed row %d in %s: %s", index, manifest, exc)
                entry = _broken_entry(row, directory, index)
            entries.append(entry)
        return entries


def _read_manifest_rows(manifest: Path) -> List[Any]:
    try:
        raw = manifest.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScanFailure(
            f"Manifest could not be read: {exc}", location=str(manifest), source_name="manifest"
        ) from exc

    try:
        if manifest.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ScanFailure(
            f"Manifest is not valid: {exc}", location=str(manifest), source_name="manifest"
        ) from exc

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("entries") or []
    if not isinstance(data, list):
        raise ScanFailure(
            "Manifest must contain a list of entries",
            location=str(manifest),
            source_name="manifest",
        )
    return data


def _row_to_entry(row: Any, directory: Path) -> RawEntry:
    if not isinstance(row, dict):
        raise EntryParseError(f"Manifest row is not a mapping: {row!r}", location=str(directory))
    payload: Dict[str, Any] = dict(row)
    if payload.get("path"):
        payload["path"] = str(directory / str(payload["path"]))
    try:
        return RawEntry.from_dict(payload)
    except (KeyError, ValueError) as exc:
        raise EntryParseError(
            f"Manifest row could not be parsed: {exc}", location=str(directory)
        ) from exc


def _broken_entry(row: Any, directory: Path, index: int) -> RawEntry:
    name = None
    path = None
    if isinstance(row, dict):
        name = row.get("display_name") or row.get("name")
        if row.get("path"):
            path = str(directory / str(row["path"]))
    if not name and path:
        name = Path(path).name
    return RawEntry(
        display_name=str(name or f"{directory.name} #{index + 1}"),
        role=EntryRole.UNKNOWN,
        parse_outcome=ParseOutcome.PARSING_ERROR,
        path=path,
    )

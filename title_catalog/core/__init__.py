"""Catalog core: entry models, validation, grouping and filtering."""

from .catalog_builder import BuildStats, CatalogBuilder, SortPolicy, build_catalog
from .entry_cache import EntryCache
from .entry_models import (
    CatalogGroup,
    EntryRole,
    ParseOutcome,
    RawEntry,
    SearchLocation,
    ValidatedEntry,
)
from .entry_source import EntrySource, ManifestEntrySource, StaticEntrySource
from .live_filter import filter_groups
from .location_fingerprint import location_fingerprint
from .validation import validate_entry

__all__ = [
    "BuildStats",
    "CatalogBuilder",
    "CatalogGroup",
    "EntryCache",
    "EntryRole",
    "EntrySource",
    "ManifestEntrySource",
    "ParseOutcome",
    "RawEntry",
    "SearchLocation",
    "SortPolicy",
    "StaticEntrySource",
    "ValidatedEntry",
    "build_catalog",
    "filter_groups",
    "location_fingerprint",
    "validate_entry",
]

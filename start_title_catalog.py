#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Title Catalog - Startup Script

Loads the catalog from the configured search locations and prints the
grouped titles (optionally filtered) as text or JSON.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from title_catalog.app.catalog_controller import CatalogController
from title_catalog.config import get_config_path, load_settings
from title_catalog.core.catalog_builder import UNSORTED, SortPolicy
from title_catalog.core.entry_cache import EntryCache
from title_catalog.core.entry_models import ParseOutcome
from title_catalog.core.entry_source import ManifestEntrySource
from title_catalog.exceptions import ConfigurationError
from title_catalog.logging_config import setup_logging
from title_catalog.ui.mvp.viewmodel import CatalogViewModel
from title_catalog.ui.mvp.viewmodel_types import CatalogRowDTO
from title_catalog.ui.state_machine import Loaded
from title_catalog.version import load_version

logger = logging.getLogger(__name__)

_SORT_CHOICES = {
    "asc": int(SortPolicy.ALPHABETICAL_ASC),
    "desc": int(SortPolicy.ALPHABETICAL_DESC),
    "none": UNSORTED,
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Title Catalog - grouped title listing")
    parser.add_argument(
        "--location",
        action="append",
        default=[],
        metavar="PATH",
        help="Search location (repeatable); added to the configured ones",
    )
    parser.add_argument("--config", metavar="PATH", help="Settings file (JSON)")
    parser.add_argument("--sort", choices=sorted(_SORT_CHOICES), help="Sort order of titles")
    invalid = parser.add_mutually_exclusive_group()
    invalid.add_argument("--hide-invalid", dest="hide_invalid", action="store_true", default=None,
                         help="Hide entries that failed to parse")
    invalid.add_argument("--show-invalid", dest="hide_invalid", action="store_false",
                         help="Show entries that failed to parse")
    parser.add_argument("--filter", default="", metavar="QUERY", help="Only show titles containing QUERY")
    parser.add_argument("--from-cache", action="store_true", help="Use the entry cache when present")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("--version", action="store_true", help="Show version information")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _row_to_dict(row: CatalogRowDTO) -> dict:
    return {
        "kind": row.kind.value,
        "display_name": row.display_name,
        "title_id": row.title_id,
        "version": row.version,
        "parse_outcome": row.parse_outcome,
        "launchable": row.launchable,
        "children": [_row_to_dict(child) for child in row.children],
    }


def _format_row(row: CatalogRowDTO, indent: str = "") -> List[str]:
    label = row.display_name
    if row.version:
        label += f" v{row.version}"
    if row.parse_outcome != ParseOutcome.SUCCESS.value:
        label += f" [{row.parse_outcome}]"
    prefix = f"{indent}- " if indent else ""
    kind = f"({row.kind.value}) " if indent else ""
    lines = [f"{prefix}{kind}{label}"]
    for child in row.children:
        lines.extend(_format_row(child, indent + "  "))
    return lines


async def _run(args: argparse.Namespace) -> int:
    config_path = args.config or get_config_path()
    settings = load_settings(config_path)

    setup_logging(
        log_level="DEBUG" if args.debug else settings.logging.level,
        log_dir=settings.logging.log_dir,
        enable_file_logging=settings.logging.enable_file_logging,
        max_log_size=settings.logging.max_log_size,
        backup_count=settings.logging.backup_count,
        structured_json=settings.logging.json_output or None,
    )
    logger.debug("Settings loaded from %s", config_path)

    overrides = {}
    if args.location:
        locations = list(settings.search_locations)
        for location in args.location:
            path = str(Path(location).expanduser().resolve())
            if path not in locations:
                locations.append(path)
        overrides["search_locations"] = locations
    if args.sort:
        overrides["sort_apps_by"] = _SORT_CHOICES[args.sort]
    if args.hide_invalid is not None:
        overrides["filter_invalid_files"] = args.hide_invalid
    if overrides:
        settings = settings.model_copy(update=overrides)

    cache = EntryCache(settings.cache_path) if settings.cache_path else None
    controller = CatalogController(ManifestEntrySource(), settings, cache=cache)
    view_model = CatalogViewModel(controller)
    view_model.set_query(args.filter)

    state = await controller.start_load(from_cache=args.from_cache)
    if not isinstance(state, Loaded):
        print(view_model.hints.error_message or "Error", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([_row_to_dict(row) for row in view_model.rows], indent=2, ensure_ascii=False))
    elif not view_model.rows:
        print(view_model.hints.placeholder or "No matching titles")
    else:
        for row in view_model.rows:
            print("\n".join(_format_row(row)))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    if args.version:
        print(f"Title Catalog {load_version()}")
        return 0
    try:
        return asyncio.run(_run(args))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

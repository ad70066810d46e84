from __future__ import annotations

import json
from typing import Callable, List, Optional

import pytest
import yaml

from title_catalog.core.entry_models import EntryRole, ParseOutcome, RawEntry

ZELDA_ID = "0100000000010000"
MARIO_ID = "0100000000030000"

EntryFactory = Callable[..., RawEntry]


def make_entry(
    name: str,
    role: EntryRole = EntryRole.BASE,
    title_id: Optional[str] = None,
    parent: Optional[str] = None,
    outcome: ParseOutcome = ParseOutcome.SUCCESS,
    **extra,
) -> RawEntry:
    return RawEntry(
        display_name=name,
        role=role,
        parse_outcome=outcome,
        title_id=title_id,
        parent_title_id=parent,
        **extra,
    )


@pytest.fixture
def entry_factory() -> EntryFactory:
    return make_entry


@pytest.fixture
def scenario_entries() -> List[RawEntry]:
    """Zelda base + update, Mario base, in discovery order."""
    return [
        make_entry("Zelda", title_id=ZELDA_ID),
        make_entry("Zelda Update 1.1", EntryRole.UPDATE, title_id="0100000000010800", parent=ZELDA_ID),
        make_entry("Mario", title_id=MARIO_ID),
    ]


def write_manifest(directory, rows, name: str = "catalog.yaml"):
    """Write ``rows`` as a catalog manifest into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    manifest = directory / name
    payload = {"entries": rows}
    if name.endswith(".json"):
        manifest.write_text(json.dumps(payload), encoding="utf-8")
    else:
        manifest.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return manifest

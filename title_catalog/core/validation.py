"""Entry validation policy."""

from __future__ import annotations

from .entry_models import ParseOutcome, RawEntry


def validate_entry(entry: RawEntry, hide_invalid: bool) -> bool:
    """Return True when ``entry`` may reach the catalog.

    With ``hide_invalid`` off every entry passes, parse errors included:
    lightweight homebrew formats report the Unknown role and must stay
    visible. With it on, an entry passes only when it parsed and has a
    grouping-root role (Base or Unknown).
    """
    if not hide_invalid:
        return True
    return entry.parse_outcome != ParseOutcome.PARSING_ERROR and entry.is_root_role

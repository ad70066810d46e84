"""On-disk cache of the last successful scan."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import CacheError
from .entry_models import RawEntry

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


class EntryCache:
    """JSON file holding the entries of the last successful scan.

    The cache is read for ``from_cache`` loads so the catalog can appear
    before a full rescan.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, entries: Sequence[RawEntry], fingerprint: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {
            "version": CACHE_FORMAT_VERSION,
            "saved_at": time.time(),
            "fingerprint": fingerprint,
            "entries": [entry.to_dict() for entry in entries],
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise CacheError(
                f"Entry cache could not be written: {exc}", file_path=str(self.path), operation="write"
            ) from exc

    def load(self) -> Optional[List[RawEntry]]:
        """Return cached entries, or ``None`` when there is no cache file."""
        payload = self._read_payload()
        if payload is None:
            return None
        rows = payload.get("entries")
        if not isinstance(rows, list):
            raise CacheError("Entry cache has no entry list", file_path=str(self.path), operation="read")
        try:
            return [RawEntry.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheError(
                f"Entry cache is corrupt: {exc}", file_path=str(self.path), operation="read"
            ) from exc

    def fingerprint(self) -> Optional[str]:
        try:
            payload = self._read_payload()
        except CacheError as exc:
            logger.debug("Cache fingerprint unavailable: %s", exc)
            return None
        if payload is None:
            return None
        value = payload.get("fingerprint")
        return str(value) if value else None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def _read_payload(self) -> Optional[Dict[str, Any]]:
        if not self.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CacheError(
                f"Entry cache could not be read: {exc}", file_path=str(self.path), operation="read"
            ) from exc
        if not isinstance(payload, dict) or payload.get("version") != CACHE_FORMAT_VERSION:
            raise CacheError("Entry cache format is not supported", file_path=str(self.path), operation="read")
        return payload

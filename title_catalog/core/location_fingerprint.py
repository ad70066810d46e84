"""Fingerprint of the search locations, used to detect changes on resume."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

from .entry_models import SearchLocation

logger = logging.getLogger(__name__)


def _file_signature(file_path: Path) -> Optional[Tuple[int, int]]:
    try:
        stat = file_path.stat()
        return int(stat.st_size), int(stat.st_mtime_ns)
    except OSError:
        return None


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def location_fingerprint(locations: Iterable[SearchLocation | str]) -> str:
    """SHA-256 over (location, relative path, size, mtime) of every file.

    Locations are hashed in sorted order; missing locations still contribute
    their path so adding or removing one changes the fingerprint.
    """
    digest = hashlib.sha256()
    paths = sorted({SearchLocation.coerce(loc).path for loc in locations})
    for location in paths:
        root = Path(location)
        digest.update(location.encode("utf-8", "surrogateescape"))
        digest.update(b"\0")
        if not root.is_dir():
            digest.update(b"<missing>\0")
            continue
        for file_path in _iter_files(root):
            signature = _file_signature(file_path)
            if signature is None:
                continue
            rel = file_path.relative_to(root).as_posix()
            digest.update(f"{rel}\0{signature[0]}\0{signature[1]}\n".encode("utf-8", "surrogateescape"))
    fingerprint = digest.hexdigest()
    logger.debug("Fingerprint for %d locations: %s", len(paths), fingerprint[:12])
    return fingerprint

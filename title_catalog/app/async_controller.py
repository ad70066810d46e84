from __future__ import annotations

from concurrent.futures import Executor
from typing import List, Optional, Sequence, Tuple

from ..core.entry_cache import EntryCache
from ..core.entry_models import RawEntry, SearchLocation
from ..core.entry_source import EntrySource
from ..core.location_fingerprint import location_fingerprint
from ..utils.async_utils import run_blocking


async def run_scan_async(
    source: EntrySource,
    locations: Sequence[SearchLocation],
    language_hint: str,
    executor: Optional[Executor] = None,
) -> List[RawEntry]:
    return await run_blocking(source.scan, list(locations), language_hint, executor=executor)


def _read_cache(cache: EntryCache) -> Tuple[Optional[List[RawEntry]], Optional[str]]:
    entries = cache.load()
    if entries is None:
        return None, None
    return entries, cache.fingerprint()


async def load_cache_async(
    cache: EntryCache, executor: Optional[Executor] = None
) -> Tuple[Optional[List[RawEntry]], Optional[str]]:
    return await run_blocking(_read_cache, cache, executor=executor)


async def save_cache_async(
    cache: EntryCache,
    entries: Sequence[RawEntry],
    fingerprint: Optional[str] = None,
    executor: Optional[Executor] = None,
) -> None:
    await run_blocking(cache.save, list(entries), fingerprint, executor=executor)


async def fingerprint_async(locations: Sequence[SearchLocation], executor: Optional[Executor] = None) -> str:
    return await run_blocking(location_fingerprint, list(locations), executor=executor)

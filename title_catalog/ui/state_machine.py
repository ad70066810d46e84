"""Catalog loading state machine (Loading / Loaded / Error)."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from ..core.entry_models import CatalogGroup

logger = logging.getLogger(__name__)


class CatalogPhase(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class Loading:
    epoch: int = 0
    from_cache: bool = False

    @property
    def phase(self) -> CatalogPhase:
        return CatalogPhase.LOADING


@dataclass(frozen=True)
class Loaded:
    groups: Tuple[CatalogGroup, ...] = ()
    epoch: int = 0

    @property
    def phase(self) -> CatalogPhase:
        return CatalogPhase.LOADED


@dataclass(frozen=True)
class Error:
    cause: str
    epoch: int = 0
    exception: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @property
    def phase(self) -> CatalogPhase:
        return CatalogPhase.ERROR


CatalogState = Union[Loading, Loaded, Error]
StateObserver = Callable[[CatalogState], None]


# LOADED -> LOADED is a rebuild of the published groups with new settings.
_ALLOWED: Dict[CatalogPhase, Set[CatalogPhase]] = {
    CatalogPhase.LOADING: {CatalogPhase.LOADING, CatalogPhase.LOADED, CatalogPhase.ERROR},
    CatalogPhase.LOADED: {CatalogPhase.LOADING, CatalogPhase.LOADED},
    CatalogPhase.ERROR: {CatalogPhase.LOADING},
}


class CatalogStateMachine:
    """Single-writer holder of the current CatalogState.

    Every load cycle gets a monotonically increasing epoch from
    ``begin_load``. ``complete``/``fail`` only apply when their epoch is the
    latest issued one, so a slow superseded scan can never overwrite a
    fresher result. States are immutable and replaced wholesale; observers
    always receive a complete snapshot, most recent last.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._delivery_lock = threading.RLock()
        self._delivered_version = -1
        self._state: CatalogState = Loading()
        self._version = 0
        self._epoch = 0
        self._observers: List[StateObserver] = []

    @property
    def state(self) -> CatalogState:
        with self._lock:
            return self._state

    @property
    def epoch(self) -> int:
        """Latest issued load epoch."""
        with self._lock:
            return self._epoch

    def snapshot(self) -> Tuple[int, CatalogState]:
        """Current ``(version, state)``; version increases on every publish."""
        with self._lock:
            return self._version, self._state

    def can_transition(self, target: CatalogPhase) -> bool:
        return target in _ALLOWED.get(self._state.phase, set())

    def observe(self, callback: StateObserver) -> Callable[[], None]:
        """Register ``callback``; it receives the current state immediately.

        Returns a function that unregisters the callback.
        """
        with self._lock:
            self._observers.append(callback)
            current = self._state
        with self._delivery_lock:
            self._deliver(callback, current)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return _unsubscribe

    def begin_load(self, from_cache: bool = False) -> int:
        """Start a load cycle: publish ``Loading`` and return its epoch."""
        with self._lock:
            self._epoch += 1
            epoch = self._epoch
            version = self._publish(Loading(epoch=epoch, from_cache=from_cache))
        self._notify(version)
        return epoch

    def complete(self, epoch: int, groups: Sequence[CatalogGroup]) -> bool:
        with self._lock:
            if not self._is_current(epoch, "result"):
                return False
            version = self._publish(Loaded(groups=tuple(groups), epoch=epoch))
        self._notify(version)
        return True

    def fail(self, epoch: int, error: BaseException) -> bool:
        with self._lock:
            if not self._is_current(epoch, "error"):
                return False
            cause = str(error) or type(error).__name__
            version = self._publish(Error(cause=cause, epoch=epoch, exception=error))
        self._notify(version)
        return True

    def replace_loaded(self, groups: Sequence[CatalogGroup]) -> bool:
        """Swap the groups of a published ``Loaded`` state (explicit rebuild).

        Does nothing unless the current state is ``Loaded``; an in-flight
        load will build with the new settings when it completes.
        """
        with self._lock:
            current = self._state
            if not isinstance(current, Loaded):
                return False
            version = self._publish(Loaded(groups=tuple(groups), epoch=current.epoch))
        self._notify(version)
        return True

    def _is_current(self, epoch: int, kind: str) -> bool:
        if epoch != self._epoch:
            logger.info("Discarding stale load %s (epoch %d, latest %d)", kind, epoch, self._epoch)
            return False
        if not isinstance(self._state, Loading):
            logger.debug("Load epoch %d already settled, ignoring %s", epoch, kind)
            return False
        return True

    def _publish(self, state: CatalogState) -> int:
        if not self.can_transition(state.phase):
            raise RuntimeError(f"Illegal catalog transition {self._state.phase.value} -> {state.phase.value}")
        self._state = state
        self._version += 1
        return self._version

    def _notify(self, version: int) -> None:
        """Deliver the state published as ``version`` unless a newer one went out.

        Runs outside the state lock; observers may read ``state`` or hand off
        to other threads.
        """
        with self._delivery_lock:
            with self._lock:
                if version != self._version or version <= self._delivered_version:
                    return
                state = self._state
                observers = list(self._observers)
            self._delivered_version = version
            for callback in observers:
                if self._delivered_version != version:
                    # An observer published a newer state; it has been delivered.
                    break
                self._deliver(callback, state)

    @staticmethod
    def _deliver(callback: StateObserver, state: CatalogState) -> None:
        try:
            callback(state)
        except Exception:
            logger.exception("Catalog state observer failed")

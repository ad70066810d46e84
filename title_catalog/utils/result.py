"""Lightweight Result types (Ok/Err) for scan outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, TypeGuard, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: Exception


Result = Union[Ok[T], Err]


def is_err(result: Result[T]) -> TypeGuard[Err]:
    return isinstance(result, Err)


async def capture(awaitable: Awaitable[T]) -> Result[T]:
    """Await ``awaitable`` and fold an ordinary exception into ``Err``.

    Cancellation is not an ordinary exception and still propagates.
    """
    try:
        return Ok(await awaitable)
    except Exception as exc:
        return Err(exc)

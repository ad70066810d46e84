from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from typing import Any, Callable, Optional


async def run_blocking(func: Callable[..., Any], *args, executor: Optional[Executor] = None, **kwargs) -> Any:
    """Run a blocking callable in ``executor`` (default pool) without stalling the loop."""
    loop = asyncio.get_running_loop()
    if kwargs:
        return await loop.run_in_executor(executor, lambda: func(*args, **kwargs))
    return await loop.run_in_executor(executor, func, *args)

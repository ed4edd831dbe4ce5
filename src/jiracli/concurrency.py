"""Run independent blocking lookups concurrently.

Used where a command needs several unrelated reads before it can continue
(for example projects and issue types before the interactive create form).
Results come back in call order; the order the calls complete in does not
matter.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from .logging import get_logger


async def gather_blocking(*calls: Callable[[], Any]) -> list[Any]:
    """Run blocking callables on the default executor and await them all."""
    loop = asyncio.get_running_loop()
    futures = [loop.run_in_executor(None, call) for call in calls]
    return list(await asyncio.gather(*futures))


def run_concurrently(*calls: Callable[[], Any]) -> list[Any]:
    """Synchronous entry point around :func:`gather_blocking`.

    The first exception raised by any call propagates unchanged.
    """
    if not calls:
        return []
    get_logger().debug("running lookups concurrently", count=len(calls))
    return asyncio.run(gather_blocking(*calls))


__all__ = ["gather_blocking", "run_concurrently"]

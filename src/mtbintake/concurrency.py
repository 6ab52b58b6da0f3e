"""Concurrent join used wherever several independent I/O calls are issued."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any


async def join_all(*awaitables: Awaitable[Any]) -> list[Any]:
    """Await every task, then raise the first failure if any occurred.

    Unlike a plain ``asyncio.gather``, no sibling is still running when the
    error surfaces, so partially applied writes are settled by then.
    """

    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)

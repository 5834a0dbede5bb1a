"""
Concurrent fan-out helpers.

Work inside a workflow step is issued concurrently and joined with a
"wait for all, then fail if any failed" policy: every branch runs to
completion so that progress recorded by successful branches is kept even
when a sibling branch fails.
"""

import asyncio
import logging
from typing import Awaitable, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_all(aws: Iterable[Awaitable[T]]) -> List[T]:
    """
    Await every awaitable concurrently and return their results in order.

    If any of them raised, the first failure (in submission order) is
    re-raised after all of them have settled.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)

    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        for failure in failures:
            logger.error(f"Fan-out branch failed: {failure!r}")
        raise failures[0]
    return list(results)

"""
Concurrent execution of independent operations.

Used for the save phase of builds and updates. Every item is attempted; when
some fail, one EmissionError reports all of them, so a single run shows every
broken page. Cancellation is never collected: it propagates immediately.
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 200


class EmissionError(Exception):
    """Raised after a concurrent run in which one or more items failed.

    Attributes:
        failures: (item, exception) for every failed item, in input order
    """

    def __init__(self, failures: List[Tuple[Any, BaseException]]):
        self.failures = failures
        lines = [f"{len(failures)} operation(s) failed:"]
        lines.extend(f"  {item}: {type(error).__name__}: {error}" for item, error in failures)
        super().__init__("\n".join(lines))


async def concurrent(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[Any]],
    limit: int = DEFAULT_LIMIT,
) -> None:
    """
    Run ``fn`` over every item with at most ``limit`` calls in flight.

    Args:
        items: Items to process; not mutated
        fn: Coroutine function called once per item
        limit: Maximum number of concurrent calls

    Raises:
        EmissionError: After every item was attempted, if any call failed
    """
    items = list(items)
    semaphore = asyncio.Semaphore(limit)

    async def run_one(item: T) -> None:
        async with semaphore:
            await fn(item)

    results = await asyncio.gather(*(run_one(item) for item in items), return_exceptions=True)

    failures = []
    for item, result in zip(items, results):
        if isinstance(result, Exception):
            failures.append((item, result))
        elif isinstance(result, BaseException):
            raise result

    if failures:
        raise EmissionError(failures)

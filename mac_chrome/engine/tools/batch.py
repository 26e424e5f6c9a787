"""
Bounded-concurrency execution of queued async operations.

Operations are partitioned into chunks of `batch_size`; chunks run one after
another, and inside a chunk at most `concurrency` operations are in flight.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok

_LOGGER = logging.getLogger("mac_chrome.engine.batch")

Operation = Callable[[], Awaitable[Any]]


def chunked(items: list[Any], size: int) -> list[list[Any]]:
    size = max(1, int(size))
    return [items[i : i + size] for i in range(0, len(items), size)]


async def _settle(op: Operation) -> Result[Any]:
    try:
        value = op()
        if inspect.isawaitable(value):
            value = await value
    except Exception as exc:  # noqa: BLE001
        _LOGGER.debug("batch operation raised: %s", exc)
        return fail(f"{type(exc).__name__}: {exc}", ErrorCode.UNKNOWN_ERROR)
    if isinstance(value, Result):
        return value
    return ok(value)


class BatchProcessor:
    def __init__(self, *, batch_size: int = 5, concurrency: int = 3, preserve_order: bool = True) -> None:
        self.batch_size = max(1, int(batch_size))
        self.concurrency = max(1, int(concurrency))
        self.preserve_order = preserve_order
        self._queue: list[Operation] = []

    def add(self, operation: Operation) -> BatchProcessor:
        self._queue.append(operation)
        return self

    def extend(self, operations: Iterable[Operation]) -> BatchProcessor:
        self._queue.extend(operations)
        return self

    @property
    def pending(self) -> int:
        return len(self._queue)

    def clear(self) -> None:
        self._queue.clear()

    async def _run_chunk(self, chunk: list[Operation]) -> list[Result[Any]]:
        gate = asyncio.Semaphore(self.concurrency)

        async def guarded(op: Operation) -> Result[Any]:
            async with gate:
                return await _settle(op)

        if self.preserve_order:
            return list(await asyncio.gather(*(guarded(op) for op in chunk)))
        tasks = [asyncio.ensure_future(guarded(op)) for op in chunk]
        return [await fut for fut in asyncio.as_completed(tasks)]

    async def run(self) -> list[Result[Any]]:
        """Run everything queued and return one Result per operation.

        Exceptions raised by an operation become UNKNOWN_ERROR Results. The
        queue is emptied only once every chunk has finished; if the run is
        cancelled midway the queue is left intact.
        """
        operations = list(self._queue)
        results: list[Result[Any]] = []
        for i, chunk in enumerate(chunked(operations, self.batch_size)):
            _LOGGER.debug("batch chunk %d: %d operations", i, len(chunk))
            results.extend(await self._run_chunk(chunk))
        # operations queued while running stay for the next run
        del self._queue[: len(operations)]
        return results


async def run_batch(
    operations: Iterable[Operation],
    *,
    batch_size: int = 5,
    concurrency: int = 3,
    preserve_order: bool = True,
) -> list[Result[Any]]:
    processor = BatchProcessor(batch_size=batch_size, concurrency=concurrency, preserve_order=preserve_order)
    return await processor.extend(operations).run()

from __future__ import annotations

import asyncio


def test_chunked() -> None:
    from mac_chrome.engine.tools.batch import chunked

    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunked([], 3) == []
    assert chunked([1, 2], 0) == [[1], [2]]


def test_results_follow_submission_order() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import fail
    from mac_chrome.engine.tools.batch import run_batch

    async def slow_sum():
        await asyncio.sleep(0.02)
        return 1 + 1

    async def boom():
        raise RuntimeError("x")

    async def declined():
        return fail("nope", ErrorCode.TARGET_NOT_FOUND)

    results = asyncio.run(run_batch([slow_sum, boom, declined, lambda: "sync"]))
    assert results[0].success and results[0].data == 2
    assert results[1].code is ErrorCode.UNKNOWN_ERROR
    assert results[1].error == "RuntimeError: x"
    assert results[2].code is ErrorCode.TARGET_NOT_FOUND
    assert results[3].data == "sync"


def test_concurrency_is_bounded_within_a_chunk() -> None:
    from mac_chrome.engine.tools.batch import BatchProcessor

    active = 0
    peak = 0

    def op(i: int):
        async def run():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return i

        return run

    processor = BatchProcessor(batch_size=4, concurrency=2)
    processor.extend(op(i) for i in range(10))
    results = asyncio.run(processor.run())
    assert [r.data for r in results] == list(range(10))
    assert peak == 2


def test_chunks_run_sequentially() -> None:
    from mac_chrome.engine.tools.batch import BatchProcessor

    log: list[str] = []

    def op(name: str, delay: float):
        async def run():
            log.append(f"start {name}")
            await asyncio.sleep(delay)
            log.append(f"end {name}")
            return name

        return run

    processor = BatchProcessor(batch_size=2, concurrency=2)
    processor.add(op("a", 0.02)).add(op("b", 0.0)).add(op("c", 0.0))
    asyncio.run(processor.run())
    # c belongs to the second chunk and waits for a to finish.
    assert log.index("start c") > log.index("end a")


def test_unordered_results_arrive_by_completion() -> None:
    from mac_chrome.engine.tools.batch import run_batch

    def op(name: str, delay: float):
        async def run():
            await asyncio.sleep(delay)
            return name

        return run

    results = asyncio.run(
        run_batch([op("slow", 0.05), op("fast", 0.0), op("mid", 0.02)], concurrency=3, preserve_order=False)
    )
    assert [r.data for r in results] == ["fast", "mid", "slow"]


def test_queue_is_emptied_after_run() -> None:
    from mac_chrome.engine.tools.batch import BatchProcessor

    async def one():
        return 1

    processor = BatchProcessor()
    processor.add(one).add(one)
    assert processor.pending == 2
    assert len(asyncio.run(processor.run())) == 2
    assert processor.pending == 0
    assert asyncio.run(processor.run()) == []

    processor.add(one)
    processor.clear()
    assert processor.pending == 0


def test_engine_batch_uses_configured_defaults(engine) -> None:
    processor = engine.batch()
    assert processor.batch_size == engine.config.batch_size
    assert processor.concurrency == engine.config.concurrency
    assert engine.batch(batch_size=2, concurrency=1).concurrency == 1

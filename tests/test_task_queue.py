import asyncio

import pytest

from fsdocstore.storage.docstore.task_queue import SerialTaskQueue


@pytest.mark.asyncio
async def test_tasks_run_one_at_a_time_in_submission_order():
    q = SerialTaskQueue("q")
    events: list[str] = []
    running = 0
    max_running = 0

    async def task(i: int) -> int:
        nonlocal running, max_running
        running += 1
        max_running = max(max_running, running)
        events.append(f"start-{i}")
        await asyncio.sleep(0.01 * (5 - i))  # later tasks are faster
        events.append(f"end-{i}")
        running -= 1
        return i * 10

    results = await asyncio.gather(*(q.enqueue(task, i) for i in range(5)))

    assert results == [0, 10, 20, 30, 40]
    assert max_running == 1
    assert events == [e for i in range(5) for e in (f"start-{i}", f"end-{i}")]
    assert q.pending == 0


@pytest.mark.asyncio
async def test_failing_task_does_not_halt_queue():
    q = SerialTaskQueue("q")

    async def boom():
        raise ValueError("nope")

    async def ok():
        return "ok"

    results = await asyncio.gather(q.enqueue(boom), q.enqueue(ok), return_exceptions=True)

    assert isinstance(results[0], ValueError)
    assert results[1] == "ok"
    assert await q.enqueue(ok) == "ok"


@pytest.mark.asyncio
async def test_separate_queues_do_not_block_each_other():
    q1 = SerialTaskQueue("a")
    q2 = SerialTaskQueue("b")
    gate = asyncio.Event()

    async def wait_for_gate():
        await gate.wait()
        return "a"

    async def open_gate():
        gate.set()
        return "b"

    # q1 blocks until q2's task runs; a shared queue would deadlock here
    results = await asyncio.wait_for(
        asyncio.gather(q1.enqueue(wait_for_gate), q2.enqueue(open_gate)), timeout=2
    )
    assert results == ["a", "b"]


@pytest.mark.asyncio
async def test_kwargs_are_forwarded():
    q = SerialTaskQueue()

    async def add(a, *, b):
        return a + b

    assert await q.enqueue(add, 1, b=2) == 3

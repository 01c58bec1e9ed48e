"""Tests for the poll protocol and the Operand adapter over awaitables."""

from __future__ import annotations

import asyncio
import types

import pytest

from tryjoin.foundation.errors import ContractViolation, Err, FaultCode, Ok
from tryjoin.foundation.testing import RecordingWaker, ScriptedOperand
from tryjoin.runtime.concurrency import (
    PENDING,
    Context,
    Operand,
    Ready,
    TryPollable,
    Waker,
    as_operand,
    drive,
)


@types.coroutine
def _bare_yield():
    yield


async def _two_steps(value):
    await _bare_yield()
    return value


async def _explode():
    raise ValueError("boom")


# ─────────────────────────────────────────────────────────────────────────────
# Poll answers and wakers
# ─────────────────────────────────────────────────────────────────────────────


def test_pending_is_a_singleton() -> None:
    from tryjoin.runtime.concurrency.poll import _Pending

    assert _Pending() is PENDING
    assert repr(PENDING) == "PENDING"


def test_ready_compares_by_value() -> None:
    assert Ready(Ok(1)) == Ready(Ok(1))
    assert Ready(Ok(1)) != Ready(Err(1))


def test_waker_calls_callback_every_time() -> None:
    calls: list[int] = []
    waker = Waker(lambda: calls.append(1))

    waker.wake()
    waker.wake()

    assert len(calls) == 2
    Waker().wake()  # no callback is fine


def test_scripted_operand_satisfies_protocol() -> None:
    op = ScriptedOperand.never()

    assert isinstance(op, TryPollable)
    assert as_operand(op) is op


# ─────────────────────────────────────────────────────────────────────────────
# Operand: coroutines in their own Task
# ─────────────────────────────────────────────────────────────────────────────


async def _poll_ready(op: Operand, cx: Context | None = None) -> Ready:
    cx = cx or Context(RecordingWaker())
    while True:
        outcome = op.poll(cx)
        if isinstance(outcome, Ready):
            return outcome
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_operand_returns_coroutine_value() -> None:
    assert await _poll_ready(Operand(_two_steps(5))) == Ready(Ok(5))


@pytest.mark.asyncio
async def test_operand_maps_exception_to_err() -> None:
    outcome = await _poll_ready(Operand(_explode()))

    error = outcome.value.unwrap_err()
    assert isinstance(error, ValueError)
    assert str(error) == "boom"


@pytest.mark.asyncio
async def test_operand_passes_returned_result_through() -> None:
    async def already_failed():
        return Err("not found")

    assert await _poll_ready(Operand(already_failed())) == Ready(Err("not found"))


@pytest.mark.asyncio
async def test_operand_poll_after_completion_is_a_fault() -> None:
    cx = Context(RecordingWaker())
    op = Operand(_two_steps(1))
    await _poll_ready(op, cx)

    assert op.is_terminated()
    with pytest.raises(ContractViolation) as exc_info:
        op.poll(cx)
    assert exc_info.value.code is FaultCode.POLLED_AFTER_COMPLETION


@pytest.mark.asyncio
async def test_operand_runs_in_its_own_task() -> None:
    async def whoami():
        return asyncio.current_task()

    outcome = await _poll_ready(Operand(whoami()))

    task = outcome.value.unwrap()
    assert task is not asyncio.current_task()
    assert task.get_name() == "tryjoin:test_operand_runs_in_its_own_task.<locals>.whoami"


@pytest.mark.asyncio
async def test_operand_spawns_on_first_poll_and_wakes_latest_waker() -> None:
    gate = asyncio.get_running_loop().create_future()

    async def wait_on():
        return await gate

    first, latest = RecordingWaker(), RecordingWaker()
    op = Operand(wait_on())
    assert "pending" in repr(op)

    assert op.poll(Context(first)) is PENDING
    assert op.poll(Context(latest)) is PENDING  # spurious poll only swaps the waker
    assert "running" in repr(op)

    gate.set_result(7)
    await asyncio.sleep(0.01)

    assert (first.wakes, latest.wakes) == (0, 1)
    assert op.poll(Context(latest)) == Ready(Ok(7))


@pytest.mark.asyncio
async def test_operand_surfaces_cancellation() -> None:
    async def gives_up():
        raise asyncio.CancelledError

    with pytest.raises(asyncio.CancelledError):
        await _poll_ready(Operand(gives_up()))


@pytest.mark.asyncio
async def test_close_before_first_poll_closes_coroutine() -> None:
    coro = _two_steps(1)
    op = Operand(coro)

    op.close()

    assert op.is_terminated()
    assert coro.cr_frame is None
    with pytest.raises(ContractViolation):
        op.poll(Context(RecordingWaker()))


@pytest.mark.asyncio
async def test_close_cancels_spawned_task() -> None:
    released: list[str] = []

    async def holds_resource():
        try:
            await asyncio.sleep(10)
            return "unreachable"
        finally:
            released.append("released")

    op = Operand(holds_resource())
    op.poll(Context(RecordingWaker()))
    await asyncio.sleep(0)  # let the Task start

    op.close()
    await asyncio.sleep(0)

    assert released == ["released"]
    assert op.is_terminated()
    op.close()  # idempotent


@pytest.mark.asyncio
async def test_close_marks_late_failure_retrieved() -> None:
    async def fails_on_cancel():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            raise ValueError("cleanup failed") from None

    op = Operand(fails_on_cancel())
    op.poll(Context(RecordingWaker()))
    [task] = [t for t in asyncio.all_tasks() if t.get_name().endswith("fails_on_cancel")]
    await asyncio.sleep(0)

    op.close()
    await asyncio.sleep(0.01)

    assert op.is_terminated()
    assert task.done() and not task.cancelled()
    assert isinstance(task.exception(), ValueError)


def test_operand_requires_an_awaitable() -> None:
    with pytest.raises(TypeError, match="awaitable or TryPollable"):
        Operand(42)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_operand_accepts_generator_based_coroutines() -> None:
    @types.coroutine
    def legacy():
        yield
        return "legacy"

    assert await _poll_ready(Operand(legacy())) == Ready(Ok("legacy"))


@pytest.mark.asyncio
async def test_operand_accepts_custom_awaitables() -> None:
    class Deferred:
        def __await__(self):
            yield from asyncio.sleep(0).__await__()
            return "custom"

    assert await _poll_ready(Operand(Deferred())) == Ready(Ok("custom"))


# ─────────────────────────────────────────────────────────────────────────────
# Operand: caller-supplied futures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_operand_over_future_reports_exception() -> None:
    fut = asyncio.get_running_loop().create_future()
    op = Operand(fut)
    cx = Context(RecordingWaker())

    assert op.poll(cx) is PENDING
    fut.set_exception(KeyError("k"))

    outcome = await _poll_ready(op, cx)
    assert isinstance(outcome.value.unwrap_err(), KeyError)


@pytest.mark.asyncio
async def test_close_leaves_caller_future_alone() -> None:
    fut = asyncio.get_running_loop().create_future()
    op = Operand(fut)
    op.poll(Context(RecordingWaker()))

    op.close()

    assert not fut.cancelled()
    fut.set_result("still usable")
    assert await fut == "still usable"


# ─────────────────────────────────────────────────────────────────────────────
# drive(): asyncio bridge
# ─────────────────────────────────────────────────────────────────────────────


class _Awaitable:
    def __init__(self, pollable):
        self._pollable = pollable

    def __await__(self):
        return (yield from drive(self._pollable))


@pytest.mark.asyncio
async def test_drive_polls_scripted_operand_to_completion() -> None:
    op = ScriptedOperand.after(3, Ok("done"))

    assert await _Awaitable(op) == Ok("done")
    assert op.polls == 4


@pytest.mark.asyncio
async def test_drive_resumes_on_future_completion() -> None:
    loop = asyncio.get_running_loop()
    fut = loop.create_future()
    loop.call_later(0.01, fut.set_result, "late")

    assert await _Awaitable(Operand(fut)) == Ok("late")

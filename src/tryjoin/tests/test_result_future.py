"""Tests for ResultFuture, the single-slot Result adapter."""

from __future__ import annotations

import asyncio

import pytest

from tryjoin.foundation.errors import ContractViolation, Err, FaultCode, Ok
from tryjoin.foundation.testing import RecordingWaker, ScriptedOperand, poll_until_ready
from tryjoin.runtime.concurrency import PENDING, Context, Ready, ResultFuture, try_join_all


async def ok_after(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


def test_err_side_reports_once() -> None:
    cx = Context(RecordingWaker())
    rf = ResultFuture(Err("missing"))

    assert not rf.is_terminated()
    assert rf.poll(cx) == Ready(Err("missing"))
    assert rf.is_terminated()
    assert repr(rf) == "ResultFuture(<spent>)"

    with pytest.raises(ContractViolation) as exc_info:
        rf.poll(cx)
    assert exc_info.value.code is FaultCode.POLLED_AFTER_COMPLETION


def test_ok_side_forwards_every_poll() -> None:
    inner = ScriptedOperand.after(2, Ok(3))
    rf = ResultFuture.from_result(Ok(inner))

    assert rf.poll(Context(RecordingWaker())) is PENDING
    assert not rf.is_terminated()
    assert poll_until_ready(rf) == (Ok(3), 2)
    assert inner.polls == 3
    assert rf.is_terminated()


def test_ok_side_forwards_inner_failure() -> None:
    rf = ResultFuture(Ok(ScriptedOperand.after(0, Err("inner"))))

    assert poll_until_ready(rf)[0] == Err("inner")


def test_close_abandons_inner_operand() -> None:
    inner = ScriptedOperand.never()
    rf = ResultFuture(Ok(inner))

    rf.close()

    assert inner.closed
    assert rf.is_terminated()


def test_close_discards_pending_error() -> None:
    rf = ResultFuture(Err("unreported"))

    rf.close()

    assert rf.is_terminated()
    with pytest.raises(ContractViolation):
        rf.poll(Context(RecordingWaker()))


@pytest.mark.asyncio
async def test_awaiting_result_future() -> None:
    assert await ResultFuture(Ok(ok_after(5))) == Ok(5)
    assert await ResultFuture(Err("x")) == Err("x")


@pytest.mark.asyncio
async def test_result_futures_inside_join() -> None:
    third = ScriptedOperand.after(3, Ok(3))
    joined = try_join_all([ResultFuture(Ok(ok_after(1))), ResultFuture(Err("missing")), third])

    assert await joined == Err("missing")
    assert third.closed
    assert third.polls == 0

    assert await try_join_all([ResultFuture(Ok(ok_after(1))), ResultFuture(Ok(ok_after(2)))]) == Ok([1, 2])

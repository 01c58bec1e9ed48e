"""Tests for try_gather, the exception-raising join."""

from __future__ import annotations

import asyncio

import pytest

from tryjoin.foundation.errors import Err, OperandFailed
from tryjoin.runtime.concurrency import ResultFuture, SizeHint, try_gather


async def ok_after(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


async def fail_after(exc: Exception, delay: float = 0.0):
    await asyncio.sleep(delay)
    raise exc


@pytest.mark.asyncio
async def test_returns_outputs_in_order() -> None:
    assert await try_gather(ok_after("a", 0.02), ok_after("b"), ok_after("c", 0.01)) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_no_operands() -> None:
    assert await try_gather() == []


@pytest.mark.asyncio
async def test_raises_first_exception() -> None:
    with pytest.raises(ValueError, match="bad input"):
        await try_gather(ok_after(1, 1.0), fail_after(ValueError("bad input"), 0.01))


@pytest.mark.asyncio
async def test_big_mode_raises_first_exception() -> None:
    with pytest.raises(KeyError):
        await try_gather(
            ok_after(1, 1.0),
            fail_after(KeyError("k"), 0.01),
            size_hint=SizeHint(0, None),
        )


@pytest.mark.asyncio
async def test_plain_error_values_are_wrapped() -> None:
    with pytest.raises(OperandFailed) as exc_info:
        await try_gather(ok_after(1), ResultFuture(Err("not found")))
    assert exc_info.value.error == "not found"
    assert "not found" in str(exc_info.value)


@pytest.mark.asyncio
async def test_returned_err_counts_as_failure() -> None:
    async def lookup():
        return Err(404)

    with pytest.raises(OperandFailed) as exc_info:
        await try_gather(lookup(), small_threshold=0)
    assert exc_info.value.error == 404

"""ResultFuture: a pre-resolved success/failure choice as a pollable unit.

Lets a Result be mixed with ordinary operands:
    - Ok(awaitable): every poll forwards to the awaitable
    - Err(error): the first poll answers Ready(Err(error)); a second poll is a fault

Example:
    >>> a = ResultFuture(Ok(fetch(1)))
    >>> await a
    Ok(user1)
    >>> b = ResultFuture(Err("missing id"))
    >>> await try_join_all([a, b])
    Err('missing id')
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any, Generic, TypeVar

from tryjoin.foundation.errors import ContractViolation, Err, Result

from .poll import Context, Poll, Ready, TryPollable, as_operand, drive

T = TypeVar("T")
E = TypeVar("E")


class ResultFuture(Generic[T, E]):
    """Pollable built from ``Result[awaitable, error]``."""

    __slots__ = ("_inner", "_error", "_has_error")

    def __init__(self, result: Result[Any, E]) -> None:
        self._inner: TryPollable | None = None
        self._error: E | None = None
        self._has_error = False
        if result.is_ok():
            self._inner = as_operand(result.unwrap())
        else:
            self._error = result.unwrap_err()
            self._has_error = True

    @classmethod
    def from_result(cls, result: Result[Any, E]) -> ResultFuture[T, E]:
        return cls(result)

    def poll(self, cx: Context) -> Poll[Result[T, E]]:
        if self._inner is not None:
            return self._inner.poll(cx)
        if not self._has_error:
            raise ContractViolation.polled_after_completion("ResultFuture")
        error, self._error, self._has_error = self._error, None, False
        return Ready(Err(error))

    def close(self) -> None:
        if self._inner is not None:
            self._inner.close()
        self._error, self._has_error = None, False

    def is_terminated(self) -> bool:
        if self._inner is not None:
            return self._inner.is_terminated()
        return not self._has_error

    def __await__(self) -> Generator[Any, None, Result[T, E]]:
        try:
            return (yield from drive(self))
        except BaseException:
            self.close()
            raise

    def __repr__(self) -> str:
        if self._inner is not None:
            return f"ResultFuture(Ok({self._inner!r}))"
        return f"ResultFuture(Err({self._error!r}))" if self._has_error else "ResultFuture(<spent>)"

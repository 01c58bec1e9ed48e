"""Incremental driver for large or unknown operand counts.

Rescanning every operand on every wake-up costs O(n) per cycle. Here each
operand gets its own Waker that records its position in a ready set, so a
cycle only polls operands that can actually make progress.

Key Components:
    - CompletionQueue: yields ``(position, Result)`` completions as they arrive
    - OrderedTryJoin: places Ok values at their positions, short-circuits on Err

Rounds:
    Each outer poll cycle processes one *round*: a snapshot of the ready set,
    polled in ascending position order. Operands woken during the round wait
    for the next cycle. Combined with OrderedTryJoin stopping at the first Err,
    this gives the same failure priority as a full index-order rescan.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from functools import partial
from typing import Any, Generic, TypeVar

from tryjoin.foundation.errors import ContractViolation, Err, Ok, Result
from tryjoin.runtime.observability import get_logger

from .poll import PENDING, Context, Poll, Ready, TryPollable, Waker, as_operand

T = TypeVar("T")

_log = get_logger("tryjoin.ordered")
_MISSING: Any = object()


class CompletionQueue:
    """Unbounded collection of operands, polled per completion notification.

    Example:
        >>> queue = CompletionQueue()
        >>> for op in operands:
        ...     queue.push(op)
        >>> queue.poll_next(cx)   # PENDING, Ready((pos, result)), or Ready(None) when exhausted
    """

    __slots__ = ("_live", "_contexts", "_ready", "_round", "_round_open", "_parent", "_pushed")

    def __init__(self) -> None:
        self._live: dict[int, TryPollable] = {}
        self._contexts: dict[int, Context] = {}
        self._ready: set[int] = set()
        self._round: deque[int] = deque()
        self._round_open = False
        self._parent: Waker | None = None
        self._pushed = 0

    def __len__(self) -> int:
        """Operands still outstanding."""
        return len(self._live)

    @property
    def pushed(self) -> int:
        return self._pushed

    def push(self, operand: TryPollable | Any) -> int:
        """Add an operand; returns its position. It is polled on the next round."""
        position = self._pushed
        self._pushed += 1
        self._live[position] = as_operand(operand)
        self._contexts[position] = Context(Waker(partial(self._wake, position)))
        self._ready.add(position)
        if self._parent is not None:
            self._parent.wake()
        return position

    def _wake(self, position: int) -> None:
        if position in self._live and position not in self._ready:
            self._ready.add(position)
            if self._parent is not None:
                self._parent.wake()

    def poll_next(self, cx: Context) -> Poll[tuple[int, Result[Any, Any]] | None]:
        """Poll ready operands until one completes or the round ends."""
        self._parent = cx.waker
        while True:
            if not self._live:
                self._round.clear()
                self._round_open = False
                return Ready(None)
            if not self._round:
                if self._round_open:
                    self._round_open = False
                    return PENDING
                if not self._ready:
                    return PENDING
                self._round.extend(sorted(self._ready))
                self._ready.clear()
                self._round_open = True

            position = self._round.popleft()
            operand = self._live.get(position)
            if operand is None:
                continue
            outcome = operand.poll(self._contexts[position])
            if outcome is PENDING:
                continue
            del self._live[position]
            del self._contexts[position]
            return Ready((position, outcome.value))  # type: ignore[union-attr]

    def close(self) -> int:
        """Abandon every outstanding operand; returns how many were dropped."""
        live, self._live = self._live, {}
        self._contexts.clear()
        self._ready.clear()
        self._round.clear()
        self._round_open = False
        for operand in live.values():
            operand.close()
        return len(live)

    def __repr__(self) -> str:
        return f"CompletionQueue(pushed={self._pushed}, outstanding={len(self._live)}, ready={len(self._ready)})"


class OrderedTryJoin(Generic[T]):
    """Collects a CompletionQueue into ``Ok(outputs)`` in position order, or the first ``Err``.

    Polling after the final outcome raises ContractViolation.
    """

    __slots__ = ("_queue", "_outputs", "_finished")

    def __init__(self, operands: Iterable[Any]) -> None:
        self._queue = CompletionQueue()
        for operand in operands:
            self._queue.push(operand)
        self._outputs: list[T] = [_MISSING] * self._queue.pushed
        self._finished = False

    def poll(self, cx: Context) -> Poll[Result[list[T], Any]]:
        if self._finished:
            raise ContractViolation.polled_after_completion("OrderedTryJoin")
        while True:
            item = self._queue.poll_next(cx)
            if item is PENDING:
                return PENDING
            completion = item.value  # type: ignore[union-attr]
            if completion is None:
                self._finished = True
                outputs, self._outputs = self._outputs, []
                return Ready(Ok(outputs))
            position, result = completion
            if result.is_err():
                self._finished = True
                self._outputs = []
                dropped = self._queue.close()
                _log.debug("ordered join failed", position=position, abandoned=dropped)
                return Ready(Err(result.unwrap_err()))
            self._outputs[position] = result.unwrap()

    def close(self) -> None:
        self._finished = True
        self._outputs = []
        self._queue.close()

    def is_terminated(self) -> bool:
        return self._finished

    @property
    def outstanding(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"OrderedTryJoin({self._queue!r})"

"""Fail-fast concurrent join: TryJoinAll.

Drives many operands for the asyncio Task that awaits it and produces a single Result:
``Ok(outputs)`` in submission order once every operand succeeds, or the first
``Err`` observed, with every other in-flight operand abandoned at once.

Two interchangeable drivers share one poll contract:
    - FixedBatch (SMALL): positional slots rescanned every cycle. Cheap for a
      known, small operand count.
    - OrderedTryJoin (BIG): per-operand wakers, only woken operands are polled.
      Used when the count is unknown or above the small-batch threshold.

The mode is chosen once from a SizeHint and never switches. Both modes give
identical results for identical operands; the choice only affects cost.

Example:
    >>> result = await try_join_all([fetch(1), fetch(2), fetch(3)])
    >>> result.unwrap()
    [user1, user2, user3]

    >>> result = await try_join_all([ok_after(1), fail_now("e"), ok_after(3)])
    >>> result.unwrap_err()
    'e'
"""

from __future__ import annotations

import operator
from collections.abc import Generator, Iterable, Sized
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, NamedTuple, TypeVar

from tryjoin.foundation.config import get_settings
from tryjoin.foundation.errors import ContractViolation, Err, Ok, Result
from tryjoin.runtime.observability import get_logger

from .ordered import OrderedTryJoin
from .poll import PENDING, Context, Poll, Ready, TryPollable, as_operand, drive
from .slot import CompletionSlot

T = TypeVar("T")

_log = get_logger("tryjoin.join")


class SizeHint(NamedTuple):
    """Bounds on the number of operands. ``upper=None`` means unknown."""

    lower: int
    upper: int | None

    @classmethod
    def of(cls, operands: object) -> SizeHint:
        """Derive a hint: exact for Sized inputs, unbounded otherwise."""
        if isinstance(operands, Sized):
            n = len(operands)
            return cls(n, n)
        return cls(operator.length_hint(operands, 0), None)


class JoinMode(StrEnum):
    """Internal representation of a TryJoinAll."""
    SMALL = "small"  # FixedBatch
    BIG = "big"      # OrderedTryJoin


class _Scan(StrEnum):
    ALL_DONE = "all_done"
    STILL_PENDING = "still_pending"
    FAILED = "failed"


# ─────────────────────────────────────────────────────────────────────────────
# Fixed-capacity driver
# ─────────────────────────────────────────────────────────────────────────────


class FixedBatch(Generic[T]):
    """Fixed-length sequence of completion slots, rescanned in index order every cycle.

    The first failure met during a scan wins; slots after it are not advanced
    that cycle. After the final outcome the slots are released and any further
    poll raises ContractViolation.
    """

    __slots__ = ("_slots",)

    def __init__(self, operands: Iterable[Any]) -> None:
        self._slots: tuple[CompletionSlot[T], ...] | None = tuple(
            CompletionSlot(as_operand(op)) for op in operands
        )

    def __len__(self) -> int:
        return len(self._slots) if self._slots is not None else 0

    def poll(self, cx: Context) -> Poll[Result[list[T], Any]]:
        if self._slots is None:
            raise ContractViolation.polled_after_completion("FixedBatch")

        state = _Scan.ALL_DONE
        error: Any = None
        failed_at = -1
        for index, slot in enumerate(self._slots):
            outcome = slot.advance(cx)
            if outcome is PENDING:
                state = _Scan.STILL_PENDING
                continue
            settled: Result[None, Any] = outcome.value  # type: ignore[union-attr]
            if settled.is_err():
                state, error, failed_at = _Scan.FAILED, settled.unwrap_err(), index
                break

        if state is _Scan.STILL_PENDING:
            return PENDING

        slots, self._slots = self._slots, None
        if state is _Scan.FAILED:
            for slot in slots:
                slot.abandon()
            _log.debug("fixed batch failed", index=failed_at, slots=len(slots))
            return Ready(Err(error))
        return Ready(Ok([slot.extract() for slot in slots]))

    def close(self) -> None:
        slots, self._slots = self._slots, None
        for slot in slots or ():
            slot.abandon()

    def is_terminated(self) -> bool:
        return self._slots is None

    def __repr__(self) -> str:
        return f"FixedBatch(slots={list(self._slots) if self._slots is not None else []!r})"


# ─────────────────────────────────────────────────────────────────────────────
# Aggregator
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class _Plan:
    mode: JoinMode
    hint: SizeHint
    threshold: int


def _plan(operands: object, size_hint: SizeHint | None, small_threshold: int | None) -> _Plan:
    hint = size_hint if size_hint is not None else SizeHint.of(operands)
    threshold = small_threshold if small_threshold is not None else get_settings().small_batch_threshold
    small = hint.upper is not None and hint.upper <= threshold
    return _Plan(JoinMode.SMALL if small else JoinMode.BIG, hint, threshold)


class TryJoinAll(Generic[T]):
    """Future for try_join_all(): all outputs in order, or the first error.

    Awaiting it yields a Result. It also speaks the poll protocol directly
    (``poll``/``close``/``is_terminated``), so joins can be nested as operands.

    Args:
        operands: Awaitables or TryPollables; consumed eagerly
        size_hint: Override the hint derived from ``operands``
        small_threshold: Override ``JoinSettings.small_batch_threshold``

    Raises:
        ContractViolation: If polled or awaited again after the final outcome
    """

    __slots__ = ("_mode", "_driver", "_count")

    def __init__(
        self,
        operands: Iterable[Any],
        *,
        size_hint: SizeHint | None = None,
        small_threshold: int | None = None,
    ) -> None:
        plan = _plan(operands, size_hint, small_threshold)
        self._mode = plan.mode
        self._driver: FixedBatch[T] | OrderedTryJoin[T]
        if plan.mode is JoinMode.SMALL:
            self._driver = FixedBatch(operands)
            self._count = len(self._driver)
        else:
            self._driver = OrderedTryJoin(operands)
            self._count = self._driver.outstanding
        _log.debug(
            "join constructed",
            mode=plan.mode.value,
            operands=self._count,
            hint_lower=plan.hint.lower,
            hint_upper=plan.hint.upper,
            threshold=plan.threshold,
        )

    @classmethod
    def from_iter(cls, operands: Iterable[Any]) -> TryJoinAll[T]:
        return cls(operands)

    @property
    def mode(self) -> JoinMode:
        return self._mode

    def __len__(self) -> int:
        """Number of operands the join was built with."""
        return self._count

    def poll(self, cx: Context) -> Poll[Result[list[T], Any]]:
        try:
            outcome = self._driver.poll(cx)
        except ContractViolation as fault:
            _log.error("join contract violation", mode=self._mode.value, **fault.info.model_dump(mode="json"))
            raise
        if isinstance(outcome, Ready):
            _log.debug(
                "join finished",
                mode=self._mode.value,
                ok=outcome.value.is_ok(),
                operands=self._count,
            )
        return outcome

    def close(self) -> None:
        """Abandon the join and every operand it still owns."""
        if not self._driver.is_terminated():
            _log.debug("join abandoned", mode=self._mode.value, operands=self._count)
        self._driver.close()

    def is_terminated(self) -> bool:
        return self._driver.is_terminated()

    def __await__(self) -> Generator[Any, None, Result[list[T], Any]]:
        try:
            return (yield from drive(self))
        except BaseException:
            # Cancelled, closed, or a fault: release every operand before propagating
            self.close()
            raise

    def __repr__(self) -> str:
        return f"TryJoinAll(mode={self._mode.value}, {self._driver!r})"


def try_join_all(
    operands: Iterable[Any],
    *,
    size_hint: SizeHint | None = None,
    small_threshold: int | None = None,
) -> TryJoinAll[Any]:
    """Create a future that resolves to all outputs in order, or the first error.

    If any operand fails, all other operands are abandoned (closed, never
    polled again) and the error is returned immediately. If all succeed, the
    result is ``Ok`` with every output in the order the operands were given.

    Example:
        >>> assert await try_join_all([ok(1), ok(2), ok(3)]) == Ok([1, 2, 3])
        >>> assert await try_join_all([ok(1), err(2), ok(3)]) == Err(2)
    """
    return TryJoinAll(operands, size_hint=size_hint, small_threshold=small_threshold)

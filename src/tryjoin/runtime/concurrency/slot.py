"""Completion slot: one operand, then its output, then nothing.

State machine::

    PENDING --advance() ok--> READY --extract()--> TAKEN
       |                                             ^
       +------advance() err / abandon()--------------+

Transitions are checked at every access; illegal extraction raises
ContractViolation instead of returning a value.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from tryjoin.foundation.errors import ContractViolation, FaultCode, Ok, Result

from .poll import PENDING, Context, Poll, Ready, TryPollable

T = TypeVar("T")

_SETTLED: Ready[Result[None, Any]] = Ready(Ok(None))


class SlotState(StrEnum):
    """Completion slot lifecycle states."""
    PENDING = "pending"  # Owns an unresolved operand
    READY = "ready"      # Owns the operand's output, not yet taken
    TAKEN = "taken"      # Empty, terminal


class CompletionSlot(Generic[T]):
    """Holds one in-flight operand and, once it succeeds, its output.

    Example:
        >>> slot = CompletionSlot(as_operand(fetch(1)))
        >>> slot.advance(cx)        # PENDING until fetch(1) finishes
        >>> slot.advance(cx)        # Ready(Ok(None)) once the output is stored
        >>> slot.extract()          # the output; the slot is now TAKEN
    """

    __slots__ = ("_state", "_operand", "_output")

    def __init__(self, operand: TryPollable) -> None:
        self._state = SlotState.PENDING
        self._operand: TryPollable | None = operand
        self._output: T | None = None

    @property
    def state(self) -> SlotState:
        return self._state

    def advance(self, cx: Context) -> Poll[Result[None, Any]]:
        """Poll the operand once if still PENDING.

        Returns:
            PENDING while the operand is unresolved, Ready(Err(e)) on failure
            (the slot becomes TAKEN), Ready(Ok(None)) when settled.
        """
        operand = self._operand
        if self._state is not SlotState.PENDING or operand is None:
            return _SETTLED
        outcome = operand.poll(cx)
        if outcome is PENDING:
            return PENDING
        result: Result[T, Any] = outcome.value  # type: ignore[union-attr]
        self._operand = None
        if result.is_err():
            self._state = SlotState.TAKEN
            return Ready(result)  # type: ignore[arg-type]
        self._output = result.unwrap()
        self._state = SlotState.READY
        return _SETTLED

    def extract(self) -> T:
        """Move the output out. Valid exactly once, and only when READY."""
        if self._state is SlotState.PENDING:
            raise ContractViolation("CompletionSlot", FaultCode.SLOT_NOT_READY, "extract() on a pending slot")
        if self._state is SlotState.TAKEN:
            raise ContractViolation("CompletionSlot", FaultCode.SLOT_ALREADY_TAKEN, "extract() on a taken slot")
        output, self._output = self._output, None
        self._state = SlotState.TAKEN
        return output  # type: ignore[return-value]

    def abandon(self) -> None:
        """Release whatever the slot owns; a pending operand is closed, never finished."""
        operand, self._operand = self._operand, None
        self._output = None
        self._state = SlotState.TAKEN
        if operand is not None:
            operand.close()

    def __repr__(self) -> str:
        if self._state is SlotState.READY:
            return f"CompletionSlot(ready={self._output!r})"
        return f"CompletionSlot({self._state})"

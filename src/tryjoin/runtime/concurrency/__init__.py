"""Poll-driven concurrency primitives for fail-fast joins.

Key Components:
    - Poll protocol: PENDING, Ready, Waker, Context, TryPollable, Operand, drive
    - CompletionSlot: exactly-once output holder
    - FixedBatch / OrderedTryJoin: small (rescanning) and big (incremental) drivers
    - TryJoinAll / try_join_all: the mode-selecting aggregator
    - ResultFuture: a Result as a pollable unit
    - try_gather: raising variant of try_join_all

Design Philosophy:
    - Task per coroutine: timeouts, TaskGroups and context variables stay
      scoped to the operand that uses them
    - Fail-fast: the first failure abandons every other operand
    - Abandonment is ownership release: close() cancels the Tasks the join spawned
    - Order-preserving: outputs follow submission order

Example:
    >>> from tryjoin.runtime.concurrency import try_join_all
    >>> result = await try_join_all(fetch(i) for i in range(1000))  # BIG mode
"""

from __future__ import annotations

from .join import FixedBatch, JoinMode, SizeHint, TryJoinAll, try_join_all
from .ordered import CompletionQueue, OrderedTryJoin
from .poll import (
    PENDING,
    Context,
    Operand,
    Poll,
    Pollable,
    Ready,
    TryPollable,
    Waker,
    as_operand,
    drive,
)
from .result_future import ResultFuture
from .slot import CompletionSlot, SlotState
from .wait import try_gather

__all__ = [
    # Poll protocol
    "PENDING",
    "Ready",
    "Poll",
    "Waker",
    "Context",
    "Pollable",
    "TryPollable",
    "Operand",
    "as_operand",
    "drive",
    # Slots and drivers
    "CompletionSlot",
    "SlotState",
    "FixedBatch",
    "CompletionQueue",
    "OrderedTryJoin",
    # Aggregator
    "TryJoinAll",
    "JoinMode",
    "SizeHint",
    "try_join_all",
    # Adapters and wait strategies
    "ResultFuture",
    "try_gather",
]

"""tryjoin - fail-fast concurrent joins for asyncio.

Awaits many awaitables concurrently and returns one Result: every output
in submission order, or the first error with all other operands abandoned.

Quick Start:
    >>> import asyncio
    >>> from tryjoin import try_join_all, Ok, Err
    >>>
    >>> async def ok(v, delay=0.0):
    ...     await asyncio.sleep(delay)
    ...     return v
    >>>
    >>> async def boom(msg):
    ...     raise ValueError(msg)
    >>>
    >>> async def main():
    ...     assert await try_join_all([ok(1, 0.03), ok(2, 0.02), ok(3)]) == Ok([1, 2, 3])
    ...     result = await try_join_all([ok(1), boom("e"), ok(3, 10)])
    ...     assert str(result.unwrap_err()) == "e"

Raising Style:
    >>> from tryjoin import try_gather
    >>> values = await try_gather(ok(1), ok(2))

Results as Operands:
    >>> from tryjoin import ResultFuture
    >>> await try_join_all([ResultFuture(Ok(ok(1))), ResultFuture(Err("missing"))])
    Err('missing')

Configuration (environment):
    TRYJOIN_SMALL_BATCH_THRESHOLD=30   operand count up to which the rescanning driver is used
    TRYJOIN_LOG_LEVEL=DEBUG            join lifecycle logging
    TRYJOIN_LOG_FORMAT=json
"""

from __future__ import annotations

__version__ = "0.1.0"

from .foundation.config import JoinSettings, LoggingSettings, clear_settings_cache, get_settings
from .foundation.errors import ContractViolation, Err, FaultCode, FaultInfo, Ok, OperandFailed, Result
from .runtime.concurrency import (
    PENDING,
    CompletionQueue,
    CompletionSlot,
    Context,
    FixedBatch,
    JoinMode,
    Operand,
    OrderedTryJoin,
    Ready,
    ResultFuture,
    SizeHint,
    SlotState,
    TryJoinAll,
    TryPollable,
    Waker,
    try_gather,
    try_join_all,
)
from .runtime.observability import configure_from_settings, configure_logging, get_logger, log_context

__all__ = [
    "__version__",
    # Join
    "TryJoinAll", "try_join_all", "try_gather", "JoinMode", "SizeHint",
    "ResultFuture",
    # Drivers and slots
    "FixedBatch", "OrderedTryJoin", "CompletionQueue", "CompletionSlot", "SlotState",
    # Poll protocol
    "PENDING", "Ready", "Waker", "Context", "TryPollable", "Operand",
    # Errors
    "Result", "Ok", "Err", "ContractViolation", "FaultCode", "FaultInfo", "OperandFailed",
    # Config
    "JoinSettings", "LoggingSettings", "get_settings", "clear_settings_cache",
    # Logging
    "get_logger", "configure_logging", "configure_from_settings", "log_context",
]

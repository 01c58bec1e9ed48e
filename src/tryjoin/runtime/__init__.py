"""Runtime - polling, joining, and observability.

Contains: concurrency (poll protocol, join drivers), observability (logging).
"""

from __future__ import annotations

__all__ = [
    # Concurrency
    "TryJoinAll", "try_join_all", "try_gather", "ResultFuture", "JoinMode", "SizeHint",
    # Observability
    "get_logger", "configure_logging", "configure_from_settings", "log_context",
]


def __getattr__(name: str):
    """Lazy imports keep ``import tryjoin.runtime.observability`` free of the join machinery."""
    if name in ("TryJoinAll", "try_join_all", "try_gather", "ResultFuture", "JoinMode", "SizeHint"):
        from . import concurrency
        return getattr(concurrency, name)
    if name in ("get_logger", "configure_logging", "configure_from_settings", "log_context"):
        from . import observability
        return getattr(observability, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

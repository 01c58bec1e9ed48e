"""Poll protocol: the cooperative stepping contract shared by every join unit.

A unit is *polled* with a Context carrying a Waker. It answers either
``PENDING`` (after arranging for the waker to fire once progress is possible)
or ``Ready(value)``. Nothing here blocks or performs I/O; the only Tasks
created are the ones Operand spawns for coroutines.

Key Components:
    - PENDING / Ready: the two poll answers
    - Waker / Context: wake-up plumbing handed down on every poll
    - TryPollable: protocol for units whose Ready value is a Result
    - Operand: adapts any awaitable (coroutine, Future, Task) into a TryPollable,
      running coroutines in a Task of their own
    - drive: runs a pollable inside the asyncio Task that awaits it

Operand outcome convention:
    returning a Result  -> that Result, unchanged
    returning a value   -> Ok(value)
    raising Exception   -> Err(exception)
    raising other BaseException (CancelledError, ...) -> propagates out of poll()
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from typing import Any, Final, Generic, Protocol, TypeVar, Union, runtime_checkable

from tryjoin.foundation.errors import ContractViolation, Err, Result, as_result

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


# ─────────────────────────────────────────────────────────────────────────────
# Poll answers
# ─────────────────────────────────────────────────────────────────────────────


class _Pending:
    """Singleton type of PENDING."""

    __slots__ = ()
    _instance: _Pending | None = None

    def __new__(cls) -> _Pending:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"


PENDING: Final = _Pending()


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    """Poll answer carrying a final value."""

    value: T


Poll = Union[Ready[T], _Pending]


# ─────────────────────────────────────────────────────────────────────────────
# Wake-up plumbing
# ─────────────────────────────────────────────────────────────────────────────


class Waker:
    """Schedules another poll of whatever owns it.

    May fire any number of times, including after the owner has finished;
    extra wake-ups only cost a spurious poll.
    """

    __slots__ = ("_on_wake",)

    def __init__(self, on_wake: Callable[[], None] | None = None) -> None:
        self._on_wake = on_wake

    def wake(self) -> None:
        if self._on_wake is not None:
            self._on_wake()


@dataclass(frozen=True, slots=True)
class Context:
    """Per-poll context. Children polled on behalf of a parent may get their own waker."""

    waker: Waker


@runtime_checkable
class Pollable(Protocol[T_co]):
    def poll(self, cx: Context) -> Poll[T_co]: ...


@runtime_checkable
class TryPollable(Protocol):
    """A pollable unit whose Ready value is a Result.

    ``close()`` releases ownership of in-flight work (abandonment).
    ``is_terminated()`` reports whether the unit must not be polled again.
    """

    def poll(self, cx: Context) -> Poll[Result[Any, Any]]: ...
    def close(self) -> None: ...
    def is_terminated(self) -> bool: ...


# ─────────────────────────────────────────────────────────────────────────────
# Operand: awaitable -> TryPollable
# ─────────────────────────────────────────────────────────────────────────────


class Operand(Generic[T]):
    """Pollable view over one awaitable.

    Coroutines and other awaitables are spawned as their own asyncio Task on
    the first poll, so ``current_task()``, cancellation scopes
    (``asyncio.timeout``, ``TaskGroup``) and context variables belong to the
    operand, not to the Task awaiting the join. Futures and Tasks passed in
    directly are watched as they are and never cancelled by the join.

    Polls before completion only record the waker and return PENDING; the
    future's done-callback fires the most recent one.

    Example:
        >>> op = Operand(fetch_user(1))
        >>> op.poll(cx)   # PENDING, or Ready(Ok(user)) / Ready(Err(exc))
    """

    __slots__ = ("_awaitable", "_future", "_owned", "_label", "_waker", "_done")

    def __init__(self, awaitable: Awaitable[T]) -> None:
        if not inspect.isawaitable(awaitable):
            raise TypeError(f"An awaitable or TryPollable is required, got {type(awaitable).__name__}")
        self._awaitable: Awaitable[T] | None = awaitable
        self._future: asyncio.Future[Any] | None = None
        self._owned = False
        self._label: str = getattr(awaitable, "__qualname__", type(awaitable).__name__)
        self._waker: Waker | None = None
        self._done = False

    def poll(self, cx: Context) -> Poll[Result[T, Any]]:
        if self._done:
            raise ContractViolation.polled_after_completion("Operand")
        self._waker = cx.waker
        fut = self._future if self._future is not None else self._spawn()
        if not fut.done():
            return PENDING

        self._done = True
        self._awaitable = None
        if fut.cancelled():
            raise asyncio.CancelledError(f"{self._label} was cancelled")
        exc = fut.exception()
        if exc is None:
            return Ready(as_result(fut.result()))
        if isinstance(exc, Exception):
            return Ready(Err(exc))
        raise exc

    def _spawn(self) -> asyncio.Future[Any]:
        awaitable = self._awaitable
        if asyncio.isfuture(awaitable):
            fut = awaitable
        else:
            loop = asyncio.get_running_loop()
            coro = awaitable if asyncio.iscoroutine(awaitable) else _awaited(awaitable)
            fut = loop.create_task(coro, name=f"tryjoin:{self._label}")
            self._owned = True
        fut.add_done_callback(self._on_done)
        self._future = fut
        return fut

    def _on_done(self, fut: asyncio.Future[Any]) -> None:
        if self._done:
            if self._owned and not fut.cancelled():
                fut.exception()  # abandoned: a late failure is not reported
            return
        if self._waker is not None:
            self._waker.wake()

    def close(self) -> None:
        """Abandon the awaitable: cancel the Task spawned for it, or close a coroutine never started."""
        if self._done:
            return
        self._done = True
        awaitable, self._awaitable = self._awaitable, None
        fut = self._future
        if fut is None:
            if inspect.iscoroutine(awaitable) or inspect.isgenerator(awaitable):
                awaitable.close()
            return
        if not self._owned:
            return
        if not fut.done():
            fut.cancel()
        elif not fut.cancelled():
            fut.exception()

    def is_terminated(self) -> bool:
        return self._done

    def __repr__(self) -> str:
        state = "done" if self._done else "pending" if self._future is None else "running"
        return f"Operand({self._label}, {state})"


async def _awaited(awaitable: Awaitable[T]) -> T:
    return await awaitable


def as_operand(obj: TryPollable | Awaitable[Any]) -> TryPollable:
    """Use ``obj`` directly if it already speaks the poll protocol, otherwise wrap it."""
    if isinstance(obj, TryPollable):
        return obj
    return Operand(obj)



# ─────────────────────────────────────────────────────────────────────────────
# asyncio bridge
# ─────────────────────────────────────────────────────────────────────────────


class _TaskWaker(Waker):
    """Waker that resumes the asyncio Task suspended in drive()."""

    __slots__ = ("_loop", "_future", "_woken")

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._loop = loop
        self._future: asyncio.Future[None] | None = None
        self._woken = False

    def wake(self) -> None:
        self._woken = True
        fut = self._future
        if fut is not None and not fut.done():
            fut.set_result(None)

    def reset(self) -> None:
        self._woken = False

    def suspend(self) -> Generator[Any, None, None]:
        if self._woken:
            # Woken during the poll itself: give the loop one turn, then poll again
            yield
            return
        fut = self._loop.create_future()
        self._future = fut
        try:
            yield from fut
        finally:
            self._future = None


def drive(pollable: Pollable[T]) -> Generator[Any, None, T]:
    """Poll ``pollable`` to completion from inside an asyncio Task.

    Use as the body of ``__await__``::

        def __await__(self):
            return (yield from drive(self))
    """
    waker = _TaskWaker(asyncio.get_running_loop())
    cx = Context(waker)
    while True:
        waker.reset()
        outcome = pollable.poll(cx)
        if isinstance(outcome, Ready):
            return outcome.value
        yield from waker.suspend()

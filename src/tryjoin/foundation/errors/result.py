"""Result/Either type carrying operand and join outcomes.

A discriminated union for success/failure:
- Ok(value) / Err(error) constructors
- Functor: map, map_err
- Monad: flat_map
- Exhaustive case analysis via match()

Every pollable in tryjoin reports completion as ``Ready(Result)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Success (Ok) or failure (Err).

    Examples:
        >>> Ok(21).map(lambda x: x * 2).unwrap()
        42
        >>> Err("boom").map(lambda x: x * 2).unwrap_err()
        'boom'
        >>> Ok([1, 2]) == Ok([1, 2])
        True
    """

    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)

    def __init__(self, value: T | E, is_ok: bool) -> None:
        """Private constructor. Use Ok() or Err() instead."""
        self._value = value
        self._is_ok = is_ok

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    # ─── Extraction ──────────────────────────────────────────────────

    def unwrap(self) -> T:
        """Extract Ok value.

        Raises:
            RuntimeError: If Result is Err
        """
        if self._is_ok:
            return cast(T, self._value)
        raise RuntimeError(f"Called unwrap() on Err value: {self._value!r}")

    def unwrap_err(self) -> E:
        """Extract Err value.

        Raises:
            RuntimeError: If Result is Ok
        """
        if not self._is_ok:
            return cast(E, self._value)
        raise RuntimeError(f"Called unwrap_err() on Ok value: {self._value!r}")

    def unwrap_or(self, default: T) -> T:
        return cast(T, self._value) if self._is_ok else default

    def ok(self) -> T | None:
        return cast(T, self._value) if self._is_ok else None

    def err(self) -> E | None:
        return None if self._is_ok else cast(E, self._value)

    # ─── Combinators ─────────────────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Apply f to the Ok value, pass Err through."""
        return Ok(f(cast(T, self._value))) if self._is_ok else cast("Result[U, E]", self)

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """Apply f to the Err value, pass Ok through."""
        return cast("Result[T, F]", self) if self._is_ok else Err(f(cast(E, self._value)))

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain an operation that can itself fail."""
        return f(cast(T, self._value)) if self._is_ok else cast("Result[U, E]", self)

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Exhaustive case analysis.

        Example:
            >>> Err("e").match(ok=lambda v: f"got {v}", err=lambda e: f"failed {e}")
            'failed e'
        """
        return ok(cast(T, self._value)) if self._is_ok else err(cast(E, self._value))

    # ─── Dunder Methods ──────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._is_ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_ok == other._is_ok and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))

    def __iter__(self) -> Iterator[T]:
        """Yield the Ok value, if any."""
        if self._is_ok:
            yield cast(T, self._value)


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Construct the success variant."""
    return Result(value, is_ok=True)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Construct the failure variant."""
    return Result(error, is_ok=False)


def as_result(value: object) -> Result[object, object]:
    """Lift an awaited value into a Result; Results pass through unchanged."""
    return value if isinstance(value, Result) else Ok(value)

"""Exception-raising wait strategy on top of TryJoinAll.

try_join_all() returns a Result; try_gather() is for callers who prefer
asyncio.gather-style exceptions but want true fail-fast abandonment.

Example:
    >>> users = await try_gather(fetch(1), fetch(2), fetch(3))
    >>> try:
    ...     await try_gather(fetch(1), explode())
    ... except ValueError as e:
    ...     print(f"first failure: {e}")
"""

from __future__ import annotations

from typing import Any

from tryjoin.foundation.errors import OperandFailed

from .join import SizeHint, TryJoinAll


async def try_gather(
    *operands: Any,
    size_hint: SizeHint | None = None,
    small_threshold: int | None = None,
) -> list[Any]:
    """Await every operand; return outputs in order or raise the first failure.

    Args:
        *operands: Awaitables or TryPollables
        size_hint: Override the hint derived from the operand count
        small_threshold: Override the configured small-batch threshold

    Returns:
        Outputs in the order the operands were given

    Raises:
        BaseException: The first failure, when it is an exception
        OperandFailed: The first failure, when it is a plain error value
    """
    result = await TryJoinAll(operands, size_hint=size_hint, small_threshold=small_threshold)
    if result.is_ok():
        return result.unwrap()
    error = result.unwrap_err()
    if isinstance(error, BaseException):
        raise error
    raise OperandFailed(error)

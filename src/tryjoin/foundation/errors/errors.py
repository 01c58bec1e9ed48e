"""Fault types for join combinators.

Two classes of failure exist in tryjoin:
    - Operand failures travel as ``Err`` values inside a Result and are never raised
      by the join machinery itself.
    - Contract violations (polling a finished unit, extracting from an unready slot)
      are programming errors. They raise ContractViolation and are never returned.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class FaultCode(StrEnum):
    """Machine-readable classification of contract violations."""
    POLLED_AFTER_COMPLETION = "POLLED_AFTER_COMPLETION"
    SLOT_NOT_READY = "SLOT_NOT_READY"
    SLOT_ALREADY_TAKEN = "SLOT_ALREADY_TAKEN"


class FaultInfo(BaseModel):
    """Structured description of a contract violation, suitable for logging."""

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
        json_schema_extra={
            "title": "Fault Info",
            "examples": [{
                "component": "FixedBatch",
                "code": "POLLED_AFTER_COMPLETION",
                "message": "FixedBatch polled after completion",
            }],
        },
    )

    component: Annotated[str, Field(min_length=1, description="Type that detected the violation")]
    code: FaultCode
    message: Annotated[str, Field(min_length=1)]

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ContractViolation(RuntimeError):
    """Raised when a caller breaks the poll/extract protocol.

    Subclasses RuntimeError, mirroring ``Result.unwrap()`` on the wrong variant:
    these are panics, not recoverable conditions.

    Attributes:
        info: FaultInfo describing where and why
    """

    def __init__(self, component: str, code: FaultCode, message: str) -> None:
        self.info = FaultInfo(component=component, code=code, message=message)
        super().__init__(str(self.info))

    @property
    def code(self) -> FaultCode:
        return self.info.code

    @classmethod
    def polled_after_completion(cls, component: str) -> ContractViolation:
        return cls(component, FaultCode.POLLED_AFTER_COMPLETION, f"{component} polled after completion")


class OperandFailed(Exception):
    """Raised by try_gather when the first failure is not itself an exception.

    Attributes:
        error: The operand's error value, unchanged
    """

    def __init__(self, error: object) -> None:
        self.error = error
        super().__init__(f"operand failed: {error!r}")

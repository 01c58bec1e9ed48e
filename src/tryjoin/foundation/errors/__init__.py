"""Error handling for tryjoin.

- Result/Ok/Err: outcome type for operands and joins
- ContractViolation/FaultCode/FaultInfo: protocol misuse (raised, never returned)
- OperandFailed: raising wrapper for non-exception error values
"""

from .errors import ContractViolation, FaultCode, FaultInfo, OperandFailed
from .result import Err, Ok, Result, as_result

__all__ = [
    # Faults
    "ContractViolation", "FaultCode", "FaultInfo", "OperandFailed",
    # Result
    "Result", "Ok", "Err", "as_result",
]

"""Foundation - building blocks for tryjoin.

Contains: error handling (Result, faults), configuration, testing helpers.
"""

from __future__ import annotations

from .config import JoinSettings, LoggingSettings, clear_settings_cache, get_settings
from .errors import ContractViolation, Err, FaultCode, FaultInfo, Ok, OperandFailed, Result, as_result

__all__ = [
    # Errors
    "Result", "Ok", "Err", "as_result",
    "ContractViolation", "FaultCode", "FaultInfo", "OperandFailed",
    # Config
    "JoinSettings", "LoggingSettings", "get_settings", "clear_settings_cache",
]

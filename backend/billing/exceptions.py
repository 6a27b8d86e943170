# billing/exceptions.py
"""
Error taxonomy for the ledger and tax engine.

All engine errors carry:
- message: Human-readable reason
- details: Structured context for logs and API payloads

Views map these to HTTP responses:
- NotFoundError            -> 404
- ArithmeticInputError     -> 400
- NumberingConflictError   -> 409

InvalidRangeError never reaches a view; the period resolver catches it,
logs it, and falls back to the default range.
"""

from typing import Any, Dict, Optional


class LedgerEngineError(Exception):
    """Base class for all ledger engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for logging/API responses."""
        return {
            "error_type": self.__class__.__name__,
            "detail": str(self),
            "details": self.details,
        }


class NotFoundError(LedgerEngineError):
    """Referenced party or document does not exist."""
    pass


class PartyNotFound(NotFoundError):
    pass


class DocumentNotFound(NotFoundError):
    pass


class InvalidRangeError(LedgerEngineError):
    """
    Date range parameters are unparsable or inverted (start after end).
    """
    pass


class NumberingConflictError(LedgerEngineError):
    """
    The atomic numbering step could not complete.

    Raised for lock timeouts and constraint violations on the sequence
    row. Never retried here: the enclosing document transaction must
    roll back so no number is consumed and nothing is half-written.
    """
    pass


class ArithmeticInputError(LedgerEngineError):
    """
    A monetary or quantity input is not a finite number.

    Malformed input is rejected, never coerced to zero.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field is not None:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        self.field = field
        super().__init__(message, details)

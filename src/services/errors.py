"""
Exceptions raised by the commission services.

Only invalid input, missing deals and concurrent recomputation reach the
caller. Hierarchy gaps, cycles and unknown carrier rates are absorbed by
the services with a deterministic fallback and only logged.
"""

from typing import Optional


class CommissionError(Exception):
    """Base exception for deal and commission operations."""

    def __init__(self, message: str, code: str = "commission_error", details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class InvalidDealInput(CommissionError):
    """Raised before any computation when the deal cannot be commissioned."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="invalid_input", details=details)


class DealNotFoundError(CommissionError):
    def __init__(self, deal_id: int):
        super().__init__(
            f"Deal {deal_id} not found",
            code="not_found",
            details={"deal_id": deal_id},
        )


class ConcurrentRecomputeError(CommissionError):
    """Raised when another edit of the same deal won the race."""

    def __init__(self, deal_id: int, expected_version: Optional[int] = None, current_version: Optional[int] = None):
        super().__init__(
            f"Deal {deal_id} was modified concurrently, reload and retry",
            code="conflict",
            details={
                "deal_id": deal_id,
                "expected_version": expected_version,
                "current_version": current_version,
            },
        )

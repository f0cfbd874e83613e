"""Error taxonomy for the calculation core."""

from typing import Any, Optional


class PaycalcError(Exception):
    """Base exception for all calculation core errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(PaycalcError, ValueError):
    """Raised when a caller passes a value outside a function's domain."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid {field}: {reason}",
            details={"field": field, "value": value, "reason": reason},
        )


class UnknownCreditTierError(InvalidInputError):
    """Raised when a credit tier id is not in the static catalog."""

    def __init__(self, tier_id: str):
        super().__init__("credit_tier_id", tier_id, "unknown credit tier")


class AcceleratedBackendError(PaycalcError):
    """Raised when the accelerated backend cannot be loaded."""

    def __init__(self, backend: str, reason: Optional[str] = None):
        message = f"Accelerated backend '{backend}' unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"backend": backend, "reason": reason})

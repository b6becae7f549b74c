"""Standardized exception hierarchy for the payment core.

Every error carries a stable ``code`` so callers can branch on it instead of
parsing the human-readable message.
"""

from typing import Any


class PaymentError(Exception):
    """Base exception for all payment errors."""

    code = "PAYMENT_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(PaymentError):
    """Errors that may succeed on retry."""

    code = "TRANSIENT_ERROR"


class NetworkError(TransientError):
    """Network-related transient errors (timeout, connection refused)."""

    code = "NETWORK_ERROR"


class ServiceUnavailableError(TransientError):
    """External service temporarily unavailable (5xx responses)."""

    code = "SERVICE_UNAVAILABLE"


class PermanentError(PaymentError):
    """Errors that will not succeed on retry."""

    code = "PERMANENT_ERROR"


class ValidationError(PermanentError):
    """Invalid input or data format."""

    code = "VALIDATION_ERROR"


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    code = "NOT_FOUND"


class PaymentMethodNotFound(NotFoundError):
    """Payment method does not exist or belongs to another owner."""

    code = "PAYMENT_METHOD_NOT_FOUND"

    def __init__(
        self, message: str = "Payment method not found", details: dict[str, Any] | None = None
    ):
        super().__init__(message, details)


class UnsupportedPaymentMethodType(PermanentError):
    """No adapter handles this kind of payment method."""

    code = "UNSUPPORTED_PAYMENT_METHOD_TYPE"

    def __init__(
        self, message: str = "Unsupported payment method type", details: dict[str, Any] | None = None
    ):
        super().__init__(message, details)


class UnsupportedPaymentMethod(UnsupportedPaymentMethodType):
    """Known kind, but no adapter is mapped to the (kind, provider) pair."""

    code = "UNSUPPORTED_PAYMENT_METHOD"


class IncompletePaymentMethod(PermanentError):
    """Stored account details are missing fields the provider requires."""

    code = "INCOMPLETE_PAYMENT_METHOD"


class ProviderError(PaymentError):
    """Adapter-level failure reported by (or talking to) a payment provider."""

    code = "PROVIDER_ERROR"


class ProviderTimeoutError(ProviderError, NetworkError):
    """Provider call exceeded its timeout. Retryable."""

    code = "PROVIDER_TIMEOUT"


class ProviderUnavailableError(ProviderError, ServiceUnavailableError):
    """Provider returned 5xx or could not be reached. Retryable."""

    code = "PROVIDER_UNAVAILABLE"


class ProviderDeclinedError(ProviderError, PermanentError):
    """Provider rejected the payment. Not retryable."""

    code = "PROVIDER_DECLINED"


class ProviderResponseMismatch(ProviderError, PermanentError):
    """Provider confirmed a different amount or currency than was charged."""

    code = "PROVIDER_RESPONSE_MISMATCH"


class StorageError(PaymentError):
    """Registry or ledger read/write failed."""

    code = "STORAGE_ERROR"


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    code = "CONFIGURATION_ERROR"

"""Error types for RLNKS SDK."""

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .types import RateLimitSnapshot


class ErrorKind(str, Enum):
    """Kind of a failed API request."""

    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class VerificationFailureKind(str, Enum):
    """Kind of a rejected webhook delivery."""

    MISSING_SIGNATURE = "missing_signature"
    SIGNATURE_MISMATCH = "signature_mismatch"
    TIMESTAMP_EXPIRED = "timestamp_expired"
    PAYLOAD_NOT_PARSEABLE = "payload_not_parseable"


class RlnksError(Exception):
    """Base error class for RLNKS SDK."""

    pass


class APIError(RlnksError):
    """Error returned by the RLNKS API, or raised while reaching it."""

    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    def __str__(self) -> str:
        status = f"HTTP {self.status_code}" if self.status_code is not None else self.kind.value
        if self.code:
            return f"rlnks: {self.message} ({status}, code: {self.code})"
        return f"rlnks: {self.message} ({status})"

    def is_server_error(self) -> bool:
        """Check if this is a server error."""
        return self.status_code is not None and self.status_code >= 500


class AuthenticationError(APIError):
    """
    The API key is invalid, missing, malformed or disabled (HTTP 401).
    """

    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(APIError):
    """
    The API key lacks a required scope, the caller IP is not whitelisted,
    or the resource belongs to another account (HTTP 403).
    """

    kind = ErrorKind.AUTHORIZATION


class NotFoundError(APIError):
    """The requested resource does not exist (HTTP 404)."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(APIError):
    """Request validation failed (HTTP 422)."""

    kind = ErrorKind.VALIDATION

    @property
    def validation_errors(self) -> dict[str, list[str]]:
        """Validation errors grouped by field, or {} if the server sent none."""
        return dict(self.details) if isinstance(self.details, dict) else {}

    def field_errors(self, field: str) -> list[str]:
        """Get the error messages for a single field."""
        messages = self.validation_errors.get(field)
        if isinstance(messages, list):
            return list(messages)
        return [messages] if isinstance(messages, str) else []

    def has_field_error(self, field: str) -> bool:
        """Check if a field has at least one error."""
        return len(self.field_errors(field)) > 0


class RateLimitError(APIError):
    """The rate limit was exceeded (HTTP 429)."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        *,
        rate_limit: Optional["RateLimitSnapshot"] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code, code, details)
        self.rate_limit = rate_limit
        self.retry_after = retry_after

    @property
    def limit(self) -> Optional[int]:
        """Request cap of the current window."""
        return self.rate_limit.limit if self.rate_limit else None

    @property
    def remaining(self) -> Optional[int]:
        """Requests left in the current window."""
        return self.rate_limit.remaining if self.rate_limit else None


class TransportError(APIError):
    """The request never produced a response (connection, timeout, TLS)."""

    kind = ErrorKind.TRANSPORT


class WebhookVerificationError(RlnksError):
    """A webhook delivery could not be authenticated or parsed."""

    kind: VerificationFailureKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingSignatureError(WebhookVerificationError):
    """Signature header is missing or empty."""

    kind = VerificationFailureKind.MISSING_SIGNATURE

    def __init__(self) -> None:
        super().__init__("Missing webhook signature")


class SignatureMismatchError(WebhookVerificationError):
    """Signature does not match."""

    kind = VerificationFailureKind.SIGNATURE_MISMATCH

    def __init__(self) -> None:
        super().__init__("Invalid webhook signature")


class TimestampExpiredError(WebhookVerificationError):
    """Timestamp is invalid or outside the tolerance window."""

    kind = VerificationFailureKind.TIMESTAMP_EXPIRED


class PayloadNotParseableError(WebhookVerificationError):
    """Verified payload is not a JSON object."""

    kind = VerificationFailureKind.PAYLOAD_NOT_PARSEABLE

"""RLNKS SDK - Python client for the RLNKS decision tree service."""

__version__ = "1.0.0"

import logging  # noqa: E402

from .client import DEFAULT_BASE_URL, RlnksClient  # noqa: E402
from .errors import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ErrorKind,
    MissingSignatureError,
    NotFoundError,
    PayloadNotParseableError,
    RateLimitError,
    RlnksError,
    SignatureMismatchError,
    TimestampExpiredError,
    TransportError,
    ValidationError,
    VerificationFailureKind,
    WebhookVerificationError,
)
from .response import (
    STATUS_ERRORS,
    classify_response,
    extract_rate_limit,
    parse_retry_after,
    transport_error,
    unwrap_data,
    unwrap_list,
)
from .signature import (
    SignatureVerifier,
    compute_signature,
    extract_webhook_headers,
    signed_message,
)
from .types import (
    AnalyticsPeriod,
    BreakdownDimension,
    CustomDomain,
    EphemeralLink,
    Image,
    Page,
    RateLimitSnapshot,
    Tree,
    TreeVariable,
    Webhook,
    WebhookEvent,
    WebhookEventType,
    WebhookSignature,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Client
    "RlnksClient",
    "DEFAULT_BASE_URL",
    # Types
    "RateLimitSnapshot",
    "Tree",
    "Webhook",
    "Page",
    "Image",
    "TreeVariable",
    "CustomDomain",
    "EphemeralLink",
    "AnalyticsPeriod",
    "BreakdownDimension",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookSignature",
    # Errors
    "RlnksError",
    "ErrorKind",
    "APIError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ValidationError",
    "RateLimitError",
    "TransportError",
    "VerificationFailureKind",
    "WebhookVerificationError",
    "MissingSignatureError",
    "SignatureMismatchError",
    "TimestampExpiredError",
    "PayloadNotParseableError",
    # Responses
    "STATUS_ERRORS",
    "classify_response",
    "extract_rate_limit",
    "parse_retry_after",
    "transport_error",
    "unwrap_data",
    "unwrap_list",
    # Signature
    "SignatureVerifier",
    "compute_signature",
    "extract_webhook_headers",
    "signed_message",
]

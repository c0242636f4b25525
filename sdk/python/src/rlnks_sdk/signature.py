"""Webhook signature verification."""

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Mapping, Optional, Union

from .errors import (
    MissingSignatureError,
    PayloadNotParseableError,
    SignatureMismatchError,
    TimestampExpiredError,
    WebhookVerificationError,
)
from .types import WebhookEvent, WebhookSignature

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300  # 5 minutes

SIGNATURE_HEADER = "X-RLNKS-Signature"
TIMESTAMP_HEADER = "X-RLNKS-Timestamp"

Payload = Union[str, bytes]
Timestamp = Union[str, int, None]


def _to_bytes(value: Payload) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def signed_message(payload: Payload, timestamp: Timestamp = None) -> bytes:
    """
    Build the byte sequence a signature covers.

    "{timestamp}.{payload}" when a timestamp is given, else the payload as is.
    """
    if timestamp is None:
        return _to_bytes(payload)
    return f"{timestamp}.".encode("utf-8") + _to_bytes(payload)


def compute_signature(message: Payload, secret: Payload) -> str:
    """
    Compute an HMAC-SHA256 signature in the RLNKS format.

    Args:
        message: The signed message (see signed_message)
        secret: The webhook signing secret

    Returns:
        The lowercase hex digest (64 characters)
    """
    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).hexdigest()


class SignatureVerifier:
    """
    Verifies webhook deliveries signed by RLNKS.

    Always verify before acting on a delivery:

        verifier = SignatureVerifier("whsec_...")
        signature, timestamp = extract_webhook_headers(request.headers)
        event = verifier.construct_event(request.body, signature, timestamp)
    """

    def __init__(self, secret: Payload, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS) -> None:
        """
        Initialize the verifier.

        Args:
            secret: Your webhook signing secret
            tolerance_seconds: Maximum age of a delivery timestamp (default: 300)
        """
        self._secret = _to_bytes(secret)
        self._tolerance_seconds = tolerance_seconds

    @property
    def tolerance_seconds(self) -> int:
        return self._tolerance_seconds

    def verify(
        self,
        payload: Payload,
        signature: str,
        timestamp: Timestamp = None,
        *,
        current_timestamp: Optional[int] = None,
    ) -> None:
        """
        Verify a webhook signature.

        Args:
            payload: The raw request body
            signature: The X-RLNKS-Signature header value
            timestamp: The X-RLNKS-Timestamp header value, if sent
            current_timestamp: Override current time for testing

        Raises:
            MissingSignatureError: If signature is missing
            TimestampExpiredError: If timestamp is not a number or too old
            SignatureMismatchError: If signature doesn't match
        """
        try:
            self._verify(payload, signature, timestamp, current_timestamp)
        except WebhookVerificationError as err:
            logger.warning("Rejected webhook delivery: %s", err.kind.value)
            raise

    def _verify(
        self,
        payload: Payload,
        signature: str,
        timestamp: Timestamp,
        current_timestamp: Optional[int],
    ) -> None:
        if not signature:
            raise MissingSignatureError()

        if timestamp is not None:
            self._check_timestamp(timestamp, current_timestamp)

        expected = compute_signature(signed_message(payload, timestamp), self._secret)

        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            raise SignatureMismatchError()

    def _check_timestamp(self, timestamp: Union[str, int], current_timestamp: Optional[int]) -> None:
        try:
            ts = int(timestamp)
        except (TypeError, ValueError) as err:
            raise TimestampExpiredError("Webhook timestamp is not a valid number") from err

        now = current_timestamp if current_timestamp is not None else int(time.time())
        age = abs(now - ts)
        if age > self._tolerance_seconds:
            raise TimestampExpiredError(f"Webhook timestamp is too old ({age} seconds)")

    def verify_and_parse(
        self,
        payload: Payload,
        signature: str,
        timestamp: Timestamp = None,
        *,
        current_timestamp: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Verify a webhook signature, then decode the payload.

        The payload is not inspected until the signature has been verified.

        Returns:
            The decoded JSON object

        Raises:
            WebhookVerificationError: As raised by verify()
            PayloadNotParseableError: If the payload is not a JSON object
        """
        self.verify(payload, signature, timestamp, current_timestamp=current_timestamp)

        try:
            data = json.loads(payload)
        except ValueError as err:
            raise PayloadNotParseableError(f"Invalid webhook payload: {err}") from err

        if not isinstance(data, dict):
            raise PayloadNotParseableError("Invalid webhook payload: expected a JSON object")
        return data

    def construct_event(
        self,
        payload: Payload,
        signature: str,
        timestamp: Timestamp = None,
        *,
        current_timestamp: Optional[int] = None,
    ) -> WebhookEvent:
        """
        Verify a webhook delivery and build its event.

        Raises:
            WebhookVerificationError: As raised by verify_and_parse()
        """
        data = self.verify_and_parse(
            payload, signature, timestamp, current_timestamp=current_timestamp
        )
        try:
            return WebhookEvent.from_payload(data)
        except (TypeError, ValueError, AttributeError) as err:
            raise PayloadNotParseableError(f"Invalid webhook event: {err}") from err

    def sign(self, payload: Payload, timestamp: Optional[int] = None) -> WebhookSignature:
        """
        Sign a payload the way RLNKS does, for tests and local tooling.

        Args:
            payload: The payload to sign
            timestamp: Unix timestamp (default: current time)
        """
        if timestamp is None:
            timestamp = int(time.time())
        signature = compute_signature(signed_message(payload, timestamp), self._secret)
        return WebhookSignature(signature=signature, timestamp=timestamp)


def extract_webhook_headers(headers: Mapping[str, Any]) -> tuple[str, Optional[str]]:
    """
    Extract webhook headers from a request headers object.

    Works with various header dict formats (case-insensitive).

    Args:
        headers: Headers dict from the request

    Returns:
        Tuple of (signature, timestamp); the signature is "" and the
        timestamp None when the header is absent
    """

    def get_header(name: str) -> Optional[str]:
        lower_name = name.lower()
        for key, value in headers.items():
            if key.lower() == lower_name:
                if isinstance(value, list):
                    value = value[0] if value else None
                return str(value) if value else None
        return None

    return (
        get_header(SIGNATURE_HEADER) or "",
        get_header(TIMESTAMP_HEADER),
    )

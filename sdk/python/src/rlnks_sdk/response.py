"""Classification of RLNKS API responses."""

import json
import logging
import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional, Union

import httpx
from dateutil import parser as dateutil_parser

from .errors import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from .types import RateLimitSnapshot

logger = logging.getLogger(__name__)

HeaderMap = Union[httpx.Headers, Mapping[str, str]]

DEFAULT_ERROR_MESSAGE = "An unknown error occurred"

# Anything missing from this table raises a plain APIError (ErrorKind.UNKNOWN).
STATUS_ERRORS: dict[int, type[APIError]] = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}

_INTEGER = re.compile(r"^-?\d+$")
_SECONDS = re.compile(r"^-?\d+(\.\d+)?$")

# Two defaults differing in year, month and day. A value that only parses
# by borrowing any of them from the default is not a full date.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _headers(headers: HeaderMap) -> httpx.Headers:
    if isinstance(headers, httpx.Headers):
        return headers
    return httpx.Headers(headers)


def _header_int(headers: httpx.Headers, name: str) -> Optional[int]:
    value = headers.get(name, "").strip()
    if not _INTEGER.match(value):
        return None
    return int(value)


def _parse_http_date(value: str) -> Optional[datetime]:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        pass

    try:
        first, second = (dateutil_parser.parse(value, default=d) for d in _DATE_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    return first if first == second else None


def decode_body(body: Union[bytes, str, None]) -> dict[str, Any]:
    """Decode a response body as a JSON object, or {} if it is not one."""
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def extract_rate_limit(headers: HeaderMap) -> RateLimitSnapshot:
    """
    Read the X-RateLimit-* headers of a response.

    Each header is independent: a missing or non-numeric value yields None
    for that field only.
    """
    h = _headers(headers)
    return RateLimitSnapshot(
        limit=_header_int(h, "X-RateLimit-Limit"),
        remaining=_header_int(h, "X-RateLimit-Remaining"),
        reset_at=_header_int(h, "X-RateLimit-Reset"),
    )


def parse_retry_after(headers: HeaderMap, *, now: Optional[float] = None) -> Optional[int]:
    """
    Parse the Retry-After header into seconds to wait.

    The header holds either a number of seconds or an HTTP-date. Dates are
    converted to a delay relative to `now` (default: current time). An
    absent, empty or unparseable header yields None; the result is never
    negative.

    Args:
        headers: Response headers
        now: Override current time (epoch seconds) for testing
    """
    value = _headers(headers).get("Retry-After", "").strip()
    if not value:
        return None

    if _SECONDS.match(value):
        return max(0, int(float(value)))

    retry_at = _parse_http_date(value)
    if retry_at is None:
        logger.debug("Ignoring unparseable Retry-After header: %r", value)
        return None

    if retry_at.tzinfo is None:
        # RFC 7231 dates are always GMT
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    current = now if now is not None else time.time()
    return max(0, int(retry_at.timestamp() - current))


def classify_response(
    status_code: int, body: Union[bytes, str, None], headers: HeaderMap
) -> dict[str, Any]:
    """
    Turn a raw HTTP response into its decoded payload or raise an APIError.

    Args:
        status_code: HTTP status code
        body: Raw response body, possibly empty or malformed
        headers: Response headers

    Returns:
        The decoded JSON object for 2xx responses ({} if the body is not a
        JSON object), or {"success": True} for 204 No Content

    Raises:
        APIError: The subclass matching the status code for anything else
    """
    if status_code == 204:
        return {"success": True}

    data = decode_body(body)

    if 200 <= status_code < 300:
        return data

    error_body = data.get("error")
    if not isinstance(error_body, dict):
        error_body = {}

    message = error_body.get("message") or DEFAULT_ERROR_MESSAGE
    code = error_body.get("code")
    details = error_body.get("details")
    error_class = STATUS_ERRORS.get(status_code, APIError)

    if error_class is RateLimitError:
        raise RateLimitError(
            message,
            status_code,
            code,
            details,
            rate_limit=extract_rate_limit(headers),
            retry_after=parse_retry_after(headers),
        )
    raise error_class(message, status_code, code, details)


def unwrap_data(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Return the "data" object of a successful response.

    Raises:
        APIError: The payload has no "data" object (code MALFORMED_RESPONSE)
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        raise APIError("Malformed response: missing 'data' object", code="MALFORMED_RESPONSE")
    return data


def unwrap_list(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the "data" list of a successful response, or [] if absent."""
    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise APIError("Malformed response: 'data' is not a list", code="MALFORMED_RESPONSE")
    return [item for item in data if isinstance(item, dict)]


def transport_error(err: Exception) -> TransportError:
    """Wrap a failure raised by the transport before any response existed."""
    return TransportError(f"HTTP request failed: {err}", code="HTTP_ERROR")

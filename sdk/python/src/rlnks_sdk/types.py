"""Type definitions for RLNKS SDK."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Generic, Iterator, Mapping, Optional, TypeVar

T = TypeVar("T")


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _extra(data: dict[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass(frozen=True)
class RateLimitSnapshot:
    """
    Rate-limit headers of the most recently completed request.

    Any field is None when the server omitted the header or sent a
    non-numeric value.
    """

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[int] = None

    def to_dict(self) -> dict[str, Optional[int]]:
        return {"limit": self.limit, "remaining": self.remaining, "reset": self.reset_at}


@dataclass(frozen=True)
class WebhookSignature:
    """A signature and the timestamp it was computed for."""

    signature: str
    timestamp: int


class WebhookEventType(str, Enum):
    """Event types delivered by RLNKS webhooks."""

    TREE_CREATED = "tree.created"
    TREE_UPDATED = "tree.updated"
    TREE_DELETED = "tree.deleted"
    TREE_ACTIVATED = "tree.activated"
    TREE_DEACTIVATED = "tree.deactivated"
    REQUEST_RECEIVED = "request.received"
    USAGE_LIMIT_WARNING = "usage.limit_warning"
    USAGE_LIMIT_REACHED = "usage.limit_reached"


@dataclass(frozen=True)
class WebhookEvent:
    """A verified webhook event."""

    event_type: str
    data: Mapping[str, Any]
    occurred_at: datetime

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "WebhookEvent":
        """
        Create from a verified, decoded webhook payload.

        Raises:
            ValueError: If the payload timestamp is not an ISO 8601 string
        """
        occurred_at = _parse_datetime(payload.get("timestamp")) or datetime.now(timezone.utc)
        data = payload.get("data") or {}
        return cls(
            event_type=payload.get("event", "unknown"),
            data=MappingProxyType(dict(data)),
            occurred_at=occurred_at,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a single data field."""
        return self.data.get(key, default)

    def is_type(self, event_type: str) -> bool:
        """Check if the event matches a given type."""
        return self.event_type == event_type

    def is_tree_event(self) -> bool:
        return self.event_type.startswith("tree.")

    def is_usage_event(self) -> bool:
        return self.event_type.startswith("usage.")

    def is_request_event(self) -> bool:
        return self.event_type == WebhookEventType.REQUEST_RECEIVED.value

    @property
    def tree_id(self) -> Optional[str]:
        return self.data.get("tree_id")

    @property
    def tree_name(self) -> Optional[str]:
        return self.data.get("tree_name")

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event_type,
            "data": dict(self.data),
            "timestamp": self.occurred_at.isoformat(),
        }


_TREE_FIELDS = (
    "id",
    "name",
    "type",
    "short_code",
    "is_active",
    "is_archived",
    "description",
    "url_slug",
    "url_extension",
    "tree_data",
    "default_output",
    "settings",
    "endpoints",
    "total_requests",
    "last_request_at",
    "created_at",
    "updated_at",
)


@dataclass
class Tree:
    """A decision tree serving images or redirects."""

    id: str
    name: str
    type: str
    short_code: Optional[str] = None
    is_active: bool = True
    is_archived: bool = False
    description: Optional[str] = None
    url_slug: Optional[str] = None
    url_extension: Optional[str] = None
    tree_data: Optional[dict[str, Any]] = None
    default_output: Optional[dict[str, Any]] = None
    settings: Optional[dict[str, Any]] = None
    endpoints: dict[str, str] = field(default_factory=dict)
    total_requests: int = 0
    last_request_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tree":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            short_code=data.get("short_code"),
            is_active=data.get("is_active", True),
            is_archived=data.get("is_archived", False),
            description=data.get("description"),
            url_slug=data.get("url_slug"),
            url_extension=data.get("url_extension"),
            tree_data=data.get("tree_data"),
            default_output=data.get("default_output"),
            settings=data.get("settings"),
            endpoints=data.get("endpoints") or {},
            total_requests=data.get("total_requests", 0),
            last_request_at=_parse_datetime(data.get("last_request_at")),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            extra=_extra(data, _TREE_FIELDS),
        )

    def is_image_tree(self) -> bool:
        return self.type == "image"

    def is_redirect_tree(self) -> bool:
        return self.type == "redirect"

    @property
    def image_url(self) -> Optional[str]:
        return self.endpoints.get("image")

    @property
    def redirect_url(self) -> Optional[str]:
        return self.endpoints.get("redirect")

    @property
    def short_url(self) -> Optional[str]:
        return self.endpoints.get("short")


_WEBHOOK_FIELDS = (
    "id",
    "name",
    "url",
    "events",
    "headers",
    "is_active",
    "timeout_seconds",
    "retry_count",
    "stats",
    "last_triggered_at",
    "last_success_at",
    "last_failure_at",
    "created_at",
)


@dataclass
class Webhook:
    """
    A webhook subscription.

    The signing secret is never part of this model; it is only returned by
    RlnksClient.regenerate_webhook_secret().
    """

    id: str
    name: str
    url: str
    events: list[str] = field(default_factory=list)
    headers: Optional[dict[str, str]] = None
    is_active: bool = True
    timeout_seconds: int = 30
    retry_count: int = 3
    stats: dict[str, Any] = field(default_factory=dict)
    last_triggered_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Webhook":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            events=list(data.get("events") or []),
            headers=data.get("headers"),
            is_active=data.get("is_active", True),
            timeout_seconds=data.get("timeout_seconds", 30),
            retry_count=data.get("retry_count", 3),
            stats=data.get("stats") or {},
            last_triggered_at=_parse_datetime(data.get("last_triggered_at")),
            last_success_at=_parse_datetime(data.get("last_success_at")),
            last_failure_at=_parse_datetime(data.get("last_failure_at")),
            created_at=_parse_datetime(data.get("created_at")),
            extra=_extra(data, _WEBHOOK_FIELDS),
        )

    def is_subscribed_to(self, event: str) -> bool:
        return event in self.events

    @property
    def success_rate(self) -> float:
        """Delivery success rate as a percentage."""
        if "success_rate" in self.stats:
            return float(self.stats["success_rate"])
        total = self.stats.get("total_deliveries", 0)
        if not total:
            return 100.0
        return round(self.stats.get("successful_deliveries", 0) / total * 100, 2)


@dataclass
class Page(Generic[T]):
    """One page of a paginated list."""

    items: list[T]
    current_page: int = 1
    total_pages: int = 1
    total_count: int = 0
    per_page: int = 20

    @classmethod
    def from_dict(cls, data: dict[str, Any], item: Callable[[dict[str, Any]], T]) -> "Page[T]":
        """Create from API response dict, building each item with `item`."""
        meta = data.get("meta") or {}
        items = [item(d) for d in data.get("data") or []]
        return cls(
            items=items,
            current_page=meta.get("current_page", 1),
            total_pages=meta.get("total_pages", 1),
            total_count=meta.get("total_count", len(items)),
            per_page=meta.get("per_page", 20),
        )

    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    def has_previous_page(self) -> bool:
        return self.current_page > 1

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


class AnalyticsPeriod(str, Enum):
    """Reporting periods accepted by the analytics endpoints."""

    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    CUSTOM = "custom"


class BreakdownDimension(str, Enum):
    """Dimensions a tree's analytics can be broken down by."""

    DEVICE = "device"
    BROWSER = "browser"
    COUNTRY = "country"
    OUTPUT = "output"
    OS = "os"
    BRAND = "brand"
    MODEL = "model"


_IMAGE_FIELDS = (
    "id",
    "uuid",
    "filename",
    "url",
    "thumbnail_url",
    "width",
    "height",
    "dimensions",
    "size",
    "human_size",
    "mime_type",
    "folder",
    "created_at",
)


@dataclass
class Image:
    """An image stored in the account's media library."""

    id: str
    filename: str
    url: str
    uuid: Optional[str] = None
    thumbnail_url: Optional[str] = None
    width: int = 0
    height: int = 0
    dimensions: Optional[str] = None
    size: int = 0
    human_size: Optional[str] = None
    mime_type: Optional[str] = None
    folder: Optional[str] = None
    created_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Image":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            filename=data.get("filename", ""),
            url=data.get("url", ""),
            uuid=data.get("uuid"),
            thumbnail_url=data.get("thumbnail_url"),
            width=int(data.get("width") or 0),
            height=int(data.get("height") or 0),
            dimensions=data.get("dimensions"),
            size=int(data.get("size") or 0),
            human_size=data.get("human_size"),
            mime_type=data.get("mime_type"),
            folder=data.get("folder"),
            created_at=_parse_datetime(data.get("created_at")),
            extra=_extra(data, _IMAGE_FIELDS),
        )

    def in_folder(self, folder: Optional[str] = None) -> bool:
        """Check if the image is in `folder`, or in any folder when None."""
        if folder is None:
            return bool(self.folder)
        return self.folder == folder

    def is_jpeg(self) -> bool:
        return self.mime_type in ("image/jpeg", "image/jpg")

    def is_png(self) -> bool:
        return self.mime_type == "image/png"

    def is_webp(self) -> bool:
        return self.mime_type == "image/webp"

    def is_gif(self) -> bool:
        return self.mime_type == "image/gif"


_FALSE_STRINGS = frozenset({"false", "0", "no", "n", "non", "off", ""})

_TREE_VARIABLE_FIELDS = (
    "key",
    "value",
    "typed_value",
    "type",
    "description",
    "webhook_url",
    "created_at",
    "updated_at",
)


@dataclass
class TreeVariable:
    """
    A named value a tree can branch on.

    Values travel as strings; `type` says how the server interprets them
    ("string", "number" or "boolean") and `typed_value` carries the cast
    value when the server sends one.
    """

    key: str
    value: Optional[str] = None
    typed_value: Any = None
    type: str = "string"
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeVariable":
        """Create from API response dict."""
        return cls(
            key=data["key"],
            value=data.get("value"),
            typed_value=data.get("typed_value"),
            type=data.get("type") or "string",
            description=data.get("description"),
            webhook_url=data.get("webhook_url"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            extra=_extra(data, _TREE_VARIABLE_FIELDS),
        )

    def is_string(self) -> bool:
        return self.type == "string"

    def is_number(self) -> bool:
        return self.type == "number"

    def is_boolean(self) -> bool:
        return self.type == "boolean"

    def get_value(self) -> Any:
        """The typed value if the server sent one, else the raw string."""
        return self.typed_value if self.typed_value is not None else self.value

    def as_boolean(self) -> bool:
        value = self.value
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return bool(value)

    def as_number(self) -> float:
        return float(self.value or 0)

    def as_integer(self) -> int:
        return int(self.as_number())


_CUSTOM_DOMAIN_FIELDS = (
    "id",
    "domain",
    "status",
    "is_default",
    "verified_at",
    "ssl_provisioned_at",
    "ssl_expires_at",
    "created_at",
    "dns",
    "ssl_provider",
    "ssl_error_message",
)

_DOMAIN_STATUS_DESCRIPTIONS = {
    "pending_verification": "Awaiting DNS verification",
    "pending_ssl": "SSL certificate being provisioned",
    "provisioning_ssl": "SSL certificate being provisioned",
    "active": "Active and ready to use",
    "verified": "Verified, awaiting SSL",
}


@dataclass
class CustomDomain:
    """A custom domain serving the account's trees."""

    id: int
    domain: str
    status: str
    is_default: bool = False
    verified_at: Optional[datetime] = None
    ssl_provisioned_at: Optional[datetime] = None
    ssl_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    dns: dict[str, Any] = field(default_factory=dict)
    ssl_provider: Optional[str] = None
    ssl_error_message: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomDomain":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            domain=data["domain"],
            status=data.get("status", ""),
            is_default=bool(data.get("is_default", False)),
            verified_at=_parse_datetime(data.get("verified_at")),
            ssl_provisioned_at=_parse_datetime(data.get("ssl_provisioned_at")),
            ssl_expires_at=_parse_datetime(data.get("ssl_expires_at")),
            created_at=_parse_datetime(data.get("created_at")),
            dns=data.get("dns") or {},
            ssl_provider=data.get("ssl_provider"),
            ssl_error_message=data.get("ssl_error_message"),
            extra=_extra(data, _CUSTOM_DOMAIN_FIELDS),
        )

    def is_active(self) -> bool:
        return self.status == "active"

    def is_pending_verification(self) -> bool:
        return self.status == "pending_verification"

    def is_pending_ssl(self) -> bool:
        return self.status == "pending_ssl"

    def has_ssl_error(self) -> bool:
        return self.status == "ssl_error"

    def needs_action(self) -> bool:
        """Check if the domain still waits on DNS setup or SSL provisioning."""
        return self.status in ("pending_verification", "pending_ssl", "ssl_error")

    @property
    def url(self) -> str:
        return f"https://{self.domain}"

    @property
    def cname_target(self) -> Optional[str]:
        return self.dns.get("cname_target")

    @property
    def txt_record_name(self) -> Optional[str]:
        return self.dns.get("txt_record_name")

    @property
    def txt_record_value(self) -> Optional[str]:
        return self.dns.get("txt_record_value")

    @property
    def status_description(self) -> str:
        """Human-readable status."""
        if self.status == "ssl_error":
            return f"SSL provisioning failed: {self.ssl_error_message or 'Unknown error'}"
        if self.status in _DOMAIN_STATUS_DESCRIPTIONS:
            return _DOMAIN_STATUS_DESCRIPTIONS[self.status]
        return self.status.replace("_", " ").capitalize()


_EPHEMERAL_LINK_FIELDS = (
    "uuid",
    "tree_id",
    "type",
    "url",
    "expires_at",
    "max_uses",
    "use_count",
    "remaining_uses",
    "remaining_time",
    "is_valid",
    "is_expired",
    "created_by",
    "created_at",
)


@dataclass
class EphemeralLink:
    """A short-lived test URL for a tree."""

    uuid: str
    tree_id: str
    type: str
    url: str
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    use_count: int = 0
    remaining_uses: Optional[int] = None
    remaining_time: Optional[str] = None
    is_valid: bool = False
    is_expired: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EphemeralLink":
        """Create from API response dict."""
        return cls(
            uuid=data["uuid"],
            tree_id=data.get("tree_id", ""),
            type=data.get("type", ""),
            url=data.get("url", ""),
            expires_at=_parse_datetime(data.get("expires_at")),
            max_uses=data.get("max_uses"),
            use_count=data.get("use_count", 0),
            remaining_uses=data.get("remaining_uses"),
            remaining_time=data.get("remaining_time"),
            is_valid=bool(data.get("is_valid", False)),
            is_expired=bool(data.get("is_expired", False)),
            created_by=data.get("created_by"),
            created_at=_parse_datetime(data.get("created_at")),
            extra=_extra(data, _EPHEMERAL_LINK_FIELDS),
        )

    def is_image_link(self) -> bool:
        return self.type == "image"

    def is_redirect_link(self) -> bool:
        return self.type == "redirect"

    def has_use_limit(self) -> bool:
        return self.max_uses is not None

    def url_with_slug(self, slug: str) -> str:
        """The link URL with an extra path segment appended."""
        return f"{self.url.rstrip('/')}/{slug}"

    @property
    def remaining_time_text(self) -> str:
        return self.remaining_time or "Expired"

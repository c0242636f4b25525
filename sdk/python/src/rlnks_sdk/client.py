"""RLNKS API client."""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx

from . import __version__
from .response import (
    classify_response,
    extract_rate_limit,
    transport_error,
    unwrap_data,
    unwrap_list,
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
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://app.rlnks.com"


def _variable_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class RlnksClient:
    """Client for the RLNKS decision tree API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Initialize the RLNKS client.

        Args:
            api_key: Your RLNKS API key (starts with "rlnks_")
            base_url: Base URL of the RLNKS API (default: https://app.rlnks.com)
            timeout: Request timeout in seconds (default: 30)
            connect_timeout: Connection timeout in seconds (default: 10)
            headers: Additional headers to include in all requests
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._rate_limit = RateLimitSnapshot()
        self._rate_limit_lock = threading.Lock()
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            headers={
                "Accept": "application/json",
                "X-API-Key": api_key,
                "User-Agent": f"rlnks-python-sdk/{__version__}",
                **(headers or {}),
            },
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "RlnksClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def rate_limit(self) -> RateLimitSnapshot:
        """
        Rate-limit headers of the most recently completed request.

        This is a single last-writer-wins value shared by every call made
        through this client. With concurrent requests it reflects whichever
        response was processed last, not necessarily the one sent last. Read
        it right after a call returns to get that call's values.
        """
        with self._rate_limit_lock:
            return self._rate_limit

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request. `files` and `data` send a multipart form."""
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        if data:
            data = {k: v for k, v in data.items() if v is not None}

        try:
            response = self._client.request(
                method, path, json=json, params=params, files=files, data=data
            )
        except httpx.RequestError as err:
            logger.debug("%s %s failed: %s", method, path, err)
            raise transport_error(err) from err

        snapshot = extract_rate_limit(response.headers)
        with self._rate_limit_lock:
            self._rate_limit = snapshot

        logger.debug(
            "%s %s -> %s (rate limit %s/%s)",
            method,
            path,
            response.status_code,
            snapshot.remaining,
            snapshot.limit,
        )
        return classify_response(response.status_code, response.content, response.headers)

    # ==========================================
    # Tree operations
    # ==========================================

    def list_trees(
        self,
        *,
        type: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Page[Tree]:
        """
        List decision trees.

        Args:
            type: Filter by tree type ("image" or "redirect")
            status: Filter by status ("active", "inactive", "archived")
            search: Search by name
            sort_by: Field to sort by (default: "created_at")
            sort_dir: "asc" or "desc" (default: "desc")
            per_page: Items per page (default: 20)
            page: Page number

        Returns:
            One page of trees
        """
        data = self._request(
            "GET",
            "/api/v1/trees",
            params={
                "type": type,
                "status": status,
                "search": search,
                "sort_by": sort_by,
                "sort_dir": sort_dir,
                "per_page": per_page,
                "page": page,
            },
        )
        return Page.from_dict(data, Tree.from_dict)

    def get_tree(self, tree_id: str) -> Tree:
        """Get a tree by ID."""
        data = self._request("GET", f"/api/v1/trees/{quote(tree_id)}")
        return Tree.from_dict(unwrap_data(data))

    def create_tree(
        self,
        name: str,
        type: str,
        *,
        description: Optional[str] = None,
        tree_data: Optional[dict[str, Any]] = None,
        default_output: Optional[dict[str, Any]] = None,
        is_active: Optional[bool] = None,
    ) -> Tree:
        """
        Create a decision tree.

        Args:
            name: Tree name
            type: "image" or "redirect"
            description: Tree description
            tree_data: Decision tree structure
            default_output: Fallback output configuration
            is_active: Whether the tree is active (server default: True)

        Returns:
            The created tree
        """
        body: dict[str, Any] = {"name": name, "type": type}
        if description is not None:
            body["description"] = description
        if tree_data is not None:
            body["tree_data"] = tree_data
        if default_output is not None:
            body["default_output"] = default_output
        if is_active is not None:
            body["is_active"] = is_active

        data = self._request("POST", "/api/v1/trees", json=body)
        return Tree.from_dict(unwrap_data(data))

    def update_tree(self, tree_id: str, **fields: Any) -> Tree:
        """
        Update fields of a tree.

        Args:
            tree_id: The tree ID
            **fields: Fields to update, as named by the API

        Returns:
            The updated tree
        """
        data = self._request("PUT", f"/api/v1/trees/{quote(tree_id)}", json=fields)
        return Tree.from_dict(unwrap_data(data))

    def delete_tree(self, tree_id: str) -> bool:
        """Delete a tree."""
        self._request("DELETE", f"/api/v1/trees/{quote(tree_id)}")
        return True

    def clone_tree(self, tree_id: str, name: Optional[str] = None) -> Tree:
        """
        Clone a tree.

        Args:
            tree_id: The source tree ID
            name: Name for the clone

        Returns:
            The new tree
        """
        body = {"name": name} if name is not None else {}
        data = self._request("POST", f"/api/v1/trees/{quote(tree_id)}/clone", json=body)
        return Tree.from_dict(unwrap_data(data))

    def test_tree(self, tree_id: str, context: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Evaluate a tree against a simulated request context.

        Args:
            tree_id: The tree ID
            context: Device, location and custom parameters to test with

        Returns:
            The matched node and output
        """
        data = self._request(
            "POST", f"/api/v1/trees/{quote(tree_id)}/test", json={"context": context or {}}
        )
        return data.get("result", data)

    def preview_tree(self, tree_id: str) -> dict[str, Any]:
        """Preview a tree's evaluation for the current request context."""
        return self._request("GET", f"/api/v1/trees/{quote(tree_id)}/preview")

    def activate_tree(self, tree_id: str) -> Tree:
        return self.update_tree(tree_id, is_active=True)

    def deactivate_tree(self, tree_id: str) -> Tree:
        return self.update_tree(tree_id, is_active=False)

    def archive_tree(self, tree_id: str) -> Tree:
        return self.update_tree(tree_id, is_archived=True)

    def unarchive_tree(self, tree_id: str) -> Tree:
        return self.update_tree(tree_id, is_archived=False)

    # ==========================================
    # Webhook operations
    # ==========================================

    def list_webhooks(
        self, *, per_page: Optional[int] = None, page: Optional[int] = None
    ) -> Page[Webhook]:
        """
        List webhooks.

        Args:
            per_page: Items per page
            page: Page number

        Returns:
            One page of webhooks
        """
        data = self._request(
            "GET", "/api/v1/webhooks", params={"per_page": per_page, "page": page}
        )
        return Page.from_dict(data, Webhook.from_dict)

    def get_webhook(self, webhook_id: str) -> Webhook:
        """Get a webhook by ID."""
        data = self._request("GET", f"/api/v1/webhooks/{quote(webhook_id)}")
        return Webhook.from_dict(unwrap_data(data))

    def create_webhook(
        self,
        name: str,
        url: str,
        events: list[str],
        *,
        headers: Optional[dict[str, str]] = None,
        is_active: Optional[bool] = None,
        timeout_seconds: Optional[int] = None,
        retry_count: Optional[int] = None,
    ) -> Webhook:
        """
        Create a webhook.

        Args:
            name: Webhook name
            url: Target URL
            events: Event types to subscribe to
            headers: Custom headers to send with each delivery
            is_active: Whether the webhook is active (server default: True)
            timeout_seconds: Delivery timeout, 5-60 (server default: 30)
            retry_count: Delivery retries, 0-5 (server default: 3)

        Returns:
            The created webhook
        """
        body: dict[str, Any] = {"name": name, "url": url, "events": events}
        if headers:
            body["headers"] = headers
        if is_active is not None:
            body["is_active"] = is_active
        if timeout_seconds is not None:
            body["timeout_seconds"] = timeout_seconds
        if retry_count is not None:
            body["retry_count"] = retry_count

        data = self._request("POST", "/api/v1/webhooks", json=body)
        return Webhook.from_dict(unwrap_data(data))

    def update_webhook(self, webhook_id: str, **fields: Any) -> Webhook:
        """
        Update fields of a webhook.

        Args:
            webhook_id: The webhook ID
            **fields: Fields to update, as named by the API

        Returns:
            The updated webhook
        """
        data = self._request("PUT", f"/api/v1/webhooks/{quote(webhook_id)}", json=fields)
        return Webhook.from_dict(unwrap_data(data))

    def delete_webhook(self, webhook_id: str) -> bool:
        """Delete a webhook."""
        self._request("DELETE", f"/api/v1/webhooks/{quote(webhook_id)}")
        return True

    def regenerate_webhook_secret(self, webhook_id: str) -> dict[str, Any]:
        """
        Regenerate a webhook's signing secret.

        The new secret is only returned by this call.
        """
        return self._request("POST", f"/api/v1/webhooks/{quote(webhook_id)}/regenerate-secret")

    def test_webhook(self, webhook_id: str) -> dict[str, Any]:
        """Send a test delivery to a webhook."""
        return self._request("POST", f"/api/v1/webhooks/{quote(webhook_id)}/test")

    def get_webhook_deliveries(self, webhook_id: str) -> dict[str, Any]:
        """Get the most recent deliveries of a webhook (up to 50)."""
        return self._request("GET", f"/api/v1/webhooks/{quote(webhook_id)}/deliveries")

    def enable_webhook(self, webhook_id: str) -> Webhook:
        return self.update_webhook(webhook_id, is_active=True)

    def disable_webhook(self, webhook_id: str) -> Webhook:
        return self.update_webhook(webhook_id, is_active=False)

    def add_webhook_events(self, webhook_id: str, events: list[str]) -> Webhook:
        """Subscribe a webhook to additional event types."""
        current = self.get_webhook(webhook_id).events
        merged = list(dict.fromkeys(current + events))
        return self.update_webhook(webhook_id, events=merged)

    def remove_webhook_events(self, webhook_id: str, events: list[str]) -> Webhook:
        """Unsubscribe a webhook from event types."""
        current = self.get_webhook(webhook_id).events
        remaining = [e for e in current if e not in events]
        return self.update_webhook(webhook_id, events=remaining)

    # ==========================================
    # Account
    # ==========================================

    def get_account(self) -> dict[str, Any]:
        """
        Get account information: profile, plan and usage.

        The API key itself is not included.
        """
        data = self._request("GET", "/api/v1/account")
        return unwrap_data(data)

    def get_usage(self) -> dict[str, Any]:
        """Get detailed usage statistics (current month, daily, history)."""
        return self._request("GET", "/api/v1/account/usage")

    def get_limits(self) -> dict[str, Any]:
        """Get plan limits with current usage for requests, trees, images and storage."""
        data = self._request("GET", "/api/v1/account/limits")
        return unwrap_data(data)

    # ==========================================
    # Images
    # ==========================================

    def list_images(
        self,
        *,
        folder: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Page[Image]:
        """
        List images in the media library.

        Args:
            folder: Only images in this folder
            search: Search by filename
            sort_by: Field to sort by
            sort_dir: "asc" or "desc"
            per_page: Items per page
            page: Page number

        Returns:
            One page of images
        """
        data = self._request(
            "GET",
            "/api/v1/images",
            params={
                "folder": folder,
                "search": search,
                "sort_by": sort_by,
                "sort_dir": sort_dir,
                "per_page": per_page,
                "page": page,
            },
        )
        return Page.from_dict(data, Image.from_dict)

    def get_image(self, image_id: str) -> Image:
        """Get an image by ID."""
        data = self._request("GET", f"/api/v1/images/{quote(image_id)}")
        return Image.from_dict(unwrap_data(data))

    def upload_image(
        self,
        file: Union[str, Path, bytes],
        *,
        filename: Optional[str] = None,
        name: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> Image:
        """
        Upload an image.

        Args:
            file: Path of the file to upload, or its raw content
            filename: File name to send; required when `file` is bytes
            name: Display name (default: the file name)
            folder: Folder to place the image in

        Returns:
            The uploaded image
        """
        if isinstance(file, bytes):
            if not filename:
                raise ValueError("filename is required when uploading raw bytes")
            content = file
        else:
            path = Path(file)
            content = path.read_bytes()
            filename = filename or path.name

        data = self._request(
            "POST",
            "/api/v1/images",
            files={"file": (filename, content)},
            data={"name": name, "folder": folder},
        )
        return Image.from_dict(unwrap_data(data))

    def update_image(self, image_id: str, **fields: Any) -> Image:
        """Update fields of an image (name, folder)."""
        data = self._request("PUT", f"/api/v1/images/{quote(image_id)}", json=fields)
        return Image.from_dict(unwrap_data(data))

    def delete_image(self, image_id: str) -> bool:
        """Delete an image."""
        self._request("DELETE", f"/api/v1/images/{quote(image_id)}")
        return True

    def list_image_folders(self) -> list[str]:
        """List the folder names in use."""
        data = self._request("GET", "/api/v1/images-folders")
        return list(data.get("data") or [])

    def move_image(self, image_id: str, folder: Optional[str]) -> Image:
        """Move an image to a folder, or out of any folder with None."""
        return self.update_image(image_id, folder=folder)

    def rename_image(self, image_id: str, name: str) -> Image:
        return self.update_image(image_id, name=name)

    # ==========================================
    # Analytics
    # ==========================================

    def get_tree_analytics(
        self,
        tree_id: str,
        *,
        period: Optional[Union[AnalyticsPeriod, str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Get request analytics of a tree.

        Args:
            tree_id: The tree ID
            period: "today", "7d", "30d", "90d" or "custom"
            start_date: First day (YYYY-MM-DD) of a custom period
            end_date: Last day (YYYY-MM-DD) of a custom period

        Returns:
            Totals, time series and top outputs for the period
        """
        return self._request(
            "GET",
            f"/api/v1/analytics/trees/{quote(tree_id)}",
            params={
                "period": _enum_value(period),
                "start_date": start_date,
                "end_date": end_date,
            },
        )

    def get_tree_breakdown(
        self,
        tree_id: str,
        by: Union[BreakdownDimension, str],
        *,
        period: Optional[Union[AnalyticsPeriod, str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict[str, Any]:
        """Break a tree's requests down by device, browser, country, output, os, brand or model."""
        return self._request(
            "GET",
            f"/api/v1/analytics/trees/{quote(tree_id)}/breakdown",
            params={
                "by": _enum_value(by),
                "period": _enum_value(period),
                "start_date": start_date,
                "end_date": end_date,
            },
        )

    def get_tree_analytics_range(
        self, tree_id: str, start_date: str, end_date: str
    ) -> dict[str, Any]:
        return self.get_tree_analytics(
            tree_id, period=AnalyticsPeriod.CUSTOM, start_date=start_date, end_date=end_date
        )

    # ==========================================
    # Device reports
    # ==========================================

    def list_device_reports(
        self, *, per_page: Optional[int] = None, page: Optional[int] = None
    ) -> dict[str, Any]:
        """List submitted device detection reports, with pagination metadata."""
        return self._request(
            "GET", "/api/v1/device-reports", params={"per_page": per_page, "page": page}
        )

    def get_device_report(self, report_id: str) -> dict[str, Any]:
        data = self._request("GET", f"/api/v1/device-reports/{quote(report_id)}")
        return unwrap_data(data)

    def submit_device_report(
        self,
        user_agent: str,
        issue_type: str,
        *,
        expected_brand: Optional[str] = None,
        expected_model: Optional[str] = None,
        expected_dimensions: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Report a device the service detected incorrectly.

        Args:
            user_agent: User-Agent string of the device
            issue_type: Kind of problem, e.g. "wrong_model" or "wrong_brand"
            expected_brand: The actual brand
            expected_model: The actual model
            expected_dimensions: The actual screen size, e.g. "1179x2556"
            notes: Free-form notes

        Returns:
            The created report
        """
        body: dict[str, Any] = {"user_agent": user_agent, "issue_type": issue_type}
        if expected_brand is not None:
            body["expected_brand"] = expected_brand
        if expected_model is not None:
            body["expected_model"] = expected_model
        if expected_dimensions is not None:
            body["expected_dimensions"] = expected_dimensions
        if notes is not None:
            body["notes"] = notes

        data = self._request("POST", "/api/v1/device-reports", json=body)
        return unwrap_data(data)

    def report_wrong_detection(
        self,
        user_agent: str,
        expected_brand: str,
        expected_model: str,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        return self.submit_device_report(
            user_agent,
            "wrong_model",
            expected_brand=expected_brand,
            expected_model=expected_model,
            notes=notes,
        )

    # ==========================================
    # Tree variables
    # ==========================================

    def _variables_path(self, tree_id: str, key: Optional[str] = None) -> str:
        path = f"/api/v1/trees/{quote(tree_id)}/variables"
        return f"{path}/{quote(key)}" if key is not None else path

    def list_variables(self, tree_id: str) -> list[TreeVariable]:
        """List the variables of a tree."""
        data = self._request("GET", self._variables_path(tree_id))
        return [TreeVariable.from_dict(d) for d in unwrap_list(data)]

    def get_variable(self, tree_id: str, key: str) -> TreeVariable:
        data = self._request("GET", self._variables_path(tree_id, key))
        return TreeVariable.from_dict(unwrap_data(data))

    def create_variable(
        self,
        tree_id: str,
        key: str,
        value: Any,
        *,
        type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TreeVariable:
        """
        Create a tree variable.

        Args:
            tree_id: The tree ID
            key: Variable key
            value: Initial value; booleans are sent as "true" or "false"
            type: "string", "number" or "boolean" (server default: "string")
            description: Variable description

        Returns:
            The created variable
        """
        body: dict[str, Any] = {"key": key, "value": _variable_value(value)}
        if type is not None:
            body["type"] = type
        if description is not None:
            body["description"] = description

        data = self._request("POST", self._variables_path(tree_id), json=body)
        return TreeVariable.from_dict(unwrap_data(data))

    def update_variable(self, tree_id: str, key: str, **fields: Any) -> TreeVariable:
        """Update fields of a tree variable (value, type, description)."""
        data = self._request("PUT", self._variables_path(tree_id, key), json=fields)
        return TreeVariable.from_dict(unwrap_data(data))

    def delete_variable(self, tree_id: str, key: str) -> bool:
        self._request("DELETE", self._variables_path(tree_id, key))
        return True

    def bulk_update_variables(self, tree_id: str, values: dict[str, Any]) -> list[Any]:
        """
        Set the values of several variables in one request.

        Args:
            tree_id: The tree ID
            values: New values by variable key

        Returns:
            The updated entries reported by the server
        """
        body = {"variables": [{"key": k, "value": _variable_value(v)} for k, v in values.items()]}
        data = self._request("PUT", self._variables_path(tree_id), json=body)
        return list(data.get("updated") or [])

    def regenerate_variable_webhook(self, tree_id: str, key: str) -> TreeVariable:
        """
        Issue a new webhook URL for a variable.

        The previous URL stops working.
        """
        data = self._request("POST", f"{self._variables_path(tree_id, key)}/regenerate-webhook")
        return TreeVariable.from_dict(unwrap_data(data))

    def set_variable_value(self, tree_id: str, key: str, value: Any) -> TreeVariable:
        return self.update_variable(tree_id, key, value=_variable_value(value))

    def get_variable_value(self, tree_id: str, key: str) -> Any:
        return self.get_variable(tree_id, key).get_value()

    # ==========================================
    # Custom domains
    # ==========================================

    def list_custom_domains(self) -> list[CustomDomain]:
        data = self._request("GET", "/api/v1/custom-domains")
        return [CustomDomain.from_dict(d) for d in unwrap_list(data)]

    def get_custom_domain(self, domain_id: int) -> CustomDomain:
        data = self._request("GET", f"/api/v1/custom-domains/{domain_id}")
        return CustomDomain.from_dict(unwrap_data(data))

    def create_custom_domain(self, domain: str) -> CustomDomain:
        """
        Register a custom domain.

        The domain starts pending verification; configure its DNS records
        (see get_dns_instructions) and then call verify_custom_domain.
        """
        data = self._request("POST", "/api/v1/custom-domains", json={"domain": domain})
        return CustomDomain.from_dict(unwrap_data(data))

    def delete_custom_domain(self, domain_id: int) -> bool:
        self._request("DELETE", f"/api/v1/custom-domains/{domain_id}")
        return True

    def _domain_action(self, domain_id: int, action: str) -> CustomDomain:
        data = self._request("POST", f"/api/v1/custom-domains/{domain_id}/{action}")
        return CustomDomain.from_dict(unwrap_data(data))

    def verify_custom_domain(self, domain_id: int) -> CustomDomain:
        """Check the domain's DNS records and start SSL provisioning."""
        return self._domain_action(domain_id, "verify")

    def retry_custom_domain_ssl(self, domain_id: int) -> CustomDomain:
        return self._domain_action(domain_id, "retry-ssl")

    def set_default_custom_domain(self, domain_id: int) -> CustomDomain:
        return self._domain_action(domain_id, "set-default")

    def unset_default_custom_domain(self, domain_id: int) -> CustomDomain:
        return self._domain_action(domain_id, "unset-default")

    def check_domain_availability(self, domain: str) -> bool:
        """Check that a domain is not registered by any account yet."""
        data = self._request(
            "POST", "/api/v1/custom-domains/check-availability", json={"domain": domain}
        )
        return bool(data.get("available", False))

    def get_dns_instructions(self, domain_id: int) -> dict[str, Any]:
        """Get the DNS records to configure for a domain."""
        data = self._request("GET", f"/api/v1/custom-domains/{domain_id}/dns-instructions")
        instructions = data.get("data")
        return instructions if isinstance(instructions, dict) else data

    def get_default_custom_domain(self) -> Optional[CustomDomain]:
        """The default domain, if one is set and active."""
        for domain in self.list_custom_domains():
            if domain.is_default and domain.is_active():
                return domain
        return None

    def get_active_custom_domains(self) -> list[CustomDomain]:
        return [d for d in self.list_custom_domains() if d.is_active()]

    def get_pending_custom_domains(self) -> list[CustomDomain]:
        return [d for d in self.list_custom_domains() if not d.is_active()]

    def create_custom_domain_with_instructions(self, domain: str) -> dict[str, Any]:
        """Register a domain and fetch its DNS instructions: {"domain": ..., "dns": ...}."""
        created = self.create_custom_domain(domain)
        return {"domain": created, "dns": self.get_dns_instructions(created.id)}

    # ==========================================
    # Ephemeral links
    # ==========================================

    def list_ephemeral_links(
        self, tree_id: str, *, include_expired: Optional[bool] = None
    ) -> list[EphemeralLink]:
        """List the test links of a tree. Expired links are left out unless asked for."""
        data = self._request(
            "GET",
            f"/api/v1/trees/{quote(tree_id)}/ephemeral-links",
            params={"include_expired": None if include_expired is None else int(include_expired)},
        )
        return [EphemeralLink.from_dict(d) for d in unwrap_list(data)]

    def create_ephemeral_link(
        self,
        tree_id: str,
        type: str,
        *,
        expires_in_minutes: Optional[int] = None,
        max_uses: Optional[int] = None,
    ) -> EphemeralLink:
        """
        Create a short-lived test link for a tree.

        Args:
            tree_id: The tree ID
            type: "image" or "redirect"
            expires_in_minutes: Lifetime, 5-60 (server default: 15)
            max_uses: Uses allowed before the link expires (default: unlimited)

        Returns:
            The created link
        """
        body: dict[str, Any] = {"type": type}
        if expires_in_minutes is not None:
            body["expires_in_minutes"] = expires_in_minutes
        if max_uses is not None:
            body["max_uses"] = max_uses

        data = self._request("POST", f"/api/v1/trees/{quote(tree_id)}/ephemeral-links", json=body)
        return EphemeralLink.from_dict(unwrap_data(data))

    def create_image_link(
        self, tree_id: str, expires_in_minutes: int = 15, max_uses: Optional[int] = None
    ) -> EphemeralLink:
        return self.create_ephemeral_link(
            tree_id, "image", expires_in_minutes=expires_in_minutes, max_uses=max_uses
        )

    def create_redirect_link(
        self, tree_id: str, expires_in_minutes: int = 15, max_uses: Optional[int] = None
    ) -> EphemeralLink:
        return self.create_ephemeral_link(
            tree_id, "redirect", expires_in_minutes=expires_in_minutes, max_uses=max_uses
        )

    def get_ephemeral_link(self, link_uuid: str) -> EphemeralLink:
        data = self._request("GET", f"/api/v1/ephemeral-links/{quote(link_uuid)}")
        return EphemeralLink.from_dict(unwrap_data(data))

    def delete_ephemeral_link(self, link_uuid: str) -> bool:
        self._request("DELETE", f"/api/v1/ephemeral-links/{quote(link_uuid)}")
        return True

    def delete_expired_ephemeral_links(self, tree_id: str) -> int:
        """Delete the expired test links of a tree and return how many were removed."""
        data = self._request("DELETE", f"/api/v1/trees/{quote(tree_id)}/ephemeral-links/expired")
        return int(data.get("deleted_count") or 0)

    def get_valid_ephemeral_links(self, tree_id: str) -> list[EphemeralLink]:
        links = self.list_ephemeral_links(tree_id, include_expired=True)
        return [link for link in links if link.is_valid]

    def create_ephemeral_url(self, tree_id: str, type: str, expires_in_minutes: int = 15) -> str:
        """Create a test link and return just its URL."""
        return self.create_ephemeral_link(
            tree_id, type, expires_in_minutes=expires_in_minutes
        ).url

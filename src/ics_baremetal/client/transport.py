"""HTTP client for the Ingenuity Cloud Services REST API.

Every endpoint answers with the same envelope::

    {"statusCode": 200, "message": "...", "data": ...}

``ICSClient`` issues the request, checks the HTTP status, unwraps ``data``
and validates it into the typed models from :mod:`ics_baremetal.models`.
Auth is a static API token sent in the ``X-Api-Token`` header.

Uses stdlib ``urllib.request``: no extra dependencies required.
"""

from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from pydantic import ValidationError

from ics_baremetal.models import (
    AddonCatalog,
    APIEnvelope,
    InventoryItem,
    Server,
    ServerOrderRequest,
    ServerOrderResult,
    SSHKey,
    SSHKeyCreateRequest,
    SSHKeyCreateResult,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.ingenuitycloudservices.com"

# Ordering can block on the backend for minutes.
DEFAULT_TIMEOUT_SECONDS = 300.0

_OK = frozenset({200})
_OK_OR_CREATED = frozenset({200, 201})


# ── Exception hierarchy ─────────────────────────────────────────


class ICSError(Exception):
    """Base exception for ICS API client errors."""


class ICSTransportError(ICSError):
    """The request never produced an HTTP response (DNS, refused, reset)."""


class ICSTimeoutError(ICSTransportError):
    """The request timed out. The backend may still have acted on it."""


class ICSAPIError(ICSError):
    """The API answered with a non-success HTTP status."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"ICS API error {status_code}: {message}")


class ICSResponseError(ICSError):
    """The API answered successfully but the payload could not be decoded."""


# ── Client ───────────────────────────────────────────────────────


class ICSClient:
    """Synchronous client for the ICS server-ordering and inventory API.

    Stateless apart from its configuration: every call fetches a fresh
    snapshot from the backend.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not api_token:
            raise ValueError("api_token is required")
        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    # ── Plumbing ─────────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        ok_statuses: frozenset[int] = _OK,
        expect_data: bool = True,
    ) -> Any:
        """Send one request and return the envelope's ``data`` field.

        With *expect_data* False only the HTTP status is checked and the
        body is ignored; the call returns None.
        """
        url = f"{self._base_url}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"

        headers = {
            "Accept": "application/json",
            "X-Api-Token": self._api_token,
        }
        data: bytes | None = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug("ICS %s %s", method, path)

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                status = resp.status
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raw = e.read().decode("utf-8", errors="replace") if e.fp else ""
            raise ICSAPIError(
                e.code, _error_message(raw, e.code), response_body=raw,
            ) from e
        except (TimeoutError, socket.timeout) as e:
            raise ICSTimeoutError(f"{method} {path} timed out after {self._timeout:.0f}s") from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (TimeoutError, socket.timeout)):
                raise ICSTimeoutError(
                    f"{method} {path} timed out after {self._timeout:.0f}s"
                ) from e
            raise ICSTransportError(f"{method} {path} failed: {e.reason}") from e
        except OSError as e:
            raise ICSTransportError(f"{method} {path} failed: {e}") from e

        if status not in ok_statuses:
            raise ICSAPIError(status, _error_message(raw, status), response_body=raw)

        if not expect_data:
            return None

        try:
            envelope = APIEnvelope.model_validate(json.loads(raw) if raw else {})
        except (ValueError, ValidationError) as e:
            raise ICSResponseError(f"Malformed response from {method} {path}: {e}") from e
        return envelope.data

    @staticmethod
    def _decode(model: Any, data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ICSResponseError(f"Unable to decode {what}: {e}") from e

    @staticmethod
    def _decode_list(model: Any, data: Any, what: str) -> list[Any]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise ICSResponseError(
                f"Expected a list of {what}, got {type(data).__name__}"
            )
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise ICSResponseError(f"Unable to decode {what}: {e}") from e

    # ── Catalog ──────────────────────────────────────────────────

    def get_inventory(self) -> list[InventoryItem]:
        """Return the full inventory snapshot, in backend order."""
        data = self._request("GET", "/rest-api/server-orders/inventory")
        return self._decode_list(InventoryItem, data, "inventory items")

    def get_addons(self, sku_product_name: str, location_code: str) -> AddonCatalog:
        """Return the addon catalog for a (SKU, location) pair."""
        data = self._request(
            "GET",
            "/rest-api/server-orders/list-addons",
            params={
                "sku_product_name": sku_product_name,
                "location_code": location_code,
            },
        )
        return self._decode(AddonCatalog, data or {}, "addon catalog")

    # ── Orders and servers ───────────────────────────────────────

    def order_server(self, request: ServerOrderRequest) -> ServerOrderResult:
        data = self._request(
            "POST",
            "/rest-api/server-orders/order",
            body=request.to_payload(),
            ok_statuses=_OK_OR_CREATED,
        )
        return self._decode(ServerOrderResult, data or {}, "order result")

    def get_servers(self) -> list[Server]:
        data = self._request("GET", "/rest-api/servers")
        return self._decode_list(Server, data, "servers")

    def get_server_by_service_id(self, service_id: int) -> Server | None:
        """Scan the server list for *service_id*. Returns None if absent."""
        for server in self.get_servers():
            if server.service_id == service_id:
                return server
        return None

    def cancel_server(self, server_id: str) -> None:
        """Cancel an hourly-billed server."""
        path = f"/rest-api/servers/{urllib.parse.quote(server_id, safe='')}/cancel"
        self._request("DELETE", path, expect_data=False)
        logger.info("Server canceled: id=%s", server_id, extra={"server_id": server_id})

    def update_server_friendly_name(self, server_id: str, friendly_name: str) -> None:
        path = f"/rest-api/servers/{urllib.parse.quote(server_id, safe='')}/friendly-name"
        self._request(
            "PUT", path, body={"friendly_name": friendly_name}, expect_data=False,
        )

    # ── SSH keys ─────────────────────────────────────────────────

    def create_ssh_key(self, request: SSHKeyCreateRequest) -> SSHKeyCreateResult:
        data = self._request(
            "POST",
            "/rest-api/ssh-keys",
            body=request.model_dump(),
            ok_statuses=_OK_OR_CREATED,
        )
        return self._decode(SSHKeyCreateResult, data or {}, "SSH key create result")

    def get_ssh_keys(self) -> list[SSHKey]:
        data = self._request("GET", "/rest-api/ssh-keys")
        return self._decode_list(SSHKey, data, "SSH keys")

    def get_ssh_key_by_label(self, label: str) -> SSHKey | None:
        """Exact-label lookup over the full key list. Returns None if absent."""
        for key in self.get_ssh_keys():
            if key.label == label:
                return key
        return None

    def delete_ssh_key(self, key_id: int) -> None:
        self._request(
            "DELETE", f"/rest-api/ssh-keys/{int(key_id)}", expect_data=False,
        )


def _error_message(raw: str, status: int) -> str:
    """Best-effort message extraction from an error body."""
    message = raw[:200] if raw else f"HTTP {status}"
    try:
        payload = json.loads(raw)
    except ValueError:
        return message
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or message)
    return message

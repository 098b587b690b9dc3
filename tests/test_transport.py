"""Tests for ICSClient: request building, envelope unwrapping, error mapping."""

from __future__ import annotations

import io
import json
import socket
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from ics_baremetal.client.transport import (
    DEFAULT_BASE_URL,
    ICSAPIError,
    ICSClient,
    ICSResponseError,
    ICSTimeoutError,
    ICSTransportError,
)
from ics_baremetal.models import ServerOrderRequest, SSHKeyCreateRequest

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _response(data, status: int = 200, message: str = "OK") -> MagicMock:
    body = json.dumps({"statusCode": status, "message": message, "data": data})
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.read.return_value = body.encode("utf-8")
    mock_resp.__enter__ = lambda s: s
    mock_resp.__exit__ = MagicMock(return_value=False)
    return mock_resp


def _raw_response(raw: bytes, status: int = 200) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.read.return_value = raw
    mock_resp.__enter__ = lambda s: s
    mock_resp.__exit__ = MagicMock(return_value=False)
    return mock_resp


def _http_error(code: int, body: str) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        "https://api.example.com", code, "error", {}, io.BytesIO(body.encode("utf-8")),
    )


def _client() -> ICSClient:
    return ICSClient("tok-123", base_url="https://api.example.com/")


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------


class TestClientInit:
    def test_default_base_url(self) -> None:
        assert ICSClient("tok").base_url == DEFAULT_BASE_URL

    def test_strips_trailing_slash(self) -> None:
        assert _client().base_url == "https://api.example.com"

    def test_token_required(self) -> None:
        with pytest.raises(ValueError):
            ICSClient("")


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class TestRequests:
    def test_sends_token_header(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response([])) as mock_open:
            _client().get_inventory()

        req = mock_open.call_args[0][0]
        assert req.get_header("X-api-token") == "tok-123"
        assert req.get_header("Accept") == "application/json"
        assert req.full_url == "https://api.example.com/rest-api/server-orders/inventory"
        assert req.get_method() == "GET"

    def test_uses_configured_timeout(self) -> None:
        client = ICSClient("tok", timeout=12.5)
        with patch("urllib.request.urlopen", return_value=_response([])) as mock_open:
            client.get_servers()
        assert mock_open.call_args.kwargs["timeout"] == 12.5

    def test_addons_query_params(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response({})) as mock_open:
            _client().get_addons("c1.small", "NYC1")

        url = mock_open.call_args[0][0].full_url
        assert url.startswith("https://api.example.com/rest-api/server-orders/list-addons?")
        assert "sku_product_name=c1.small" in url
        assert "location_code=NYC1" in url

    def test_order_posts_json_without_nulls(self) -> None:
        request = ServerOrderRequest(
            sku_product_name="c1.small",
            location_code="NYC1",
            operating_system_product_code="UBUNTU_24_04",
        )
        resp = _response({"order_service_ids": [501]}, status=201)
        with patch("urllib.request.urlopen", return_value=resp) as mock_open:
            result = _client().order_server(request)

        req = mock_open.call_args[0][0]
        assert req.get_method() == "POST"
        assert req.get_header("Content-type") == "application/json"
        payload = json.loads(req.data)
        assert payload == {
            "sku_product_name": "c1.small",
            "quantity": 1,
            "location_code": "NYC1",
            "operating_system_product_code": "UBUNTU_24_04",
            "bill_hourly": True,
        }
        assert result.order_service_ids == [501]

    def test_cancel_quotes_server_id(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response(None)) as mock_open:
            _client().cancel_server("srv/1")

        req = mock_open.call_args[0][0]
        assert req.get_method() == "DELETE"
        assert req.full_url.endswith("/rest-api/servers/srv%2F1/cancel")

    def test_update_friendly_name(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response(None)) as mock_open:
            _client().update_server_friendly_name("srv-1", "web")

        req = mock_open.call_args[0][0]
        assert req.get_method() == "PUT"
        assert json.loads(req.data) == {"friendly_name": "web"}

    def test_create_ssh_key_accepts_201(self) -> None:
        resp = _response({"id": 42}, status=201)
        with patch("urllib.request.urlopen", return_value=resp):
            result = _client().create_ssh_key(
                SSHKeyCreateRequest(label="laptop", public_key="ssh-ed25519 AAAA")
            )
        assert result.id == 42

    def test_delete_ssh_key_path(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response(None)) as mock_open:
            _client().delete_ssh_key(7)
        assert mock_open.call_args[0][0].full_url.endswith("/rest-api/ssh-keys/7")


# ------------------------------------------------------------------
# Decoding
# ------------------------------------------------------------------


class TestDecoding:
    def test_inventory_items(self) -> None:
        data = [
            {"sku_id": 1, "sku_product_name": "c1.small", "location_code": "NYC1",
             "auto_provision_quantity": 2, "price_hourly": "0.25"},
        ]
        with patch("urllib.request.urlopen", return_value=_response(data)):
            items = _client().get_inventory()
        assert len(items) == 1
        assert items[0].sku_product_name == "c1.small"
        assert items[0].available is True

    def test_null_list_is_empty(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response(None)):
            assert _client().get_ssh_keys() == []

    def test_server_lookup_by_service_id(self) -> None:
        data = [
            {"id": "srv-1", "service_id": 500, "hostname": "a"},
            {"id": "srv-2", "service_id": 501, "hostname": "b"},
        ]
        with patch("urllib.request.urlopen", return_value=_response(data)):
            server = _client().get_server_by_service_id(501)
        assert server is not None
        assert server.id == "srv-2"

    def test_server_lookup_missing(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response([])):
            assert _client().get_server_by_service_id(501) is None

    def test_ssh_key_lookup_is_exact(self) -> None:
        data = [{"id": 1, "label": "Laptop"}, {"id": 2, "label": "laptop"}]
        with patch("urllib.request.urlopen", return_value=_response(data)):
            key = _client().get_ssh_key_by_label("laptop")
        assert key is not None
        assert key.id == 2

    def test_cancel_ignores_non_json_body(self) -> None:
        resp = _raw_response(b"Server cancellation requested")
        with patch("urllib.request.urlopen", return_value=resp):
            assert _client().cancel_server("srv-1") is None

    def test_rename_ignores_empty_body(self) -> None:
        with patch("urllib.request.urlopen", return_value=_raw_response(b"")):
            assert _client().update_server_friendly_name("srv-1", "web") is None

    def test_delete_ssh_key_ignores_non_json_body(self) -> None:
        with patch("urllib.request.urlopen", return_value=_raw_response(b"deleted")):
            assert _client().delete_ssh_key(7) is None

    def test_cancel_still_checks_status(self) -> None:
        resp = _raw_response(b"accepted", status=202)
        with patch("urllib.request.urlopen", return_value=resp):
            with pytest.raises(ICSAPIError):
                _client().cancel_server("srv-1")

    def test_invalid_json_is_response_error(self) -> None:
        with patch("urllib.request.urlopen", return_value=_raw_response(b"<html>")):
            with pytest.raises(ICSResponseError):
                _client().get_inventory()

    def test_wrong_shape_is_response_error(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response({"not": "a list"})):
            with pytest.raises(ICSResponseError, match="Expected a list"):
                _client().get_servers()

    def test_invalid_item_is_response_error(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response([{"hostname": "x"}])):
            with pytest.raises(ICSResponseError):
                _client().get_servers()


# ------------------------------------------------------------------
# Error mapping
# ------------------------------------------------------------------


class TestErrors:
    def test_http_error_maps_to_api_error(self) -> None:
        err = _http_error(422, json.dumps({"message": "sku out of stock"}))
        with patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(ICSAPIError) as exc_info:
                _client().get_inventory()
        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "sku out of stock"
        assert "sku out of stock" in exc_info.value.response_body

    def test_http_error_plain_body(self) -> None:
        with patch("urllib.request.urlopen", side_effect=_http_error(500, "boom")):
            with pytest.raises(ICSAPIError) as exc_info:
                _client().get_servers()
        assert exc_info.value.message == "boom"

    def test_unexpected_success_status(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response([], status=202)):
            with pytest.raises(ICSAPIError) as exc_info:
                _client().get_inventory()
        assert exc_info.value.status_code == 202

    def test_201_rejected_where_only_200_allowed(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response([], status=201)):
            with pytest.raises(ICSAPIError):
                _client().get_servers()

    def test_connection_refused_is_transport_error(self) -> None:
        err = urllib.error.URLError(ConnectionRefusedError("refused"))
        with patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(ICSTransportError) as exc_info:
                _client().get_inventory()
        assert not isinstance(exc_info.value, ICSTimeoutError)

    def test_socket_timeout_is_timeout_error(self) -> None:
        with patch("urllib.request.urlopen", side_effect=socket.timeout("timed out")):
            with pytest.raises(ICSTimeoutError):
                _client().order_server(ServerOrderRequest(
                    sku_product_name="c1.small",
                    location_code="NYC1",
                    operating_system_product_code="X",
                ))

    def test_wrapped_timeout_is_timeout_error(self) -> None:
        err = urllib.error.URLError(TimeoutError("timed out"))
        with patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(ICSTimeoutError):
                _client().get_servers()

    def test_timeout_is_a_transport_error(self) -> None:
        with patch("urllib.request.urlopen", side_effect=TimeoutError()):
            with pytest.raises(ICSTransportError):
                _client().get_servers()

    def test_reset_is_transport_error(self) -> None:
        with patch("urllib.request.urlopen", side_effect=ConnectionResetError()):
            with pytest.raises(ICSTransportError):
                _client().get_servers()

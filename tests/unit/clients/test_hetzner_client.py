"""
Unit tests for the Hetzner API gateway.

The HTTP session is a Mock returning real requests.Response objects, so
status handling and JSON decoding run exactly as in production.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from hetzner_console_core.clients.hetzner_client import PAGE_SIZE, HetznerClient
from hetzner_console_core.constants import ServerAction, ServerStatus
from hetzner_console_core.exceptions import SchemaError, UpstreamError
from hetzner_console_core.schemas.action_schemas import CreateServerInput, ServerMetricsInput
from tests.fixtures.hetzner_payloads import (
    action_payload,
    error_payload,
    floating_ip_payload,
    image_payload,
    metrics_payload,
    paginated,
    pricing_payload,
    server_payload,
    volume_payload,
)

BASE_URL = "https://api.hetzner.test/v1"


def make_response(status_code=200, body=None, reason="OK", raw=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    return response


@pytest.fixture
def http_session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(http_session):
    return HetznerClient("hz-secret-token", session=http_session)


class TestTransport:
    """Test authentication, error mapping and body handling."""

    def test_bearer_auth_and_base_url(self, client, http_session):
        """Test every request carries the token and hits the configured base URL."""
        http_session.request.return_value = make_response(body={"server": server_payload()})

        client.get_server(42)

        method, url = http_session.request.call_args.args
        kwargs = http_session.request.call_args.kwargs
        assert method == "GET"
        assert url == f"{BASE_URL}/servers/42"
        assert kwargs["headers"]["Authorization"] == "Bearer hz-secret-token"
        assert kwargs["timeout"] == 5

    def test_repr_hides_token(self, client):
        """Test the token never shows up in the repr."""
        assert "hz-secret-token" not in repr(client)
        assert "hz-s..." in repr(client)

    def test_close_leaves_injected_session_open(self, client, http_session):
        """Test closing does not close a session owned by the caller."""
        client.close()

        http_session.close.assert_not_called()

    def test_close_owned_session(self, monkeypatch):
        """Test a client closes the session it created, also as a context manager."""
        owned = Mock(spec=requests.Session)
        monkeypatch.setattr(requests, "Session", Mock(return_value=owned))

        with HetznerClient("hz-secret-token") as client:
            assert client.session is owned

        owned.close.assert_called_once_with()

    def test_upstream_error_is_parsed(self, client, http_session):
        """Test the upstream error envelope becomes an UpstreamError."""
        http_session.request.return_value = make_response(
            423, error_payload("locked", "server is locked"), reason="Locked"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.reboot(42)

        error = exc_info.value
        assert error.upstream_status == 423
        assert error.code == "locked"
        assert error.message == "server is locked"
        assert error.retryable is False

    def test_error_without_envelope(self, client, http_session):
        """Test the fallback code and message."""
        http_session.request.return_value = make_response(
            502, raw=b"<html>Bad Gateway</html>", reason="Bad Gateway"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.list_servers()

        assert exc_info.value.code == "unknown_error"
        assert exc_info.value.message == "HTTP 502: Bad Gateway"
        assert exc_info.value.retryable is True

    def test_rate_limit_is_retryable(self, client, http_session):
        """Test 429 responses are retryable."""
        http_session.request.return_value = make_response(
            429, error_payload("rate_limit_exceeded", "slow down"), reason="Too Many Requests"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.get_pricing()

        assert exc_info.value.retryable is True

    @pytest.mark.parametrize(
        "exception", [requests.ConnectionError("refused"), requests.Timeout("timed out")]
    )
    def test_network_failure(self, client, http_session, exception):
        """Test transport failures have no status and are retryable."""
        http_session.request.side_effect = exception

        with pytest.raises(UpstreamError) as exc_info:
            client.list_volumes()

        assert exc_info.value.upstream_status is None
        assert exc_info.value.code == "network_error"
        assert exc_info.value.retryable is True

    def test_schema_mismatch(self, client, http_session):
        """Test a 2xx body of the wrong shape is a SchemaError."""
        http_session.request.return_value = make_response(body={"server": {"id": 42}})

        with pytest.raises(SchemaError) as exc_info:
            client.get_server(42)

        assert exc_info.value.context["operation"] == "get_server"
        assert exc_info.value.retryable is False

    def test_non_json_success_body(self, client, http_session):
        """Test a 2xx body that is not JSON is a SchemaError."""
        http_session.request.return_value = make_response(raw=b"not json")

        with pytest.raises(SchemaError):
            client.get_pricing()

    def test_no_retries(self, client, http_session):
        """Test a failing request is sent exactly once."""
        http_session.request.return_value = make_response(
            503, error_payload("unavailable", "maintenance"), reason="Service Unavailable"
        )

        with pytest.raises(UpstreamError):
            client.power_on(42)

        assert http_session.request.call_count == 1


class TestServers:
    """Test server endpoints."""

    def test_list_servers_follows_pagination(self, client, http_session):
        """Test every page is collected."""
        http_session.request.side_effect = [
            make_response(body=paginated("servers", [server_payload(server_id=1)], page=1, next_page=2)),
            make_response(body=paginated("servers", [server_payload(server_id=2)], page=2, next_page=None)),
        ]

        servers = client.list_servers()

        assert [s.id for s in servers] == [1, 2]
        pages = [call.kwargs["params"]["page"] for call in http_session.request.call_args_list]
        assert pages == [1, 2]
        assert http_session.request.call_args.kwargs["params"]["per_page"] == PAGE_SIZE

    def test_list_without_meta(self, client, http_session):
        """Test a response without pagination meta is a single page."""
        http_session.request.return_value = make_response(body={"servers": [server_payload()]})

        assert len(client.list_servers()) == 1
        assert http_session.request.call_count == 1

    def test_create_server(self, client, http_session):
        """Test the create body and the returned root password."""
        http_session.request.return_value = make_response(
            201,
            {
                "server": server_payload(status="initializing"),
                "action": action_payload(command="create_server"),
                "next_actions": [],
                "root_password": "initial-password",
            },
            reason="Created",
        )
        server_input = CreateServerInput.model_validate(
            {"name": "Web 1", "server_type": "cpx11", "image": "ubuntu-24.04", "location": "fsn1"}
        )

        result = client.create_server(server_input)

        assert result.root_password == "initial-password"
        assert result.server.status is ServerStatus.INITIALIZING
        method, url = http_session.request.call_args.args
        assert (method, url) == ("POST", f"{BASE_URL}/servers")
        assert http_session.request.call_args.kwargs["json"]["name"] == "web-1"

    def test_delete_server_returns_action(self, client, http_session):
        """Test delete with an action body."""
        http_session.request.return_value = make_response(body={"action": action_payload(command="delete_server")})

        action = client.delete_server(42)

        assert action.command == "delete_server"

    def test_delete_server_accepts_empty_body(self, client, http_session):
        """Test a 204 delete response."""
        http_session.request.return_value = make_response(204, reason="No Content")

        assert client.delete_server(42) is None

    @pytest.mark.parametrize(
        "method_name, path_action",
        [
            ("power_on", "poweron"),
            ("power_off", "poweroff"),
            ("reboot", "reboot"),
            ("shutdown", "shutdown"),
        ],
    )
    def test_power_actions(self, client, http_session, method_name, path_action):
        """Test each power action posts to its endpoint."""
        http_session.request.return_value = make_response(body={"action": action_payload(command=path_action)})

        action = getattr(client, method_name)(42)

        assert action.command == path_action
        method, url = http_session.request.call_args.args
        assert (method, url) == ("POST", f"{BASE_URL}/servers/42/actions/{path_action}")

    def test_perform_action_dispatches(self, client, http_session):
        """Test perform_action picks the endpoint from the enum."""
        http_session.request.return_value = make_response(body={"action": action_payload(command="shutdown_server")})

        client.perform_action(42, ServerAction.SHUTDOWN)

        assert http_session.request.call_args.args[1].endswith("/servers/42/actions/shutdown")

    def test_reset_root_password(self, client, http_session):
        """Test the reset password endpoint."""
        http_session.request.return_value = make_response(
            body={"action": action_payload(command="reset_password"), "root_password": "new-password"}
        )

        result = client.reset_root_password(42)

        assert result.root_password == "new-password"
        assert http_session.request.call_args.args[1].endswith("/servers/42/actions/reset_password")

    def test_get_server_metrics(self, client, http_session):
        """Test the metrics query parameters."""
        http_session.request.return_value = make_response(body={"metrics": metrics_payload()})
        metrics_input = ServerMetricsInput.model_validate(
            {"serverId": 42, "type": "cpu", "start": "2026-01-13T09:00:00Z", "end": "2026-01-13T10:00:00Z"}
        )

        metrics = client.get_server_metrics(metrics_input)

        assert "cpu" in metrics.time_series
        params = http_session.request.call_args.kwargs["params"]
        assert params["type"] == "cpu"
        assert params["start"] == "2026-01-13T09:00:00+00:00"


class TestCatalog:
    """Test the non-server endpoints."""

    def test_list_volumes_and_floating_ips(self, client, http_session):
        """Test volume and floating IP listings."""
        http_session.request.side_effect = [
            make_response(body=paginated("volumes", [volume_payload()])),
            make_response(body=paginated("floating_ips", [floating_ip_payload()])),
        ]

        assert client.list_volumes()[0].size == 100
        assert client.list_floating_ips()[0].type == "ipv4"

    def test_get_pricing(self, client, http_session):
        """Test the pricing endpoint."""
        http_session.request.return_value = make_response(body={"pricing": pricing_payload()})

        assert client.get_pricing().currency == "EUR"

    def test_pricing_with_non_numeric_price(self, client, http_session):
        """Test a price that is not a decimal string is a SchemaError."""
        http_session.request.return_value = make_response(
            body={"pricing": pricing_payload(volume_gross="free")}
        )

        with pytest.raises(SchemaError):
            client.get_pricing()

    def test_system_images_are_filtered(self, client, http_session):
        """Test only system images are requested."""
        http_session.request.return_value = make_response(body=paginated("images", [image_payload()]))

        images = client.list_system_images()

        assert images[0].name == "ubuntu-24.04"
        assert http_session.request.call_args.kwargs["params"]["type"] == "system"

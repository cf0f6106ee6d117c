"""
Hetzner Cloud API gateway.

One method per upstream operation. Each call authenticates with the
bearer token it was built with, checks the HTTP status, and validates the
body against the operation's schema before returning typed models. There
are no automatic retries: power actions are not idempotent, and retry
decisions belong to the caller (see ``UpstreamError.retryable``).
"""

import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..config import get_config
from ..constants import ServerAction
from ..exceptions import SchemaError, UpstreamError
from ..schemas.action_schemas import CreateServerInput, ServerMetricsInput
from ..schemas.hetzner_schemas import (
    Action,
    ActionResponse,
    CreateServerResponse,
    Datacenter,
    DatacentersResponse,
    FloatingIp,
    FloatingIpsResponse,
    Image,
    ImagesResponse,
    Location,
    LocationsResponse,
    Pricing,
    PricingResponse,
    ResetPasswordResponse,
    Server,
    ServerMetrics,
    ServerMetricsResponse,
    ServerResponse,
    ServersResponse,
    ServerType,
    ServerTypesResponse,
    Volume,
    VolumesResponse,
)
from ..utils.logger import get_logger, mask_token

SchemaT = TypeVar("SchemaT", bound=BaseModel)

PAGE_SIZE = 50


class HetznerClient:
    """Typed client for the subset of the Hetzner Cloud API the console uses."""

    def __init__(
        self,
        api_token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_token: Hetzner Cloud API token
            base_url: API base URL (default: from config)
            timeout: Request timeout in seconds (default: from config)
            session: HTTP session to use (default: a new requests.Session)
        """
        hetzner_config = get_config().hetzner
        self.base_url = (base_url or hetzner_config.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else hetzner_config.timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self._api_token = api_token
        self.logger = get_logger()

    def __repr__(self) -> str:
        masked = mask_token(self._api_token)
        return f"HetznerClient(base_url='{self.base_url}', token_prefix='{masked['token_prefix']}')"

    def close(self) -> None:
        """Release pooled connections; a session passed in by the caller is left open."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "HetznerClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # Transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send one request and return the decoded JSON body.

        Returns:
            The JSON body, or None for empty (204) responses

        Raises:
            UpstreamError: Non-2xx status or transport failure
            SchemaError: A 2xx body that is not JSON
        """
        url = f"{self.base_url}{path}"
        start = time.perf_counter()

        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(
                None,
                "network_error",
                f"Could not reach Hetzner API: {e}",
                cause=e,
                operation=operation,
                method=method,
                path=path,
            )

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        self.logger.debug(
            "Hetzner API request completed",
            extra={
                "operation": operation,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        if not response.ok:
            raise self._error_from_response(response, operation, method, path)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(
                f"Hetzner API returned a non-JSON body for {operation}",
                operation=operation,
                cause=e,
            )

    @staticmethod
    def _error_from_response(
        response: requests.Response, operation: str, method: str, path: str
    ) -> UpstreamError:
        try:
            body = response.json()
        except ValueError:
            body = {}

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}

        code = error.get("code") or "unknown_error"
        message = error.get("message") or f"HTTP {response.status_code}: {response.reason}"
        return UpstreamError(
            response.status_code,
            code,
            message,
            operation=operation,
            method=method,
            path=path,
        )

    @staticmethod
    def _parse(schema: Type[SchemaT], data: Optional[Dict[str, Any]], operation: str) -> SchemaT:
        if data is None:
            raise SchemaError(f"Hetzner API returned an empty body for {operation}", operation=operation)
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise SchemaError(
                f"Unexpected Hetzner API response for {operation}",
                operation=operation,
                cause=e,
                error_count=e.error_count(),
                locations=[".".join(str(part) for part in err["loc"]) for err in e.errors()][:10],
            )

    def _list_all(
        self,
        path: str,
        schema: Type[SchemaT],
        key: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Any]:
        """Follow ``meta.pagination.next_page`` and collect every page's items."""
        items: List[Any] = []
        page = 1
        while True:
            page_params = {**(params or {}), "page": page, "per_page": PAGE_SIZE}
            parsed = self._parse(schema, self._request("GET", path, operation, params=page_params), operation)
            items.extend(getattr(parsed, key))

            pagination = parsed.meta.pagination if getattr(parsed, "meta", None) else None
            if pagination is None or not pagination.next_page or pagination.next_page <= page:
                return items
            page = pagination.next_page

    # Servers

    def list_servers(self) -> List[Server]:
        return self._list_all("/servers", ServersResponse, "servers", "list_servers")

    def get_server(self, server_id: int) -> Server:
        data = self._request("GET", f"/servers/{server_id}", "get_server")
        return self._parse(ServerResponse, data, "get_server").server

    def create_server(self, server_input: CreateServerInput) -> CreateServerResponse:
        """
        Create a server.

        The response carries the initial root password when no SSH key was
        given; it is returned to the caller and never logged.
        """
        data = self._request(
            "POST", "/servers", "create_server", json_body=server_input.to_request_body()
        )
        return self._parse(CreateServerResponse, data, "create_server")

    def delete_server(self, server_id: int) -> Optional[Action]:
        data = self._request("DELETE", f"/servers/{server_id}", "delete_server")
        if data is None:
            return None
        return self._parse(ActionResponse, data, "delete_server").action

    def _server_action(self, server_id: int, action: str) -> Action:
        operation = f"server_action_{action}"
        data = self._request("POST", f"/servers/{server_id}/actions/{action}", operation)
        return self._parse(ActionResponse, data, operation).action

    def perform_action(self, server_id: int, action: ServerAction) -> Action:
        """Dispatch a power action to the matching endpoint."""
        return self._server_action(server_id, ServerAction(action).value)

    def power_on(self, server_id: int) -> Action:
        return self._server_action(server_id, ServerAction.POWERON.value)

    def power_off(self, server_id: int) -> Action:
        return self._server_action(server_id, ServerAction.POWEROFF.value)

    def reboot(self, server_id: int) -> Action:
        return self._server_action(server_id, ServerAction.REBOOT.value)

    def shutdown(self, server_id: int) -> Action:
        return self._server_action(server_id, ServerAction.SHUTDOWN.value)

    def reset_root_password(self, server_id: int) -> ResetPasswordResponse:
        data = self._request(
            "POST", f"/servers/{server_id}/actions/reset_password", "reset_root_password"
        )
        return self._parse(ResetPasswordResponse, data, "reset_root_password")

    def get_server_metrics(self, metrics_input: ServerMetricsInput) -> ServerMetrics:
        data = self._request(
            "GET",
            f"/servers/{metrics_input.server_id}/metrics",
            "get_server_metrics",
            params=metrics_input.to_query_params(),
        )
        return self._parse(ServerMetricsResponse, data, "get_server_metrics").metrics

    # Other resources

    def list_volumes(self) -> List[Volume]:
        return self._list_all("/volumes", VolumesResponse, "volumes", "list_volumes")

    def list_floating_ips(self) -> List[FloatingIp]:
        return self._list_all(
            "/floating_ips", FloatingIpsResponse, "floating_ips", "list_floating_ips"
        )

    def get_pricing(self) -> Pricing:
        data = self._request("GET", "/pricing", "get_pricing")
        return self._parse(PricingResponse, data, "get_pricing").pricing

    def list_system_images(self) -> List[Image]:
        return self._list_all(
            "/images", ImagesResponse, "images", "list_system_images", params={"type": "system"}
        )

    def list_locations(self) -> List[Location]:
        return self._list_all("/locations", LocationsResponse, "locations", "list_locations")

    def list_datacenters(self) -> List[Datacenter]:
        return self._list_all(
            "/datacenters", DatacentersResponse, "datacenters", "list_datacenters"
        )

    def list_server_types(self) -> List[ServerType]:
        return self._list_all(
            "/server_types", ServerTypesResponse, "server_types", "list_server_types"
        )

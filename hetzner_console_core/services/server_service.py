"""
Server operations: upstream calls combined with local assignment and note data.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..constants import ResourceType
from ..context.identity import Identity
from ..context.operation_context import operation
from ..exceptions import PersistenceError
from ..processing.server_state import ensure_action_allowed, ensure_running
from ..schemas.action_schemas import (
    CreateServerInput,
    ServerActionInput,
    ServerIdInput,
    ServerMetricsInput,
)
from ..schemas.hetzner_schemas import (
    CreateServerResponse,
    Datacenter,
    Image,
    Location,
    ResetPasswordResponse,
    ServerMetrics,
    ServerType,
)
from ..schemas.resource_schemas import (
    DeleteServerResult,
    ServerActionResult,
    ServerDetail,
    ServerList,
    ServerListItem,
)
from .base_service import SessionManagedService
from .credential_service import CredentialService
from .resource_service import ResourceService


class ServerService(SessionManagedService):
    """Server-facing operations of the console."""

    def __init__(
        self,
        session: Optional[Session] = None,
        credential_service: Optional[CredentialService] = None,
        resource_service: Optional[ResourceService] = None,
    ):
        super().__init__(session)
        self.credential_service = credential_service or CredentialService(self.session)
        self.resource_service = resource_service or ResourceService(self.session)

    @operation()
    def list_servers(self, identity: Identity) -> ServerList:
        client = self.credential_service.get_client(identity)
        servers = client.list_servers()

        assignments = self.resource_service.list_assignments(
            identity, ResourceType.SERVER, [str(server.id) for server in servers]
        )
        return ServerList(
            servers=[
                ServerListItem(
                    server=server,
                    assignment=assignments.get((ResourceType.SERVER.value, str(server.id))),
                )
                for server in servers
            ]
        )

    @operation()
    def get_server(self, identity: Identity, server_input: ServerIdInput) -> ServerDetail:
        client = self.credential_service.get_client(identity)
        server = client.get_server(server_input.server_id)

        return ServerDetail(
            server=server,
            assignment=self.resource_service.get_assignment(
                identity, ResourceType.SERVER, str(server.id)
            ),
            notes=self.resource_service.list_notes(identity, ResourceType.SERVER, str(server.id)),
        )

    @operation()
    def create_server(
        self, identity: Identity, server_input: CreateServerInput
    ) -> CreateServerResponse:
        client = self.credential_service.get_client(identity)
        result = client.create_server(server_input)

        self.logger.info(
            "Server created",
            extra={
                "owner_id": identity.owner_id,
                "server_id": result.server.id,
                "server_name": result.server.name,
                "has_root_password": result.root_password is not None,
            },
        )
        return result

    @operation()
    def delete_server(self, identity: Identity, server_input: ServerIdInput) -> DeleteServerResult:
        """
        Delete a server upstream, then its local assignment and notes.

        Local cleanup only runs after the upstream delete succeeded. Both
        cleanup deletes are attempted; their failures are logged and reported
        through ``cleanup_complete`` instead of failing the operation.
        """
        client = self.credential_service.get_client(identity)
        action = client.delete_server(server_input.server_id)

        resource_id = str(server_input.server_id)
        cleanup_complete = True

        try:
            self.resource_service.delete_assignment(identity, ResourceType.SERVER, resource_id)
        except PersistenceError as e:
            cleanup_complete = False
            self.logger.error(
                "Failed to delete assignment of deleted server",
                extra={"owner_id": identity.owner_id, "server_id": resource_id, "error_id": e.error_id},
            )

        try:
            self.resource_service.delete_notes(identity, ResourceType.SERVER, resource_id)
        except PersistenceError as e:
            cleanup_complete = False
            self.logger.error(
                "Failed to delete notes of deleted server",
                extra={"owner_id": identity.owner_id, "server_id": resource_id, "error_id": e.error_id},
            )

        return DeleteServerResult(action=action, success=True, cleanup_complete=cleanup_complete)

    @operation()
    def perform_action(self, identity: Identity, action_input: ServerActionInput) -> ServerActionResult:
        """
        Run a power action after checking it against the server's current status.

        Raises:
            InvalidServerStateError: The action does not fit the status; no upstream action is sent
            UpstreamError: The upstream refused the action anyway
        """
        client = self.credential_service.get_client(identity)
        server = client.get_server(action_input.server_id)

        expected_status = ensure_action_allowed(server.status, action_input.action)
        action = client.perform_action(action_input.server_id, action_input.action)

        self.logger.info(
            "Server action started",
            extra={
                "owner_id": identity.owner_id,
                "server_id": server.id,
                "action": action_input.action.value,
                "previous_status": server.status.value,
                "expected_status": expected_status.value,
            },
        )
        return ServerActionResult(
            action=action,
            server_id=server.id,
            previous_status=server.status,
            expected_status=expected_status,
        )

    @operation()
    def reset_root_password(
        self, identity: Identity, server_input: ServerIdInput
    ) -> ResetPasswordResponse:
        """Reset the root password of a running server; the new password is returned, never logged."""
        client = self.credential_service.get_client(identity)
        server = client.get_server(server_input.server_id)
        ensure_running(server.status, "reset root password")
        return client.reset_root_password(server_input.server_id)

    def get_server_metrics(
        self, identity: Identity, metrics_input: ServerMetricsInput
    ) -> ServerMetrics:
        client = self.credential_service.get_client(identity)
        return client.get_server_metrics(metrics_input)

    # Catalog lookups for the create form

    def list_system_images(self, identity: Identity) -> List[Image]:
        return self.credential_service.get_client(identity).list_system_images()

    def list_locations(self, identity: Identity) -> List[Location]:
        return self.credential_service.get_client(identity).list_locations()

    def list_datacenters(self, identity: Identity) -> List[Datacenter]:
        return self.credential_service.get_client(identity).list_datacenters()

    def list_server_types(self, identity: Identity) -> List[ServerType]:
        return self.credential_service.get_client(identity).list_server_types()

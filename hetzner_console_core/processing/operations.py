"""
Named console operations and their dispatcher.

``ConsoleOperations.dispatch`` is the single entry point for the UI: it
looks up the operation, runs it through the action pipeline and always
returns an ``OperationResult``. Errors come back as data, never as raised
exceptions.
"""

import time
import uuid
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..clients.hetzner_client import HetznerClient
from ..context.identity import Identity
from ..db.db_config import get_db_manager
from ..exceptions import (
    BaseError,
    ErrorCode,
    ValidationError,
    clear_correlation_id,
    set_correlation_id,
)
from ..schemas.action_schemas import (
    AssignResourceInput,
    CreateNoteInput,
    CreateServerInput,
    DeleteNoteInput,
    EmptyInput,
    ServerActionInput,
    ServerIdInput,
    ServerMetricsInput,
    SetApiTokenInput,
    UnassignResourceInput,
)
from ..schemas.resource_schemas import OperationAck
from ..services.cost_service import CostService
from ..services.credential_service import CredentialService
from ..services.resource_service import ResourceService
from ..services.server_service import ServerService
from ..services.session_verifier import SessionVerifier
from ..utils.logger import get_logger
from .action_pipeline import ActionPipeline


class OperationResult(BaseModel):
    """Outcome of one dispatched operation; exactly one of data and error is meaningful."""

    ok: bool = Field(description="Whether the operation succeeded")
    operation: str = Field(description="Name of the dispatched operation")
    data: Any = Field(default=None, description="JSON-compatible result on success")
    error: Optional[Dict[str, Any]] = Field(
        default=None, description="Serialized error on failure"
    )

    @classmethod
    def success_result(cls, operation: str, data: Any) -> "OperationResult":
        return cls(ok=True, operation=operation, data=data)

    @classmethod
    def failure_result(cls, operation: str, error: BaseError) -> "OperationResult":
        return cls(ok=False, operation=operation, error=error.to_dict()["error"])


class ServiceBundle:
    """The services of one dispatch, sharing one database session."""

    def __init__(self, session: Session, client_factory: Optional[Callable[[str], HetznerClient]]):
        self.credentials = CredentialService(session, client_factory=client_factory)
        self.resources = ResourceService(session)
        self.servers = ServerService(session, self.credentials, self.resources)
        self.costs = CostService(session, self.credentials, self.resources)

    def close(self) -> None:
        self.credentials.close_clients()


OperationHandlerFunc = Callable[[ServiceBundle, Identity, Any], Any]


class OperationSpec(NamedTuple):
    schema: Type[BaseModel]
    handler: OperationHandlerFunc


def _set_api_token(services: ServiceBundle, identity: Identity, data: SetApiTokenInput):
    services.credentials.store_token(identity, data)
    return OperationAck(message="API token saved")


def _delete_api_token(services: ServiceBundle, identity: Identity, data: EmptyInput):
    if services.credentials.delete_token(identity):
        return OperationAck(message="API token removed")
    return OperationAck(message="No stored API token")


def _unassign_resource(services: ServiceBundle, identity: Identity, data: UnassignResourceInput):
    services.resources.unassign(identity, data)
    return OperationAck()


def _delete_note(services: ServiceBundle, identity: Identity, data: DeleteNoteInput):
    services.resources.delete_note(identity, data.note_id)
    return OperationAck()


OPERATIONS: Dict[str, OperationSpec] = {
    "list_resources": OperationSpec(
        EmptyInput, lambda s, identity, data: s.costs.list_resources(identity)
    ),
    "list_servers": OperationSpec(
        EmptyInput, lambda s, identity, data: s.servers.list_servers(identity)
    ),
    "get_server": OperationSpec(
        ServerIdInput, lambda s, identity, data: s.servers.get_server(identity, data)
    ),
    "create_server": OperationSpec(
        CreateServerInput, lambda s, identity, data: s.servers.create_server(identity, data)
    ),
    "delete_server": OperationSpec(
        ServerIdInput, lambda s, identity, data: s.servers.delete_server(identity, data)
    ),
    "server_action": OperationSpec(
        ServerActionInput, lambda s, identity, data: s.servers.perform_action(identity, data)
    ),
    "reset_root_password": OperationSpec(
        ServerIdInput, lambda s, identity, data: s.servers.reset_root_password(identity, data)
    ),
    "get_server_metrics": OperationSpec(
        ServerMetricsInput, lambda s, identity, data: s.servers.get_server_metrics(identity, data)
    ),
    "list_system_images": OperationSpec(
        EmptyInput, lambda s, identity, data: s.servers.list_system_images(identity)
    ),
    "list_locations": OperationSpec(
        EmptyInput, lambda s, identity, data: s.servers.list_locations(identity)
    ),
    "list_datacenters": OperationSpec(
        EmptyInput, lambda s, identity, data: s.servers.list_datacenters(identity)
    ),
    "list_server_types": OperationSpec(
        EmptyInput, lambda s, identity, data: s.servers.list_server_types(identity)
    ),
    "get_api_token": OperationSpec(
        EmptyInput, lambda s, identity, data: s.credentials.get_token_status(identity)
    ),
    "set_api_token": OperationSpec(SetApiTokenInput, _set_api_token),
    "delete_api_token": OperationSpec(EmptyInput, _delete_api_token),
    "assign_resource": OperationSpec(
        AssignResourceInput, lambda s, identity, data: s.resources.assign(identity, data)
    ),
    "unassign_resource": OperationSpec(UnassignResourceInput, _unassign_resource),
    "create_note": OperationSpec(
        CreateNoteInput, lambda s, identity, data: s.resources.create_note(identity, data)
    ),
    "delete_note": OperationSpec(DeleteNoteInput, _delete_note),
}


def to_json_data(result: Any) -> Any:
    """Serialize a handler result to JSON-compatible data."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, (list, tuple)):
        return [to_json_data(item) for item in result]
    return result


class ConsoleOperations:
    """Dispatcher for the named console operations."""

    def __init__(
        self,
        session: Optional[Session] = None,
        verifier: Optional[SessionVerifier] = None,
        client_factory: Optional[Callable[[str], HetznerClient]] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            session: Database session to use for every dispatch (default: a fresh
                session from the global DatabaseManager per dispatch)
            verifier: Session verifier (default: configured from AppConfig)
            client_factory: Builds upstream clients from tokens (default: HetznerClient)
        """
        self.session = session
        self.pipeline = ActionPipeline(verifier)
        self.client_factory = client_factory
        self.logger = get_logger()

    @staticmethod
    def operation_names() -> List[str]:
        return sorted(OPERATIONS)

    def dispatch(
        self,
        name: str,
        session_token: Optional[str],
        payload: Any = None,
        project_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Run one named operation.

        Args:
            name: Operation name, e.g. ``"server_action"``
            session_token: Token issued by the host platform
            payload: Raw operation input
            project_id: Project shown by the host UI

        Returns:
            OperationResult with ``data`` on success or ``error`` on failure
        """
        start_time = time.time()
        set_correlation_id(str(uuid.uuid4()))
        owned_session: Optional[Session] = None
        services: Optional[ServiceBundle] = None

        try:
            spec = OPERATIONS.get(name)
            if spec is None:
                # Unknown names are only reported to verified callers
                self.pipeline.verifier.verify(session_token, project_id=project_id)
                raise ValidationError(f"Unknown operation: {name}", field="operation")

            def run_handler(identity: Identity, data: Any) -> Any:
                nonlocal owned_session, services
                session = self.session
                if session is None:
                    session = owned_session = get_db_manager().get_session()
                services = ServiceBundle(session, self.client_factory)
                return spec.handler(services, identity, data)

            result = OperationResult.success_result(
                name,
                to_json_data(
                    self.pipeline.run(
                        session_token, payload, spec.schema, run_handler, project_id=project_id
                    )
                ),
            )

        except BaseError as e:
            if owned_session is not None:
                owned_session.rollback()
            result = OperationResult.failure_result(name, e)

        except Exception as e:
            if owned_session is not None:
                owned_session.rollback()
            self.logger.exception(
                f"Unexpected error in operation {name}",
                extra={"operation": name, "error_type": type(e).__name__},
            )
            error = BaseError(
                f"Internal error in operation {name}",
                ErrorCode.INTERNAL_ERROR,
                500,
                cause=e,
                operation=name,
            )
            result = OperationResult.failure_result(name, error)

        finally:
            if services is not None:
                services.close()
            if owned_session is not None:
                owned_session.close()
            clear_correlation_id()

        self.logger.info(
            f"Operation {name} {'succeeded' if result.ok else 'failed'}",
            extra={
                "operation": name,
                "ok": result.ok,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "error_code": result.error["code"] if result.error else None,
            },
        )
        return result

"""
Service resolving and managing the Hetzner API token of an identity.

Resolution order:
1. The process-wide override (``HETZNER_API_TOKEN``), when it applies to the
   identity. ``HETZNER_API_TOKEN_SCOPE`` restricts it to a list of extension
   instance ids; without a scope it applies to everyone.
2. The identity's own stored token.

Tokens never reach the logs; only their length and a short prefix do.
"""

from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..clients.hetzner_client import HetznerClient
from ..config import get_config
from ..constants import TokenSource
from ..context.identity import Identity
from ..context.operation_context import operation
from ..db.db_credential_models import HetznerApiToken
from ..exceptions import ConfigurationError, UpstreamError, ValidationError
from ..schemas.action_schemas import SetApiTokenInput
from ..schemas.resource_schemas import ApiTokenStatus
from ..utils.crud_helpers import delete_records, get_record, upsert_record
from ..utils.encryption_utils import decrypt_token, encrypt_token
from ..utils.logger import mask_token
from .base_service import SessionManagedService

ClientFactory = Callable[[str], HetznerClient]


class CredentialService(SessionManagedService):
    """Credential resolver and token settings for one database session."""

    def __init__(
        self,
        session: Optional[Session] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize the service.

        Args:
            session: Database session (default: from the global DatabaseManager)
            client_factory: Builds a HetznerClient from a token (default: HetznerClient)
        """
        super().__init__(session)
        self.client_factory: ClientFactory = client_factory or HetznerClient
        self._clients: List[HetznerClient] = []

    def _get_stored_token(self, identity: Identity) -> Optional[HetznerApiToken]:
        try:
            return get_record(self.session, HetznerApiToken, {}, owner_id=identity.owner_id)
        except Exception as e:
            self._handle_service_exception("get_stored_token", e, identity.owner_id)

    @operation()
    def resolve_token(self, identity: Identity) -> str:
        """
        Return the API token to use for this identity.

        Raises:
            ConfigurationError: Neither an applicable override nor a stored token exists
        """
        hetzner_config = get_config().hetzner
        owner_id = identity.owner_id

        if hetzner_config.override_applies_to(owner_id):
            token = hetzner_config.token_override.strip()
            if not hetzner_config.token_override_scope and self._get_stored_token(identity):
                self.logger.warning(
                    "Process-wide API token override shadows a stored token",
                    extra={"owner_id": owner_id},
                )
            self.logger.info(
                "Using API token from environment",
                extra={"owner_id": owner_id, **mask_token(token)},
            )
            return token

        stored = self._get_stored_token(identity)
        if stored is not None:
            token = decrypt_token(self.session, stored.token_value, owner_id)
            if token:
                self.logger.info(
                    "Using stored API token",
                    extra={"owner_id": owner_id, **mask_token(token)},
                )
                return token

        raise ConfigurationError(
            "Hetzner API token not configured. Please configure it in the extension settings.",
            owner_id=owner_id,
        )

    def get_client(self, identity: Identity) -> HetznerClient:
        """
        Build an upstream client authenticated with the identity's token.

        The client stays open until ``close_clients``.
        """
        client = self.client_factory(self.resolve_token(identity))
        self._clients.append(client)
        return client

    def close_clients(self) -> None:
        """Close every client handed out by ``get_client``."""
        clients, self._clients = self._clients, []
        for client in clients:
            client.close()

    def get_token_status(self, identity: Identity) -> ApiTokenStatus:
        """Report whether a token is configured and where it comes from."""
        if get_config().hetzner.override_applies_to(identity.owner_id):
            return ApiTokenStatus(has_token=True, source=TokenSource.ENVIRONMENT)

        stored = self._get_stored_token(identity)
        if stored is None:
            return ApiTokenStatus(has_token=False, source=TokenSource.NONE)

        return ApiTokenStatus(
            has_token=True,
            source=TokenSource.DATABASE,
            configured_at=stored.created_at,
            updated_at=stored.updated_at,
        )

    @operation()
    def store_token(self, identity: Identity, token_input: SetApiTokenInput) -> ApiTokenStatus:
        """
        Check a token against the API, then store it encrypted.

        Raises:
            ValidationError: The API rejected the token
            UpstreamError: The API could not be asked (network or 5xx)
        """
        token = token_input.api_token
        owner_id = identity.owner_id

        self.logger.info(
            "Storing API token",
            extra={"owner_id": owner_id, **mask_token(token)},
        )

        if get_config().hetzner.validate_token_on_store:
            client = self.client_factory(token)
            try:
                client.list_servers()
            except UpstreamError as e:
                if e.retryable:
                    raise
                raise ValidationError(
                    f"Invalid API token: {e.message}",
                    field="apiToken",
                    cause=e,
                    upstream_code=e.code,
                )
            finally:
                client.close()

        encrypted = encrypt_token(self.session, token, owner_id)
        upsert_record(self.session, HetznerApiToken, {}, {"token_value": encrypted}, owner_id=owner_id)

        return self.get_token_status(identity)

    @operation()
    def delete_token(self, identity: Identity) -> bool:
        """Remove the identity's stored token. Returns False if there was none."""
        return delete_records(self.session, HetznerApiToken, {}, owner_id=identity.owner_id) > 0

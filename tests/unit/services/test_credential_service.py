"""
Unit tests for credential resolution and token settings.
"""

from unittest.mock import Mock, patch

import pytest
from sqlalchemy.orm import Session

from hetzner_console_core.clients.hetzner_client import HetznerClient
from hetzner_console_core.constants import TokenSource
from hetzner_console_core.db import HetznerApiToken
from hetzner_console_core.exceptions import (
    ConfigurationError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from hetzner_console_core.schemas.action_schemas import SetApiTokenInput
from hetzner_console_core.services.credential_service import CredentialService
from hetzner_console_core.utils.crud_helpers import count_records, get_record
from hetzner_console_core.utils.encryption_utils import decrypt_token, encrypt_token
from tests.fixtures.factories import HetznerApiTokenFactory


def store_token_for(session: Session, owner_id: str, token: str) -> HetznerApiToken:
    return HetznerApiTokenFactory(owner_id=owner_id, token_value=encrypt_token(session, token, owner_id))


@pytest.fixture
def client_factory():
    factory = Mock()
    factory.return_value = Mock(spec=HetznerClient)
    return factory


@pytest.fixture
def credential_service(db_session, client_factory):
    return CredentialService(db_session, client_factory=client_factory)


class TestResolveToken:
    """Test the resolution order."""

    def test_stored_token(self, db_session, credential_service, identity):
        """Test the identity's own stored token is used."""
        store_token_for(db_session, "instance-a", "stored-token-a")

        assert credential_service.resolve_token(identity) == "stored-token-a"

    def test_nothing_configured(self, credential_service, identity):
        """Test the configuration error when no token exists."""
        with pytest.raises(ConfigurationError) as exc_info:
            credential_service.resolve_token(identity)

        assert exc_info.value.message == (
            "Hetzner API token not configured. Please configure it in the extension settings."
        )

    def test_other_owners_token_is_not_used(self, db_session, credential_service, other_identity):
        """Test resolution is scoped to the identity."""
        store_token_for(db_session, "instance-a", "stored-token-a")

        with pytest.raises(ConfigurationError):
            credential_service.resolve_token(other_identity)

    def test_unscoped_override_wins(self, db_session, credential_service, identity, app_config):
        """Test the blanket override shadows the stored token and warns."""
        app_config.hetzner.token_override = "env-token"
        store_token_for(db_session, "instance-a", "stored-token-a")

        with patch.object(credential_service.logger, "warning") as warning:
            assert credential_service.resolve_token(identity) == "env-token"

        warning.assert_called_once()
        assert warning.call_args.kwargs["extra"]["owner_id"] == "instance-a"

    def test_unscoped_override_without_stored_token(self, credential_service, identity, app_config):
        """Test the override works for identities with nothing stored, without warning."""
        app_config.hetzner.token_override = "  env-token  "

        with patch.object(credential_service.logger, "warning") as warning:
            assert credential_service.resolve_token(identity) == "env-token"

        warning.assert_not_called()

    def test_scoped_override(self, db_session, credential_service, identity, other_identity, app_config):
        """Test a scoped override only applies to listed instances."""
        app_config.hetzner.token_override = "env-token"
        app_config.hetzner.token_override_scope = ["instance-b"]
        store_token_for(db_session, "instance-a", "stored-token-a")

        assert credential_service.resolve_token(identity) == "stored-token-a"
        assert credential_service.resolve_token(other_identity) == "env-token"

    def test_token_never_logged(self, db_session, credential_service, identity):
        """Test only length and prefix of the token reach the logs."""
        store_token_for(db_session, "instance-a", "stored-token-a-very-secret")

        with patch.object(credential_service.logger, "info") as info:
            credential_service.resolve_token(identity)

        logged = str(info.call_args_list)
        assert "stored-token-a-very-secret" not in logged
        assert "token_length" in logged

    def test_get_client_uses_resolved_token(self, db_session, credential_service, client_factory, identity):
        """Test clients are built from the resolved token."""
        store_token_for(db_session, "instance-a", "stored-token-a")

        client = credential_service.get_client(identity)

        client_factory.assert_called_once_with("stored-token-a")
        assert client is client_factory.return_value

    def test_close_clients(self, credential_service, client_factory, identity, app_config):
        """Test every handed-out client is closed once."""
        app_config.hetzner.token_override = "env-token"
        client = credential_service.get_client(identity)

        credential_service.close_clients()
        credential_service.close_clients()

        client.close.assert_called_once_with()


class TestTokenStatus:
    """Test get_token_status."""

    def test_no_token(self, credential_service, identity):
        """Test the status without any token."""
        status = credential_service.get_token_status(identity)

        assert status.has_token is False
        assert status.source is TokenSource.NONE

    def test_stored_token(self, db_session, credential_service, identity):
        """Test the status of a stored token."""
        store_token_for(db_session, "instance-a", "stored-token-a")

        status = credential_service.get_token_status(identity)

        assert status.has_token is True
        assert status.source is TokenSource.DATABASE
        assert status.configured_at is not None
        assert "stored-token-a" not in status.model_dump_json()

    def test_environment_token(self, credential_service, identity, app_config):
        """Test the status with an applicable override."""
        app_config.hetzner.token_override = "env-token"

        status = credential_service.get_token_status(identity)

        assert status.has_token is True
        assert status.source is TokenSource.ENVIRONMENT


class TestStoreUnavailable:
    """Test token reads when the credential table cannot be queried."""

    @pytest.fixture
    def missing_table(self, db_session):
        HetznerApiToken.__table__.drop(db_session.get_bind())

    def test_resolve_token(self, credential_service, identity, missing_table):
        """Test resolution surfaces a persistence error instead of a driver error."""
        with pytest.raises(PersistenceError) as exc_info:
            credential_service.resolve_token(identity)

        assert exc_info.value.status_code == 500
        assert exc_info.value.context["operation"] == "get_stored_token"
        assert exc_info.value.context["record_id"] == "instance-a"

    def test_token_status(self, credential_service, identity, missing_table):
        """Test the status read surfaces a persistence error."""
        with pytest.raises(PersistenceError):
            credential_service.get_token_status(identity)


class TestStoreToken:
    """Test store_token and delete_token."""

    def test_validates_then_stores_encrypted(self, db_session, credential_service, client_factory, identity):
        """Test the token is checked upstream and stored encrypted."""
        status = credential_service.store_token(identity, SetApiTokenInput(api_token="new-token"))

        client_factory.assert_called_once_with("new-token")
        client_factory.return_value.list_servers.assert_called_once()
        client_factory.return_value.close.assert_called_once_with()
        assert status.source is TokenSource.DATABASE

        record = get_record(db_session, HetznerApiToken, {}, owner_id="instance-a")
        assert "new-token" not in str(record.token_value)
        assert decrypt_token(db_session, record.token_value, "instance-a") == "new-token"

    def test_store_replaces_existing(self, db_session, credential_service, identity):
        """Test storing twice keeps one row."""
        credential_service.store_token(identity, SetApiTokenInput(api_token="first-token"))
        credential_service.store_token(identity, SetApiTokenInput(api_token="second-token"))

        assert count_records(db_session, HetznerApiToken, owner_id="instance-a") == 1
        assert credential_service.resolve_token(identity) == "second-token"

    def test_rejected_token(self, db_session, credential_service, client_factory, identity):
        """Test an upstream rejection becomes a validation error and nothing is stored."""
        client_factory.return_value.list_servers.side_effect = UpstreamError(
            401, "unauthorized", "unable to authenticate"
        )

        with pytest.raises(ValidationError) as exc_info:
            credential_service.store_token(identity, SetApiTokenInput(api_token="bad-token"))

        assert exc_info.value.message == "Invalid API token: unable to authenticate"
        assert exc_info.value.violations[0]["field"] == "apiToken"
        assert count_records(db_session, HetznerApiToken) == 0
        client_factory.return_value.close.assert_called_once_with()

    def test_upstream_unavailable(self, db_session, credential_service, client_factory, identity):
        """Test transient upstream failures propagate unchanged."""
        client_factory.return_value.list_servers.side_effect = UpstreamError(None, "network_error", "down")

        with pytest.raises(UpstreamError):
            credential_service.store_token(identity, SetApiTokenInput(api_token="good-token"))

        assert count_records(db_session, HetznerApiToken) == 0

    def test_validation_can_be_disabled(self, credential_service, client_factory, identity, app_config):
        """Test storing without the upstream check."""
        app_config.hetzner.validate_token_on_store = False

        credential_service.store_token(identity, SetApiTokenInput(api_token="new-token"))

        client_factory.assert_not_called()

    def test_delete_token(self, db_session, credential_service, identity, other_identity):
        """Test deleting only touches the identity's own token."""
        store_token_for(db_session, "instance-a", "token-a")
        store_token_for(db_session, "instance-b", "token-b")

        assert credential_service.delete_token(identity) is True
        assert credential_service.delete_token(identity) is False
        assert credential_service.resolve_token(other_identity) == "token-b"

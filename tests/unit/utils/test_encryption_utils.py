"""
Unit tests for encryption utilities.

SQLite exercises the AES-GCM path; the PostgreSQL pgcrypto path is tested
with a mocked session.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from hetzner_console_core.config import get_config
from hetzner_console_core.exceptions import ConfigurationError, PersistenceError
from hetzner_console_core.utils.encryption_utils import (
    decrypt_token,
    decrypt_value,
    encrypt_token,
    encrypt_value,
)


class TestEncryptValueSQLite:
    """Test encrypt_value/decrypt_value with SQLite."""

    def test_round_trip(self, db_session: Session):
        """Test a value decrypts to itself for the same owner."""
        encrypted = encrypt_value(db_session, "secret-value", "instance-a")

        assert isinstance(encrypted, bytes)
        assert b"secret-value" not in encrypted
        assert decrypt_value(db_session, encrypted, "instance-a") == "secret-value"

    def test_decrypt_accepts_text(self, db_session: Session):
        """Test ciphertext read back from a Text column decrypts."""
        encrypted = encrypt_value(db_session, "secret-value", "instance-a")
        assert decrypt_value(db_session, encrypted.decode("ascii"), "instance-a") == "secret-value"

    def test_fresh_salt_per_encryption(self, db_session: Session):
        """Test the same value never encrypts to the same ciphertext."""
        first = encrypt_value(db_session, "secret-value", "instance-a")
        second = encrypt_value(db_session, "secret-value", "instance-a")
        assert first != second

    def test_unicode_value(self, db_session: Session):
        """Test unicode values survive the round trip."""
        value = "unicode_üîê_secret"
        encrypted = encrypt_value(db_session, value, "instance-a")
        assert decrypt_value(db_session, encrypted, "instance-a") == value

    def test_other_owner_cannot_decrypt(self, db_session: Session):
        """Test one owner's ciphertext is useless under another owner's key."""
        encrypted = encrypt_value(db_session, "secret-value", "instance-a")

        with pytest.raises(PersistenceError):
            decrypt_value(db_session, encrypted, "instance-b")

    def test_key_suffix_isolates_values(self, db_session: Session):
        """Test a different key suffix cannot decrypt."""
        encrypted = encrypt_value(db_session, "secret-value", "instance-a", "token_hetzner")

        with pytest.raises(PersistenceError):
            decrypt_value(db_session, encrypted, "instance-a", "token_other")

    def test_decrypt_empty_returns_none(self, db_session: Session):
        """Test missing ciphertext decrypts to None."""
        assert decrypt_value(db_session, None, "instance-a") is None
        assert decrypt_value(db_session, b"", "instance-a") is None

    def test_missing_master_key(self, db_session: Session):
        """Test encryption without ENCRYPTION_KEY is a configuration error."""
        get_config().security.encryption_key = None

        with pytest.raises(ConfigurationError) as exc_info:
            encrypt_value(db_session, "secret-value", "instance-a")

        assert exc_info.value.context["setting"] == "ENCRYPTION_KEY"


class TestTokenEncryption:
    """Test the token helpers."""

    def test_token_round_trip(self, db_session: Session):
        """Test encrypt_token/decrypt_token."""
        encrypted = encrypt_token(db_session, "hz-token-123", "instance-a")
        assert decrypt_token(db_session, encrypted, "instance-a") == "hz-token-123"

    def test_provider_is_part_of_the_key(self, db_session: Session):
        """Test tokens of one provider cannot be read as another's."""
        encrypted = encrypt_token(db_session, "hz-token-123", "instance-a", api_provider="hetzner")

        with pytest.raises(PersistenceError):
            decrypt_token(db_session, encrypted, "instance-a", api_provider="other")


class TestPostgresEncryption:
    """Test the pgcrypto path with a mocked session."""

    def _postgres_session(self, scalar_result):
        session = MagicMock()
        session.bind.dialect.name = "postgresql"
        session.execute.return_value.scalar.return_value = scalar_result
        return session

    def test_encrypt_uses_pgp_sym_encrypt(self):
        """Test encryption is delegated to pgcrypto with owner-specific key material."""
        session = self._postgres_session(b"\xc3\x0d encrypted")

        result = encrypt_value(session, "secret-value", "instance-a", "token_hetzner")

        assert result == b"\xc3\x0d encrypted"
        statement, params = session.execute.call_args.args
        assert "pgp_sym_encrypt" in str(statement)
        assert params["data"] == "secret-value"
        assert params["key"] == "test-master-encryption-key:instance-a:token_hetzner"

    def test_decrypt_uses_pgp_sym_decrypt(self):
        """Test decryption is delegated to pgcrypto."""
        session = self._postgres_session("secret-value")

        result = decrypt_value(session, b"\xc3\x0d encrypted", "instance-a")

        assert result == "secret-value"
        statement, params = session.execute.call_args.args
        assert "pgp_sym_decrypt" in str(statement)
        assert params["key"] == "test-master-encryption-key:instance-a"

    def test_pgcrypto_failure_on_encrypt(self):
        """Test a failing pgcrypto call surfaces as a persistence error."""
        session = self._postgres_session(None)
        session.execute.side_effect = OperationalError("SELECT pgp_sym_encrypt", {}, Exception("no pgcrypto"))

        with pytest.raises(PersistenceError) as exc_info:
            encrypt_value(session, "secret-value", "instance-a")

        assert exc_info.value.context["owner_id"] == "instance-a"
        assert isinstance(exc_info.value.cause, OperationalError)

    def test_pgcrypto_failure_on_decrypt(self):
        """Test a failing pgp_sym_decrypt surfaces as a persistence error."""
        session = self._postgres_session(None)
        session.execute.side_effect = OperationalError("SELECT pgp_sym_decrypt", {}, Exception("wrong key"))

        with pytest.raises(PersistenceError):
            decrypt_value(session, b"\xc3\x0d encrypted", "instance-a")

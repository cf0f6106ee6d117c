"""
Encryption utilities for API token storage.

Handles cross-database encryption: PostgreSQL uses pgcrypto, every other
dialect uses AES-256-GCM with a PBKDF2 key derived per owner. Both derive
their key from the configured master key and the owner id, so one owner's
ciphertext is useless under another owner's key.
"""

import base64
import os
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_config
from ..exceptions import ConfigurationError, PersistenceError

_SALT_BYTES = 16
_NONCE_BYTES = 12


def _master_key() -> str:
    key = get_config().security.encryption_key
    if not key:
        raise ConfigurationError(
            "Encryption key not configured. Set ENCRYPTION_KEY to store API tokens.",
            setting="ENCRYPTION_KEY",
        )
    return key


def _key_material(owner_id: str, key_suffix: str) -> str:
    material = f"{_master_key()}:{owner_id}"
    return f"{material}:{key_suffix}" if key_suffix else material


def _derive_key(material: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=get_config().security.kdf_iterations,
    )
    return kdf.derive(material.encode("utf-8"))


def encrypt_value(session: Session, value: str, owner_id: str, key_suffix: str = "") -> bytes:
    """
    Encrypt a value using database-specific encryption.

    Args:
        session: Database session
        value: Value to encrypt
        owner_id: Owner ID for key isolation
        key_suffix: Additional key suffix for different data types

    Returns:
        Encrypted bytes (base64 text for non-PostgreSQL dialects)
    """
    material = _key_material(owner_id, key_suffix)

    if session.bind.dialect.name == "postgresql":
        try:
            return session.execute(
                text("SELECT pgp_sym_encrypt(:data, :key)"), {"data": value, "key": material}
            ).scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to encrypt value", cause=e, owner_id=owner_id)

    salt = os.urandom(_SALT_BYTES)
    nonce = os.urandom(_NONCE_BYTES)
    ciphertext = AESGCM(_derive_key(material, salt)).encrypt(nonce, value.encode("utf-8"), None)
    return base64.b64encode(salt + nonce + ciphertext)


def decrypt_value(
    session: Session,
    encrypted_value: Optional[Union[bytes, str]],
    owner_id: str,
    key_suffix: str = "",
) -> Optional[str]:
    """
    Decrypt a value using database-specific decryption.

    Args:
        session: Database session
        encrypted_value: Stored ciphertext
        owner_id: Owner ID for key isolation
        key_suffix: Additional key suffix for different data types

    Returns:
        Decrypted string or None

    Raises:
        PersistenceError: If the ciphertext cannot be decrypted with this owner's key
    """
    if not encrypted_value:
        return None

    material = _key_material(owner_id, key_suffix)

    if session.bind.dialect.name == "postgresql":
        try:
            return session.execute(
                text("SELECT pgp_sym_decrypt(:data, :key)"),
                {"data": encrypted_value, "key": material},
            ).scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to decrypt stored value", cause=e, owner_id=owner_id)

    if isinstance(encrypted_value, str):
        encrypted_value = encrypted_value.encode("ascii")

    try:
        data = base64.b64decode(encrypted_value)
        salt = data[:_SALT_BYTES]
        nonce = data[_SALT_BYTES : _SALT_BYTES + _NONCE_BYTES]
        ciphertext = data[_SALT_BYTES + _NONCE_BYTES :]
        plaintext = AESGCM(_derive_key(material, salt)).decrypt(nonce, ciphertext, None)
    except (InvalidTag, ValueError) as e:
        raise PersistenceError("Failed to decrypt stored value", cause=e, owner_id=owner_id)

    return plaintext.decode("utf-8")


def encrypt_token(session: Session, token: str, owner_id: str, api_provider: str = "hetzner") -> bytes:
    """Encrypt an API token with owner and provider isolation."""
    return encrypt_value(session, token, owner_id, f"token_{api_provider}")


def decrypt_token(
    session: Session,
    encrypted: Optional[Union[bytes, str]],
    owner_id: str,
    api_provider: str = "hetzner",
) -> Optional[str]:
    """Decrypt an API token."""
    return decrypt_value(session, encrypted, owner_id, f"token_{api_provider}")

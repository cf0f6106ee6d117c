"""Utility modules for the Hetzner console core."""

# Generic CRUD helpers
from .crud_helpers import (
    count_records,
    create_record,
    delete_record,
    delete_records,
    get_record,
    get_record_by_id,
    list_records,
    record_exists,
    update_record,
    upsert_record,
)

# Encryption utilities
from .encryption_utils import (
    decrypt_token,
    decrypt_value,
    encrypt_token,
    encrypt_value,
)

# Hostname utilities
from .hostname_utils import is_valid_hostname, normalize_hostname

# Logging utilities
from .logger import (
    ContextAwareLogger,
    IdentityContextFilter,
    configure_logging,
    get_logger,
    mask_token,
)

__all__ = [
    # Encryption utilities
    "encrypt_value",
    "decrypt_value",
    "encrypt_token",
    "decrypt_token",
    # Hostname utilities
    "normalize_hostname",
    "is_valid_hostname",
    # Logging utilities
    "ContextAwareLogger",
    "IdentityContextFilter",
    "configure_logging",
    "get_logger",
    "mask_token",
    # Generic CRUD helpers
    "create_record",
    "get_record",
    "get_record_by_id",
    "update_record",
    "upsert_record",
    "delete_record",
    "delete_records",
    "list_records",
    "count_records",
    "record_exists",
]

"""
Processing module for the verified action pipeline.

This module provides the server state rules and input validation. The
pipeline and the operation dispatcher build on the services and are
imported from their own modules:

    from hetzner_console_core.processing.operations import ConsoleOperations
"""

from .input_validation import validate_input
from .server_state import (
    allowed_actions,
    ensure_action_allowed,
    ensure_running,
    expected_status_after,
    is_action_allowed,
)

__all__ = [
    "validate_input",
    "allowed_actions",
    "ensure_action_allowed",
    "ensure_running",
    "expected_status_after",
    "is_action_allowed",
]

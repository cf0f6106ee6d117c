"""Identity handling for request scoping and log enrichment."""

from .identity import Identity, IdentityContext, identity_log_scope
from .operation_context import OperationContext, OperationHandler, operation

__all__ = [
    "Identity",
    "IdentityContext",
    "identity_log_scope",
    "OperationContext",
    "OperationHandler",
    "operation",
]

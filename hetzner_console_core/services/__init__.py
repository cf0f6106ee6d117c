"""Services implementing the console operations."""

from .base_service import SessionManagedService
from .cost_service import CostService, estimate_monthly_cost
from .credential_service import CredentialService
from .resource_service import ResourceService
from .server_service import ServerService
from .session_verifier import SessionVerifier

__all__ = [
    "SessionManagedService",
    "CostService",
    "estimate_monthly_cost",
    "CredentialService",
    "ResourceService",
    "ServerService",
    "SessionVerifier",
]

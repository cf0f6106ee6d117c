"""
Verified identity and log context for the console core.

Every service method takes an ``Identity`` as an explicit argument; the
thread-local ``IdentityContext`` below only exists so that log records
emitted while handling a request carry the owner and user ids. It is never
consulted for authorization or data scoping.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.logger import get_logger


class Identity(BaseModel):
    """The verified extension instance, user and context of one request."""

    extension_instance_id: str = Field(min_length=1)
    extension_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    context_id: str = Field(min_length=1)
    project_id: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def owner_id(self) -> str:
        """Scoping key for everything persisted on behalf of this identity."""
        return self.extension_instance_id


class IdentityContext:
    """
    Carries the identity of the request being handled on this thread.

    Used by the logging filter only.
    """

    _thread_local = threading.local()
    _logger = get_logger()

    @classmethod
    def set_current_identity(cls, identity: Identity) -> None:
        cls._thread_local.identity = identity
        cls._logger.debug(f"Log context set to owner: {identity.owner_id}")

    @classmethod
    def get_current_identity(cls) -> Optional[Identity]:
        return getattr(cls._thread_local, "identity", None)

    @classmethod
    def clear_current_identity(cls) -> None:
        if hasattr(cls._thread_local, "identity"):
            delattr(cls._thread_local, "identity")


@contextmanager
def identity_log_scope(identity: Identity) -> Generator[Identity, None, None]:
    """
    Attach an identity to log records for the duration of the block.

    Args:
        identity: Verified identity of the current request

    Yields:
        The same identity, for convenience
    """
    previous = IdentityContext.get_current_identity()
    IdentityContext.set_current_identity(identity)
    try:
        yield identity
    finally:
        if previous is not None:
            IdentityContext.set_current_identity(previous)
        else:
            IdentityContext.clear_current_identity()

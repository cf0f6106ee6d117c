"""
API token model.

One encrypted Hetzner API token per extension instance.
"""

from sqlalchemy import Column, Index, String

from .db_base import EncryptedBinary, TimestampMixin, UUIDMixin
from .db_config import Base


class HetznerApiToken(Base, UUIDMixin, TimestampMixin):
    """Encrypted API token of one extension instance."""

    __tablename__ = "hetzner_api_tokens"

    owner_id = Column(String(255), nullable=False)
    token_value = Column(EncryptedBinary, nullable=False)

    __table_args__ = (Index("ix_hetzner_api_tokens_owner", "owner_id", unique=True),)

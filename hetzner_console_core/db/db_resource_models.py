"""
Local metadata attached to upstream resources: ownership tags and notes.
"""

from sqlalchemy import Column, DateTime, Index, String, Text

from .db_base import JSON, TimestampMixin, UUIDMixin, utc_now
from .db_config import Base


class ResourceAssignment(Base, UUIDMixin, TimestampMixin):
    """Links an upstream resource to a tenant project/customer and tags it."""

    __tablename__ = "hetzner_resource_assignments"

    owner_id = Column(String(255), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(100), nullable=False)
    resource_name = Column(String(255), nullable=True)
    tenant_project_id = Column(String(255), nullable=True)
    tenant_customer_id = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index(
            "ix_resource_assignment_lookup",
            "owner_id",
            "resource_type",
            "resource_id",
            unique=True,
        ),
        Index("ix_resource_assignment_project", "owner_id", "tenant_project_id"),
    )


class ResourceNote(Base, UUIDMixin):
    """Free-text note on an upstream resource. Notes are never edited."""

    __tablename__ = "hetzner_resource_notes"

    owner_id = Column(String(255), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(100), nullable=False)
    note = Column(Text, nullable=False)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_resource_note_lookup", "owner_id", "resource_type", "resource_id"),
    )

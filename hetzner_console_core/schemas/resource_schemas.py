"""
Result schemas of the console operations.

These wrap the upstream views with the locally stored assignment and
note data, and describe the acknowledgements of write operations.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ResourceType, ServerStatus, TokenSource
from .cost_schemas import MonthlyCost
from .hetzner_schemas import Action, FloatingIp, Pricing, Server, Volume


class ApiTokenStatus(BaseModel):
    """Whether an API token is configured; never contains the token itself."""

    has_token: bool
    source: TokenSource
    configured_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssignmentSummary(BaseModel):
    """Assignment data shown next to a resource."""

    resource_name: Optional[str] = None
    tenant_project_id: Optional[str] = None
    tenant_customer_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class AssignmentRead(AssignmentSummary):
    id: str
    resource_type: ResourceType
    resource_id: str
    created_at: datetime
    updated_at: datetime


class NoteRead(BaseModel):
    id: str
    resource_type: ResourceType
    resource_id: str
    note: str
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ServerListItem(BaseModel):
    server: Server
    assignment: Optional[AssignmentSummary] = None


class ServerList(BaseModel):
    servers: List[ServerListItem] = Field(default_factory=list)


class ServerDetail(BaseModel):
    server: Server
    assignment: Optional[AssignmentSummary] = None
    notes: List[NoteRead] = Field(default_factory=list)


class VolumeListItem(BaseModel):
    volume: Volume
    assignment: Optional[AssignmentSummary] = None


class FloatingIpListItem(BaseModel):
    floating_ip: FloatingIp
    assignment: Optional[AssignmentSummary] = None


class ResourceOverview(BaseModel):
    """Everything the dashboard shows: resources, assignments, prices and the estimate."""

    servers: List[ServerListItem] = Field(default_factory=list)
    volumes: List[VolumeListItem] = Field(default_factory=list)
    floating_ips: List[FloatingIpListItem] = Field(default_factory=list)
    pricing: Pricing
    cost: MonthlyCost


class DeleteServerResult(BaseModel):
    action: Optional[Action] = None
    success: bool = True
    cleanup_complete: bool = Field(
        default=True, description="False if local assignment or note cleanup failed"
    )


class ServerActionResult(BaseModel):
    action: Action
    server_id: int
    previous_status: ServerStatus
    expected_status: ServerStatus


class OperationAck(BaseModel):
    success: bool = True
    message: Optional[str] = None

"""Pydantic schemas for operation inputs, upstream views and results."""

from .action_schemas import (
    AssignResourceInput,
    CreateNoteInput,
    CreateServerInput,
    DeleteNoteInput,
    EmptyInput,
    ServerActionInput,
    ServerIdInput,
    ServerMetricsInput,
    SetApiTokenInput,
    UnassignResourceInput,
)
from .cost_schemas import CostLineItem, MonthlyCost
from .hetzner_schemas import (
    Action,
    CreateServerResponse,
    Datacenter,
    FloatingIp,
    Image,
    Location,
    Pricing,
    ResetPasswordResponse,
    Server,
    ServerMetrics,
    ServerType,
    Volume,
)
from .resource_schemas import (
    ApiTokenStatus,
    AssignmentRead,
    AssignmentSummary,
    DeleteServerResult,
    FloatingIpListItem,
    NoteRead,
    OperationAck,
    ResourceOverview,
    ServerActionResult,
    ServerDetail,
    ServerList,
    ServerListItem,
    VolumeListItem,
)

__all__ = [
    # Inputs
    "AssignResourceInput",
    "CreateNoteInput",
    "CreateServerInput",
    "DeleteNoteInput",
    "EmptyInput",
    "ServerActionInput",
    "ServerIdInput",
    "ServerMetricsInput",
    "SetApiTokenInput",
    "UnassignResourceInput",
    # Upstream views
    "Action",
    "CreateServerResponse",
    "Datacenter",
    "FloatingIp",
    "Image",
    "Location",
    "Pricing",
    "ResetPasswordResponse",
    "Server",
    "ServerMetrics",
    "ServerType",
    "Volume",
    # Cost
    "CostLineItem",
    "MonthlyCost",
    # Results
    "ApiTokenStatus",
    "AssignmentRead",
    "AssignmentSummary",
    "DeleteServerResult",
    "FloatingIpListItem",
    "NoteRead",
    "OperationAck",
    "ResourceOverview",
    "ServerActionResult",
    "ServerDetail",
    "ServerList",
    "ServerListItem",
    "VolumeListItem",
]

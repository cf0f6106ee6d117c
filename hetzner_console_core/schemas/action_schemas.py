"""
Pydantic input models, one per console operation.

Each model is closed (unknown fields are rejected) and accepts the
camelCase names the UI sends as well as the snake_case field names.
Everything downstream of ``validate_input`` works with these models only.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import (
    DEFAULT_METRICS_WINDOW_HOURS,
    MAX_USER_DATA_BYTES,
    MetricType,
    ResourceType,
    ServerAction,
)
from ..utils.hostname_utils import is_valid_hostname, normalize_hostname


def coerce_positive_id(value: Any) -> int:
    """Accept a positive integer given as int or numeric string."""
    if isinstance(value, bool):
        raise ValueError("Expected a numeric id, got a boolean")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("Expected a whole number")
        value = int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdigit():
            raise ValueError("Expected a numeric id")
        value = int(stripped)
    if not isinstance(value, int):
        raise ValueError("Expected a numeric id")
    if value <= 0:
        raise ValueError("Id must be a positive number")
    return value


class BaseInputSchema(BaseModel):
    """Base schema for all operation inputs."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
    )


class ServerIdInput(BaseInputSchema):
    server_id: int = Field(alias="serverId")

    @field_validator("server_id", mode="before")
    @classmethod
    def validate_server_id(cls, v):
        return coerce_positive_id(v)


class ServerActionInput(ServerIdInput):
    action: ServerAction


class FirewallRef(BaseInputSchema):
    firewall: int = Field(gt=0)


class PublicNetInput(BaseInputSchema):
    enable_ipv4: Optional[bool] = None
    enable_ipv6: Optional[bool] = None
    ipv4: Optional[int] = None
    ipv6: Optional[int] = None


class CreateServerInput(BaseInputSchema):
    """Request body for ``POST /servers``."""

    name: str
    server_type: str = Field(min_length=1)
    # Name or id; passed through unchanged
    image: str = Field(min_length=1)
    location: Optional[str] = None
    datacenter: Optional[str] = None
    start_after_create: bool = True
    ssh_keys: Optional[List[Union[int, str]]] = None
    volumes: Optional[List[int]] = None
    networks: Optional[List[int]] = None
    firewalls: Optional[List[FirewallRef]] = None
    placement_group: Optional[int] = None
    user_data: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    automount: Optional[bool] = None
    public_net: Optional[PublicNetInput] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        if not isinstance(v, str):
            raise ValueError("Server name must be a string")
        normalized = normalize_hostname(v)
        if not is_valid_hostname(normalized):
            raise ValueError("Must be a valid hostname (RFC 1123, at most 63 characters)")
        return normalized

    @field_validator("location", "datacenter")
    @classmethod
    def empty_to_none(cls, v):
        return v or None

    @field_validator("user_data")
    @classmethod
    def validate_user_data_size(cls, v):
        if v is not None and len(v.encode("utf-8")) > MAX_USER_DATA_BYTES:
            raise ValueError(f"user_data exceeds {MAX_USER_DATA_BYTES} bytes")
        return v

    @model_validator(mode="after")
    def validate_placement(self):
        if self.location and self.datacenter:
            raise ValueError("Cannot specify both location and datacenter")
        if not self.location and not self.datacenter:
            raise ValueError("Either location or datacenter is required")
        return self

    def to_request_body(self) -> Dict[str, Any]:
        """Body for the upstream create call, without unset optional fields."""
        return self.model_dump(exclude_none=True)


class ServerMetricsInput(ServerIdInput):
    """
    Metrics query for one server.

    ``end`` defaults to now and ``start`` to the default window before
    ``end``. Naive timestamps are taken as UTC.
    """

    type: MetricType = MetricType.ALL
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    step: Optional[int] = Field(default=None, gt=0)

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def apply_window(self):
        end = self.end or datetime.now(timezone.utc)
        start = self.start or end - timedelta(hours=DEFAULT_METRICS_WINDOW_HOURS)
        if start >= end:
            raise ValueError("start must be before end")
        self.start = start
        self.end = end
        return self

    def to_query_params(self) -> Dict[str, str]:
        params = {
            "type": self.type.value,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }
        if self.step is not None:
            params["step"] = str(self.step)
        return params


class ResourceRefInput(BaseInputSchema):
    resource_type: ResourceType = Field(alias="resourceType")
    resource_id: str = Field(alias="resourceId", min_length=1)

    @field_validator("resource_id", mode="before")
    @classmethod
    def stringify_resource_id(cls, v):
        # Upstream ids are numeric; they are stored as strings
        if isinstance(v, bool):
            raise ValueError("Expected a resource id, got a boolean")
        if isinstance(v, int):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v


class AssignResourceInput(ResourceRefInput):
    resource_name: Optional[str] = Field(default=None, alias="resourceName")
    tenant_project_id: Optional[str] = Field(default=None, alias="tenantProjectId")
    tenant_customer_id: Optional[str] = Field(default=None, alias="tenantCustomerId")
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return [tag.strip() for tag in v if tag.strip()]


class UnassignResourceInput(ResourceRefInput):
    pass


class CreateNoteInput(ResourceRefInput):
    note: str = Field(min_length=1)

    @field_validator("note")
    @classmethod
    def validate_note(cls, v):
        if not v.strip():
            raise ValueError("Note cannot be empty")
        return v


class DeleteNoteInput(BaseInputSchema):
    note_id: str = Field(alias="noteId", min_length=1)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_id(cls, data):
        if isinstance(data, (str, int)) and not isinstance(data, bool):
            return {"noteId": str(data)}
        return data


class SetApiTokenInput(BaseInputSchema):
    api_token: str = Field(alias="apiToken", min_length=1, repr=False)

    @field_validator("api_token", mode="before")
    @classmethod
    def strip_token(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class EmptyInput(BaseInputSchema):
    """Input of operations that take no arguments."""

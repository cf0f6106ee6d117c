"""
Pydantic views of Hetzner Cloud API responses.

Only the fields the console reads are declared. Unknown fields are ignored
so additive upstream changes do not break parsing; a missing or mistyped
declared field fails validation and surfaces as a SchemaError.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ServerStatus


class HetznerModel(BaseModel):
    """Base for upstream views."""

    model_config = ConfigDict(extra="ignore")


class Price(HetznerModel):
    """Amount in the catalog currency; upstream sends decimal strings."""

    gross: Decimal
    net: Decimal


class LocationPrice(HetznerModel):
    """Price of a server type in one location."""

    location: str
    price_hourly: Optional[Price] = None
    price_monthly: Price


class Location(HetznerModel):
    id: int
    name: str
    description: str = ""
    country: str = ""
    city: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    network_zone: Optional[str] = None


class Datacenter(HetznerModel):
    id: int
    name: str
    description: str = ""
    location: Location


class ServerType(HetznerModel):
    id: int
    name: str
    description: str = ""
    cores: int
    memory: float
    disk: int
    prices: List[LocationPrice] = Field(default_factory=list)
    architecture: Optional[str] = None
    cpu_type: Optional[str] = None
    deprecated: Optional[bool] = None


class Protection(HetznerModel):
    delete: bool = False
    rebuild: Optional[bool] = None


class IPv4(HetznerModel):
    ip: str
    blocked: bool = False
    dns_ptr: Optional[str] = None


class DnsPtr(HetznerModel):
    ip: str
    dns_ptr: str


class IPv6(HetznerModel):
    ip: str
    blocked: bool = False
    dns_ptr: Optional[List[DnsPtr]] = None


class PublicNet(HetznerModel):
    ipv4: Optional[IPv4] = None
    ipv6: Optional[IPv6] = None
    floating_ips: List[int] = Field(default_factory=list)


class PrivateNet(HetznerModel):
    network: int
    ip: str
    mac_address: Optional[str] = None


class Image(HetznerModel):
    id: int
    type: str
    status: str
    name: Optional[str] = None
    description: Optional[str] = None
    image_size: Optional[float] = None
    disk_size: Optional[float] = None
    created: Optional[str] = None
    os_flavor: Optional[str] = None
    os_version: Optional[str] = None
    architecture: Optional[str] = None
    rapid_deploy: Optional[bool] = None
    deprecated: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)


class Server(HetznerModel):
    id: int
    name: str
    status: ServerStatus
    created: str
    public_net: PublicNet
    private_net: List[PrivateNet] = Field(default_factory=list)
    server_type: ServerType
    datacenter: Datacenter
    image: Optional[Image] = None
    backup_window: Optional[str] = None
    rescue_enabled: bool = False
    locked: bool = False
    protection: Protection = Field(default_factory=Protection)
    labels: Dict[str, str] = Field(default_factory=dict)
    volumes: List[int] = Field(default_factory=list)
    primary_disk_size: Optional[int] = None


class ActionResource(HetznerModel):
    id: int
    type: str


class ActionError(HetznerModel):
    code: str
    message: str


class Action(HetznerModel):
    id: int
    command: str
    status: str
    progress: int = 0
    started: str
    finished: Optional[str] = None
    resources: List[ActionResource] = Field(default_factory=list)
    error: Optional[ActionError] = None


class Volume(HetznerModel):
    id: int
    name: str
    created: str
    server: Optional[int] = None
    location: Location
    size: int
    linux_device: Optional[str] = None
    protection: Protection = Field(default_factory=Protection)
    labels: Dict[str, str] = Field(default_factory=dict)
    status: str
    format: Optional[str] = None


class FloatingIp(HetznerModel):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None
    ip: str
    type: str
    server: Optional[int] = None
    dns_ptr: List[DnsPtr] = Field(default_factory=list)
    home_location: Location
    blocked: bool = False
    protection: Protection = Field(default_factory=Protection)
    labels: Dict[str, str] = Field(default_factory=dict)
    created: str


class PricePerGbMonth(HetznerModel):
    price_per_gb_month: Price


class FlatMonthlyPrice(HetznerModel):
    price_monthly: Price


class PricingServerType(HetznerModel):
    id: int
    name: str
    prices: List[LocationPrice] = Field(default_factory=list)


class Pricing(HetznerModel):
    """Price catalog of the account (``GET /pricing``)."""

    currency: str
    vat_rate: str
    image: Optional[PricePerGbMonth] = None
    floating_ip: FlatMonthlyPrice
    server_types: List[PricingServerType] = Field(default_factory=list)
    volume: PricePerGbMonth


class Pagination(HetznerModel):
    page: int
    per_page: int
    previous_page: Optional[int] = None
    next_page: Optional[int] = None
    last_page: Optional[int] = None
    total_entries: Optional[int] = None


class Meta(HetznerModel):
    pagination: Optional[Pagination] = None


class MetricsTimeSeries(HetznerModel):
    # Each value is [unix_timestamp, "value"]
    values: List[List[Union[float, str]]]


class ServerMetrics(HetznerModel):
    start: str
    end: str
    step: float
    time_series: Dict[str, MetricsTimeSeries]


# Response envelopes


class ServerResponse(HetznerModel):
    server: Server


class ServersResponse(HetznerModel):
    servers: List[Server]
    meta: Optional[Meta] = None


class ActionResponse(HetznerModel):
    action: Action


class CreateServerResponse(HetznerModel):
    server: Server
    action: Action
    next_actions: List[Action] = Field(default_factory=list)
    root_password: Optional[str] = None


class ResetPasswordResponse(HetznerModel):
    action: Action
    root_password: str


class ServerMetricsResponse(HetznerModel):
    metrics: ServerMetrics


class VolumesResponse(HetznerModel):
    volumes: List[Volume]
    meta: Optional[Meta] = None


class FloatingIpsResponse(HetznerModel):
    floating_ips: List[FloatingIp]
    meta: Optional[Meta] = None


class PricingResponse(HetznerModel):
    pricing: Pricing


class ImagesResponse(HetznerModel):
    images: List[Image]
    meta: Optional[Meta] = None


class LocationsResponse(HetznerModel):
    locations: List[Location]
    meta: Optional[Meta] = None


class DatacentersResponse(HetznerModel):
    datacenters: List[Datacenter]
    meta: Optional[Meta] = None


class ServerTypesResponse(HetznerModel):
    server_types: List[ServerType]
    meta: Optional[Meta] = None

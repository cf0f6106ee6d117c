"""
Monthly cost estimate and the dashboard resource overview.

All prices are gross (tax-inclusive). Amounts are Decimal throughout and
only the grand total is rounded, to 2 decimals with ROUND_HALF_UP.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..constants import ResourceType
from ..context.identity import Identity
from ..context.operation_context import operation
from ..schemas.cost_schemas import CostLineItem, MonthlyCost
from ..schemas.hetzner_schemas import FloatingIp, LocationPrice, Pricing, Server, Volume
from ..schemas.resource_schemas import (
    FloatingIpListItem,
    ResourceOverview,
    ServerListItem,
    VolumeListItem,
)
from .base_service import SessionManagedService
from .credential_service import CredentialService
from .resource_service import ResourceService

CENT = Decimal("0.01")
GIB_PER_PRICE_UNIT = Decimal(1024)


def _find_location_price(prices: Sequence[LocationPrice], location: str) -> Optional[LocationPrice]:
    return next((price for price in prices if price.location == location), None)


def server_monthly_price(server: Server, pricing: Pricing) -> Optional[Decimal]:
    """
    Gross monthly price of a server in its location.

    Looks in the server type embedded in the server first, then in the
    catalog entry with the same id (or, failing that, the same name).
    Returns None when no price for the location exists.
    """
    location = server.datacenter.location.name

    price = _find_location_price(server.server_type.prices, location)
    if price is None:
        catalog_type = next(
            (st for st in pricing.server_types if st.id == server.server_type.id), None
        ) or next((st for st in pricing.server_types if st.name == server.server_type.name), None)
        if catalog_type is not None:
            price = _find_location_price(catalog_type.prices, location)

    return price.price_monthly.gross if price is not None else None


def volume_monthly_price(volume: Volume, pricing: Pricing) -> Decimal:
    # Size is divided by 1024 before applying the per-GB price; kept as the console always computed it
    return (Decimal(volume.size) / GIB_PER_PRICE_UNIT) * pricing.volume.price_per_gb_month.gross


def floating_ip_monthly_price(pricing: Pricing) -> Decimal:
    """Flat price, the same for IPv4 and IPv6."""
    return pricing.floating_ip.price_monthly.gross


def estimate_monthly_cost(
    servers: Sequence[Server],
    volumes: Sequence[Volume],
    floating_ips: Sequence[FloatingIp],
    pricing: Pricing,
) -> MonthlyCost:
    """
    Estimate the monthly cost of an account's resources.

    Pure: the same inputs always give the same result. A server without a
    price for its location contributes zero and is listed in
    ``unpriced_server_ids``; it never makes the estimate fail.
    """
    line_items: List[CostLineItem] = []
    unpriced_server_ids: List[int] = []

    servers_total = Decimal(0)
    for server in servers:
        amount = server_monthly_price(server, pricing)
        if amount is None:
            unpriced_server_ids.append(server.id)
        servers_total += amount or Decimal(0)
        line_items.append(
            CostLineItem(
                resource_type=ResourceType.SERVER,
                resource_id=server.id,
                name=server.name,
                amount=amount or Decimal(0),
                priced=amount is not None,
            )
        )

    volumes_total = Decimal(0)
    for volume in volumes:
        amount = volume_monthly_price(volume, pricing)
        volumes_total += amount
        line_items.append(
            CostLineItem(
                resource_type=ResourceType.VOLUME,
                resource_id=volume.id,
                name=volume.name,
                amount=amount,
            )
        )

    floating_ips_total = Decimal(0)
    for floating_ip in floating_ips:
        amount = floating_ip_monthly_price(pricing)
        floating_ips_total += amount
        line_items.append(
            CostLineItem(
                resource_type=ResourceType.FLOATING_IP,
                resource_id=floating_ip.id,
                name=floating_ip.name or floating_ip.ip,
                amount=amount,
            )
        )

    total = (servers_total + volumes_total + floating_ips_total).quantize(
        CENT, rounding=ROUND_HALF_UP
    )

    return MonthlyCost(
        total=total,
        servers_total=servers_total,
        volumes_total=volumes_total,
        floating_ips_total=floating_ips_total,
        currency=pricing.currency,
        line_items=line_items,
        unpriced_server_ids=unpriced_server_ids,
    )


class CostService(SessionManagedService):
    """Builds the resource overview shown on the dashboard."""

    def __init__(
        self,
        session: Optional[Session] = None,
        credential_service: Optional[CredentialService] = None,
        resource_service: Optional[ResourceService] = None,
    ):
        super().__init__(session)
        self.credential_service = credential_service or CredentialService(self.session)
        self.resource_service = resource_service or ResourceService(self.session)

    @operation()
    def list_resources(self, identity: Identity) -> ResourceOverview:
        """
        Fetch servers, volumes, floating IPs and prices concurrently and
        combine them with the stored assignments and the cost estimate.

        Fails as a whole if any of the four upstream calls fails.
        """
        client = self.credential_service.get_client(identity)

        with ThreadPoolExecutor(max_workers=4, thread_name_prefix="hetzner-list") as executor:
            servers_future = executor.submit(client.list_servers)
            volumes_future = executor.submit(client.list_volumes)
            floating_ips_future = executor.submit(client.list_floating_ips)
            pricing_future = executor.submit(client.get_pricing)

            servers = servers_future.result()
            volumes = volumes_future.result()
            floating_ips = floating_ips_future.result()
            pricing = pricing_future.result()

        assignments = self.resource_service.list_assignments(identity)

        def assignment_for(resource_type: ResourceType, resource_id: int):
            return assignments.get((resource_type.value, str(resource_id)))

        cost = estimate_monthly_cost(servers, volumes, floating_ips, pricing)
        self.logger.info(
            "Resource overview built",
            extra={
                "owner_id": identity.owner_id,
                "servers": len(servers),
                "volumes": len(volumes),
                "floating_ips": len(floating_ips),
                "estimated_total": str(cost.total),
                "unpriced_servers": len(cost.unpriced_server_ids),
            },
        )

        return ResourceOverview(
            servers=[
                ServerListItem(server=s, assignment=assignment_for(ResourceType.SERVER, s.id))
                for s in servers
            ],
            volumes=[
                VolumeListItem(volume=v, assignment=assignment_for(ResourceType.VOLUME, v.id))
                for v in volumes
            ],
            floating_ips=[
                FloatingIpListItem(
                    floating_ip=f, assignment=assignment_for(ResourceType.FLOATING_IP, f.id)
                )
                for f in floating_ips
            ],
            pricing=pricing,
            cost=cost,
        )

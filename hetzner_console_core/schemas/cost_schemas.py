"""
Schemas for the monthly cost estimate.

Amounts are Decimal; only ``total`` is rounded.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ResourceType


class CostLineItem(BaseModel):
    """Contribution of one resource to the estimate, unrounded."""

    resource_type: ResourceType
    resource_id: int
    name: str
    amount: Decimal
    priced: bool = True

    model_config = ConfigDict(frozen=True)


class MonthlyCost(BaseModel):
    """Estimated monthly cost of an account, in gross prices."""

    total: Decimal = Field(..., description="Sum of all line items, rounded to 2 decimals")
    servers_total: Decimal
    volumes_total: Decimal
    floating_ips_total: Decimal
    currency: str
    line_items: List[CostLineItem] = Field(default_factory=list)
    unpriced_server_ids: List[int] = Field(
        default_factory=list, description="Servers without a price for their location"
    )

    model_config = ConfigDict(frozen=True)

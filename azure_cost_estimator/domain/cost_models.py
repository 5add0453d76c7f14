"""
Domain models for plan cost estimation.
Defines the structure of a plan estimate and its per-resource items.
"""
from typing import List, Dict, Any
from dataclasses import dataclass, field


@dataclass
class PriceItem:
    """Hourly price of a single priced resource."""
    resource_type: str
    resource_address: str
    hourly_price_usd: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "resource_type": self.resource_type,
            "resource_address": self.resource_address,
            "hourly_price_usd": self.hourly_price_usd,
        }


@dataclass
class UnpricedResource:
    """Represents a supported resource that could not be priced."""
    resource_address: str
    resource_type: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "resource_address": self.resource_address,
            "resource_type": self.resource_type,
            "reason": self.reason,
        }


@dataclass
class PlanCostEstimate:
    """
    Aggregate cost of a plan.

    Monthly and yearly figures are derived from the hourly total with fixed
    730 and 8760 hour multipliers.
    """
    estimated_hourly_cost_usd: float
    estimated_monthly_cost_usd: float
    estimated_yearly_cost_usd: float
    price_items: List[PriceItem] = field(default_factory=list)
    unpriced_resources: List[UnpricedResource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "estimated_hourly_cost_usd": self.estimated_hourly_cost_usd,
            "estimated_monthly_cost_usd": self.estimated_monthly_cost_usd,
            "estimated_yearly_cost_usd": self.estimated_yearly_cost_usd,
            "price_items": [item.to_dict() for item in self.price_items],
            "unpriced_resources": [resource.to_dict() for resource in self.unpriced_resources],
        }

"""
Plan pricer service.
Converts a Terraform plan into an hourly, monthly and yearly Azure cost estimate.
"""
from typing import List, Optional, Union
import json
import logging

from pydantic import ValidationError

from azure_cost_estimator.core.config import config
from azure_cost_estimator.domain.cost_models import PlanCostEstimate, PriceItem, UnpricedResource
from azure_cost_estimator.domain.plan_models import PlanFile
from azure_cost_estimator.pricing.azure_pricing_client import AzurePricingClient, AzurePricingError
from azure_cost_estimator.pricing.rules import PricingRuleRegistry, ResourceShapeError, default_registry


logger = logging.getLogger(__name__)


class PlanParseError(Exception):
    """Raised when the plan document is not valid plan JSON."""
    pass


def parse_plan(plan_document: Union[str, bytes]) -> PlanFile:
    """
    Parse a Terraform plan JSON document.

    Args:
        plan_document: Output of ``terraform show -json <planfile>``

    Returns:
        Parsed PlanFile

    Raises:
        PlanParseError: If the document is not JSON or not shaped like a plan
    """
    try:
        data = json.loads(plan_document)
    except (TypeError, ValueError) as error:
        raise PlanParseError(f"Plan is not valid JSON: {error}") from error

    if not isinstance(data, dict):
        raise PlanParseError("Plan must be a JSON object")

    try:
        return PlanFile.model_validate(data)
    except ValidationError as error:
        raise PlanParseError(f"Plan does not match the expected schema: {error.error_count()} error(s)") from error


class PlanPricer:
    """Service for pricing the Azure resources of a Terraform plan."""

    def __init__(
        self,
        pricing_client: Optional[AzurePricingClient] = None,
        registry: Optional[PricingRuleRegistry] = None,
        provider_name: Optional[str] = None
    ):
        """
        Initialize plan pricer.

        Args:
            pricing_client: Azure pricing client (creates new if None)
            registry: Pricing rules by resource type (defaults to the built-in rules)
            provider_name: Provider whose resources are priced (defaults to AZURE_PROVIDER_NAME)
        """
        self.pricing_client = pricing_client or AzurePricingClient()
        self.registry = registry or default_registry
        self.provider_name = provider_name or config.AZURE_PROVIDER_NAME

    async def price_plan(self, plan_document: Union[str, bytes]) -> PlanCostEstimate:
        """
        Estimate the cost of a plan.

        Resources owned by other providers and resource types without a
        pricing rule are skipped. A supported resource that cannot be priced
        (bad attributes, no matching price, pricing API failure) is reported
        in ``unpriced_resources`` and adds nothing to the total; the rest of
        the plan is still priced.

        Args:
            plan_document: Terraform plan JSON

        Returns:
            PlanCostEstimate

        Raises:
            PlanParseError: If the plan cannot be parsed
        """
        plan = parse_plan(plan_document)

        price_items: List[PriceItem] = []
        unpriced_resources: List[UnpricedResource] = []

        for resource_change in plan.resource_changes:
            # Only price resources managed by the Azure provider
            if resource_change.provider_name != self.provider_name:
                continue

            rule = self.registry.get(resource_change.type)
            if rule is None:
                continue

            address = resource_change.display_address
            after = resource_change.change.after
            if after is None:
                # Destroyed resources have no ongoing cost
                continue

            try:
                attributes = rule.parse_attributes(after)
                hourly_price = await rule.price(attributes, self.pricing_client)
            except ResourceShapeError as error:
                logger.warning(f"Skipping {address}: {error}")
                unpriced_resources.append(UnpricedResource(
                    resource_address=address,
                    resource_type=resource_change.type,
                    reason=f"Invalid resource attributes: {error}"
                ))
                continue
            except AzurePricingError as error:
                logger.warning(f"Pricing error for {address}: {error}")
                unpriced_resources.append(UnpricedResource(
                    resource_address=address,
                    resource_type=resource_change.type,
                    reason=f"Pricing lookup failed: {str(error)}"
                ))
                continue

            if hourly_price is None:
                unpriced_resources.append(UnpricedResource(
                    resource_address=address,
                    resource_type=resource_change.type,
                    reason="No matching price found"
                ))
                continue

            price_items.append(PriceItem(
                resource_type=resource_change.type,
                resource_address=address,
                hourly_price_usd=hourly_price
            ))

        hourly_total = sum((item.hourly_price_usd for item in price_items), 0.0)
        return PlanCostEstimate(
            estimated_hourly_cost_usd=hourly_total,
            estimated_monthly_cost_usd=hourly_total * config.HOURS_PER_MONTH,
            estimated_yearly_cost_usd=hourly_total * config.HOURS_PER_YEAR,
            price_items=price_items,
            unpriced_resources=unpriced_resources
        )

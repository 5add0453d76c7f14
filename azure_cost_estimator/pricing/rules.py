"""
Pricing rules for Terraform resource types.

A rule turns the ``change.after`` attributes of one resource into an hourly
price. Rules are looked up by resource type in a registry; a type without a
registered rule is not priced. Adding a priced type means registering a rule::

    @default_registry.register("azurerm_example", ExampleAttributes)
    async def price_example(attributes, pricing_client):
        ...
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from azure_cost_estimator.pricing.azure_pricing_client import AzurePricingClient


class ResourceShapeError(Exception):
    """Raised when a resource's attributes do not match what its pricing rule needs."""

    def __init__(self, resource_type: str, message: str):
        super().__init__(f"{resource_type}: {message}")
        self.resource_type = resource_type


PriceFunction = Callable[[BaseModel, AzurePricingClient], Awaitable[Optional[float]]]


@dataclass(frozen=True)
class PricingRule:
    """Pairs a resource type with its attribute schema and price function."""
    resource_type: str
    attributes_model: Type[BaseModel]
    price: PriceFunction

    def parse_attributes(self, after: Any) -> BaseModel:
        """
        Validate a resource's desired attributes.

        Args:
            after: The change's ``after`` object from the plan

        Returns:
            Validated attributes model

        Raises:
            ResourceShapeError: If attributes are missing or of the wrong type
        """
        if after is None:
            raise ResourceShapeError(self.resource_type, "resource has no desired state")
        if not isinstance(after, dict):
            raise ResourceShapeError(
                self.resource_type,
                f"expected an object of attributes, got {type(after).__name__}"
            )
        try:
            return self.attributes_model.model_validate(after)
        except ValidationError as error:
            problems = ", ".join(
                f"{'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}"
                for detail in error.errors()
            )
            raise ResourceShapeError(self.resource_type, problems) from error


class PricingRuleRegistry:
    """Registry of resource type -> pricing rule."""

    def __init__(self):
        self._rules: Dict[str, PricingRule] = {}

    def register(
        self,
        resource_type: str,
        attributes_model: Type[BaseModel]
    ) -> Callable[[PriceFunction], PriceFunction]:
        """
        Decorator registering a price function for a resource type.

        Args:
            resource_type: Terraform resource type
            attributes_model: pydantic model the ``after`` attributes must satisfy
        """
        def decorator(price: PriceFunction) -> PriceFunction:
            if resource_type in self._rules:
                raise ValueError(f"Pricing rule already registered for {resource_type}")
            self._rules[resource_type] = PricingRule(resource_type, attributes_model, price)
            return price
        return decorator

    def get(self, resource_type: str) -> Optional[PricingRule]:
        """Return the rule for a resource type, or None if the type is not priced."""
        return self._rules.get(resource_type)

    def supported_types(self) -> List[str]:
        """Return all priced resource types."""
        return sorted(self._rules)


class VirtualMachineAttributes(BaseModel):
    """Attributes shared by azurerm_linux_virtual_machine and azurerm_windows_virtual_machine."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    size: str = Field(..., min_length=1, description="VM SKU, e.g. Standard_B1s")
    location: str = Field(..., min_length=1, description="Azure region, e.g. eastus")


default_registry = PricingRuleRegistry()


@default_registry.register("azurerm_linux_virtual_machine", VirtualMachineAttributes)
async def price_linux_virtual_machine(
    attributes: VirtualMachineAttributes,
    pricing_client: AzurePricingClient
) -> Optional[float]:
    return await pricing_client.get_virtual_machine_price(
        sku_name=attributes.size,
        region=attributes.location,
        os_type="Linux"
    )


@default_registry.register("azurerm_windows_virtual_machine", VirtualMachineAttributes)
async def price_windows_virtual_machine(
    attributes: VirtualMachineAttributes,
    pricing_client: AzurePricingClient
) -> Optional[float]:
    return await pricing_client.get_virtual_machine_price(
        sku_name=attributes.size,
        region=attributes.location,
        os_type="Windows"
    )

"""
Minimal Terraform plan schema.
Only the fields needed for pricing are modelled; everything else in the
plan JSON is ignored.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Change(BaseModel):
    """Before/after snapshot of a resource change."""
    model_config = ConfigDict(extra="ignore")

    # Desired attributes; null when the resource is being destroyed
    after: Any = Field(default=None, description="Resource attributes after the change")


class ResourceChange(BaseModel):
    """One entry of the plan's resource_changes array."""
    model_config = ConfigDict(extra="ignore")

    address: Optional[str] = Field(None, description="Full resource address, e.g. azurerm_linux_virtual_machine.web")
    name: Optional[str] = Field(None, description="Resource name")
    type: str = Field(..., description="Resource type, e.g. azurerm_linux_virtual_machine")
    provider_name: str = Field(..., description="Owning provider source address")
    change: Change = Field(default_factory=Change)

    @property
    def display_address(self) -> str:
        """Address used when reporting on this resource."""
        if self.address:
            return self.address
        if self.name:
            return f"{self.type}.{self.name}"
        return self.type


class PlanFile(BaseModel):
    """Terraform plan document (`terraform show -json` output)."""
    model_config = ConfigDict(extra="ignore")

    resource_changes: List[ResourceChange] = Field(default_factory=list)

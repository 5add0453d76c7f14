"""
Tests for Terraform plan pricing.
"""

import pytest
from unittest.mock import Mock, AsyncMock
from pydantic import BaseModel
from azure_cost_estimator.pricing.azure_pricing_client import AzurePricingError
from azure_cost_estimator.pricing.rules import (
    PricingRuleRegistry,
    ResourceShapeError,
    VirtualMachineAttributes,
    default_registry,
)
from azure_cost_estimator.services.plan_pricer import PlanPricer, PlanParseError


AZURERM = 'registry.terraform.io/hashicorp/azurerm'
B1S_EASTUS_RATE = 0.0104


@pytest.fixture
def mock_azure_pricing():
    """Mock Azure pricing client."""
    mock = Mock()
    mock.get_virtual_machine_price = AsyncMock(return_value=B1S_EASTUS_RATE)
    return mock


@pytest.fixture
def pricer(mock_azure_pricing):
    """Plan pricer using the mocked pricing client."""
    return PlanPricer(pricing_client=mock_azure_pricing)


@pytest.mark.asyncio
async def test_linux_vm_is_priced_hourly_monthly_yearly(pricer, mock_azure_pricing, plan_factory):
    """A Standard_B1s in eastus yields rate, rate x 730 and rate x 8760."""
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_B1s', 'location': 'eastus'})
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == B1S_EASTUS_RATE
    assert estimate.estimated_monthly_cost_usd == B1S_EASTUS_RATE * 730
    assert estimate.estimated_yearly_cost_usd == B1S_EASTUS_RATE * 8760
    mock_azure_pricing.get_virtual_machine_price.assert_awaited_once_with(
        sku_name='Standard_B1s',
        region='eastus',
        os_type='Linux'
    )


@pytest.mark.asyncio
async def test_hourly_total_sums_priced_resources(pricer, mock_azure_pricing, plan_factory):
    """Hourly rates of all priced resources are summed."""
    mock_azure_pricing.get_virtual_machine_price.side_effect = [0.0104, 0.096]
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_B1s', 'location': 'eastus'}),
        ('azurerm_windows_virtual_machine', AZURERM, {'size': 'Standard_D2s_v3', 'location': 'westeurope'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == pytest.approx(0.1064)
    assert [item.resource_type for item in estimate.price_items] == [
        'azurerm_linux_virtual_machine',
        'azurerm_windows_virtual_machine',
    ]
    assert mock_azure_pricing.get_virtual_machine_price.await_args_list[1].kwargs['os_type'] == 'Windows'


@pytest.mark.asyncio
async def test_unsupported_type_is_skipped(pricer, mock_azure_pricing, plan_factory):
    """Types without a pricing rule add nothing and raise nothing."""
    plan = plan_factory(
        ('azurerm_resource_group', AZURERM, {'name': 'rg', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == 0
    assert estimate.unpriced_resources == []
    mock_azure_pricing.get_virtual_machine_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_provider_is_skipped(pricer, mock_azure_pricing, plan_factory):
    """Changes owned by another provider are ignored even for a priced type."""
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', 'registry.terraform.io/hashicorp/aws',
         {'size': 'Standard_B1s', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == 0
    mock_azure_pricing.get_virtual_machine_price.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize('document', [
    '{"resource_changes": [',
    'not json at all',
    '[]',
    '{"resource_changes": {"type": "azurerm_linux_virtual_machine"}}',
    '{"resource_changes": [{"type": "azurerm_linux_virtual_machine"}]}',
])
async def test_malformed_plan_raises_parse_error(pricer, document):
    """Malformed plans fail the whole estimate."""
    with pytest.raises(PlanParseError):
        await pricer.price_plan(document)


@pytest.mark.asyncio
async def test_plan_without_resource_changes_is_free(pricer):
    """A plan with no changes costs nothing."""
    estimate = await pricer.price_plan('{"format_version": "1.2"}')

    assert estimate.estimated_hourly_cost_usd == 0
    assert estimate.estimated_yearly_cost_usd == 0


@pytest.mark.asyncio
async def test_missing_attribute_is_reported_and_skipped(pricer, plan_factory):
    """A VM without a size is unpriced; the rest of the plan is still priced."""
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'location': 'eastus'}),
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_B1s', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == B1S_EASTUS_RATE
    assert len(estimate.unpriced_resources) == 1
    unpriced = estimate.unpriced_resources[0]
    assert unpriced.resource_address == 'azurerm_linux_virtual_machine.r0'
    assert 'size' in unpriced.reason


@pytest.mark.asyncio
async def test_wrongly_typed_attribute_is_reported(pricer, plan_factory):
    """Attributes of the wrong type are shape errors, not crashes."""
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 42, 'location': ['eastus']}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == 0
    assert estimate.unpriced_resources[0].reason.startswith('Invalid resource attributes')


@pytest.mark.asyncio
async def test_destroyed_resource_is_not_priced(pricer, mock_azure_pricing, plan_factory):
    """A change with no after state (delete) adds nothing."""
    plan = plan_factory(('azurerm_linux_virtual_machine', AZURERM, None))

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == 0
    assert estimate.unpriced_resources == []
    mock_azure_pricing.get_virtual_machine_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_pricing_failure_marks_resource_unpriced(pricer, mock_azure_pricing, plan_factory):
    """Pricing API failures are scoped to the resource."""
    mock_azure_pricing.get_virtual_machine_price.side_effect = AzurePricingError('Failed to query Azure pricing: 503')
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_B1s', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == 0
    assert 'Pricing lookup failed' in estimate.unpriced_resources[0].reason


@pytest.mark.asyncio
async def test_unknown_price_marks_resource_unpriced(pricer, mock_azure_pricing, plan_factory):
    """A SKU with no retail price is reported as unpriced."""
    mock_azure_pricing.get_virtual_machine_price.return_value = None
    plan = plan_factory(
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_Imaginary', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.unpriced_resources[0].reason == 'No matching price found'


@pytest.mark.asyncio
async def test_custom_registry_rule_is_used(mock_azure_pricing, plan_factory):
    """New resource types are priced by registering a rule."""
    class DiskAttributes(BaseModel):
        disk_size_gb: int

    registry = PricingRuleRegistry()

    @registry.register('azurerm_managed_disk', DiskAttributes)
    async def price_disk(attributes, pricing_client):
        return attributes.disk_size_gb * 0.001

    pricer = PlanPricer(pricing_client=mock_azure_pricing, registry=registry)
    plan = plan_factory(
        ('azurerm_managed_disk', AZURERM, {'disk_size_gb': 128}),
        ('azurerm_linux_virtual_machine', AZURERM, {'size': 'Standard_B1s', 'location': 'eastus'}),
    )

    estimate = await pricer.price_plan(plan)

    assert estimate.estimated_hourly_cost_usd == pytest.approx(0.128)


def test_registry_rejects_duplicate_registration():
    """A type can only have one rule."""
    registry = PricingRuleRegistry()

    @registry.register('azurerm_example', VirtualMachineAttributes)
    async def first(attributes, pricing_client):
        return 1.0

    with pytest.raises(ValueError):
        @registry.register('azurerm_example', VirtualMachineAttributes)
        async def second(attributes, pricing_client):
            return 2.0


def test_default_registry_supports_virtual_machines():
    """Linux and Windows VMs are priced out of the box."""
    assert default_registry.supported_types() == [
        'azurerm_linux_virtual_machine',
        'azurerm_windows_virtual_machine',
    ]


def test_rule_rejects_non_object_attributes():
    """The after state must be an object."""
    rule = default_registry.get('azurerm_linux_virtual_machine')

    with pytest.raises(ResourceShapeError):
        rule.parse_attributes(['Standard_B1s'])


def test_estimate_to_dict_has_output_fields():
    """The serialized estimate carries the three cost fields."""
    from azure_cost_estimator.domain.cost_models import PlanCostEstimate

    payload = PlanCostEstimate(1.0, 730.0, 8760.0).to_dict()

    assert payload['estimated_hourly_cost_usd'] == 1.0
    assert payload['estimated_monthly_cost_usd'] == 730.0
    assert payload['estimated_yearly_cost_usd'] == 8760.0

"""
Shared pytest fixtures for tests.
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Set minimal environment variables for testing
os.environ.setdefault('CATALOG_STORE', 'memory')
os.environ.setdefault('AZURE_PRICING_API_URL', 'https://prices.test/api/retail/prices')
os.environ.pop('S3_BUCKET', None)

import json
import pytest
from fastapi.testclient import TestClient
from azure_cost_estimator.main import app
from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry
from azure_cost_estimator.pricing.azure_pricing_client import AzurePricingClient


AZURERM = 'registry.terraform.io/hashicorp/azurerm'


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_pricing_cache():
    """Azure price lookups are cached per class; start every test cold."""
    AzurePricingClient._cache.clear()
    yield
    AzurePricingClient._cache.clear()


def make_price_item(meter_id, retail_price=0.0104, **overrides):
    """Retail Prices API item for a B1s Linux VM in eastus."""
    item = {
        'currencyCode': 'USD',
        'tierMinimumUnits': 0.0,
        'retailPrice': retail_price,
        'unitPrice': retail_price,
        'armRegionName': 'eastus',
        'location': 'US East',
        'effectiveStartDate': '2020-08-01T00:00:00Z',
        'meterId': meter_id,
        'meterName': 'B1s',
        'productId': 'DZH318Z0BQ4L',
        'skuId': 'DZH318Z0BQ4L/00SN',
        'availabilityId': None,
        'productName': 'Virtual Machines BS Series',
        'skuName': 'B1s',
        'serviceName': 'Virtual Machines',
        'serviceId': 'DZH313Z7MMC8',
        'serviceFamily': 'Compute',
        'unitOfMeasure': '1 Hour',
        'type': 'Consumption',
        'isPrimaryMeterRegion': True,
        'armSkuName': 'Standard_B1s',
    }
    item.update(overrides)
    return item


@pytest.fixture
def price_item_factory():
    """Factory for Retail Prices API items."""
    return make_price_item


@pytest.fixture
def entry_factory():
    """Factory for PriceCatalogEntry values."""
    def factory(meter_id, retail_price=0.0104, **overrides):
        return PriceCatalogEntry.from_api_item(make_price_item(meter_id, retail_price, **overrides))
    return factory


@pytest.fixture
def plan_factory():
    """Build a Terraform plan JSON document from (type, provider, after) tuples."""
    def factory(*changes):
        return json.dumps({
            'format_version': '1.2',
            'terraform_version': '1.6.0',
            'resource_changes': [
                {
                    'address': f'{resource_type}.r{index}',
                    'name': f'r{index}',
                    'type': resource_type,
                    'provider_name': provider_name,
                    'change': {'actions': ['create'], 'before': None, 'after': after},
                }
                for index, (resource_type, provider_name, after) in enumerate(changes)
            ],
        })
    return factory

"""
Azure Retail Prices API client for point lookups.
Uses public REST API (no authentication required).
"""
from typing import Dict, Any, List, Optional, Tuple
import logging
from datetime import datetime, timedelta
import httpx

from azure_cost_estimator.core.config import config


logger = logging.getLogger(__name__)


class AzurePricingError(Exception):
    """Raised when Azure pricing lookup fails."""
    pass


# Meters that are priced differently from regular pay-as-you-go usage
_EXCLUDED_METER_MARKERS = ("spot", "low priority")


class AzurePricingClient:
    """Client for querying hourly prices from the Azure Retail Prices API."""

    # In-memory cache: "region:family:sku:os" -> (price, timestamp)
    _cache: Dict[str, Tuple[float, datetime]] = {}

    def __init__(self, api_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize Azure pricing client.

        Args:
            api_url: Retail Prices API URL (defaults to AZURE_PRICING_API_URL)
            http_client: Shared httpx client (a new one is opened per lookup if None)
        """
        self.api_url = api_url or config.AZURE_PRICING_API_URL
        self.cache_ttl = timedelta(seconds=config.PRICING_CACHE_TTL_SECONDS)
        self.timeout = config.AZURE_PRICING_TIMEOUT
        self.http_client = http_client

    def _get_cache_key(self, arm_region: str, service_family: str, sku_name: str, os_type: str) -> str:
        """Generate cache key."""
        return f"{arm_region}:{service_family}:{sku_name}:{os_type.lower()}"

    def _get_cached_price(self, cache_key: str) -> Optional[float]:
        """Get cached price if still valid."""
        if cache_key in self._cache:
            price, timestamp = self._cache[cache_key]
            if datetime.now() - timestamp < self.cache_ttl:
                return price
            del self._cache[cache_key]
        return None

    def _cache_price(self, cache_key: str, price: float) -> None:
        """Cache price with current timestamp."""
        self._cache[cache_key] = (price, datetime.now())

    @staticmethod
    def _quote(value: str) -> str:
        """Quote a value as an OData string literal."""
        return "'" + value.replace("'", "''") + "'"

    def _normalize_region(self, region: str) -> str:
        """
        Normalize Azure region name for pricing API.
        Pricing API uses ARM region names like 'eastus'.

        Args:
            region: Azure region (e.g., 'eastus' or 'East US')

        Returns:
            Normalized region name (lowercase, no spaces)
        """
        return region.lower().replace(" ", "")

    @staticmethod
    def select_virtual_machine_price(items: List[Dict[str, Any]], os_type: str) -> Optional[float]:
        """
        Pick the pay-as-you-go hourly price for an OS from VM price items.

        Windows meters carry "Windows" in the product name; Linux meters are
        the ones without it. Spot and low priority meters are skipped.

        Args:
            items: Items returned for a single VM SKU and region
            os_type: 'Linux' or 'Windows'

        Returns:
            Hourly price in USD, or None if no item matches
        """
        wants_windows = os_type.lower() == "windows"
        for item in items:
            if item.get("type", "Consumption") != "Consumption":
                continue
            meter_name = (item.get("meterName") or "").lower()
            if any(marker in meter_name for marker in _EXCLUDED_METER_MARKERS):
                continue
            is_windows = "windows" in (item.get("productName") or "").lower()
            if is_windows != wants_windows:
                continue
            unit_price = item.get("retailPrice")
            if unit_price is not None:
                return float(unit_price)
        return None

    async def _query(self, params: Dict[str, str]) -> Dict[str, Any]:
        if self.http_client is not None:
            response = await self.http_client.get(self.api_url, params=params, timeout=self.timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.api_url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def get_virtual_machine_price(
        self,
        sku_name: str,
        region: str,
        os_type: str = "Linux"
    ) -> Optional[float]:
        """
        Get hourly price for Azure Virtual Machine.

        Args:
            sku_name: VM SKU (e.g., 'Standard_B1s')
            region: Azure region (e.g., 'eastus')
            os_type: OS type ('Linux' or 'Windows')

        Returns:
            Hourly price in USD, or None if not found

        Raises:
            AzurePricingError: If API call fails
        """
        normalized_region = self._normalize_region(region)
        cache_key = self._get_cache_key(normalized_region, "Compute", sku_name, os_type)
        cached_price = self._get_cached_price(cache_key)
        if cached_price is not None:
            return cached_price

        try:
            data = await self._query({
                "$filter": f"armRegionName eq {self._quote(normalized_region)} "
                           f"and serviceFamily eq 'Compute' "
                           f"and armSkuName eq {self._quote(sku_name)} "
                           f"and priceType eq 'Consumption' "
                           f"and contains(productName, 'Virtual Machines')"
            })
        except httpx.HTTPStatusError as error:
            logger.error(f"Azure pricing API HTTP error: {error}")
            raise AzurePricingError(f"Failed to query Azure pricing: {error.response.status_code}") from error
        except httpx.RequestError as error:
            logger.error(f"Azure pricing API request error: {error}")
            raise AzurePricingError(f"Failed to connect to Azure pricing API: {str(error)}") from error
        except ValueError as error:
            logger.error(f"Error parsing Azure pricing response: {error}")
            raise AzurePricingError("Azure pricing API returned invalid JSON") from error

        items = data.get("Items", []) if isinstance(data, dict) else []
        hourly_price = self.select_virtual_machine_price(items, os_type)
        if hourly_price is None:
            logger.info(f"No {os_type} price found for {sku_name} in {normalized_region}")
            return None

        self._cache_price(cache_key, hourly_price)
        return hourly_price

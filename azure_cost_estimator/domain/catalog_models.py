"""
Domain models for the Azure retail price catalog.
Defines price entries as returned by the Retail Prices API and the
groups they are persisted in.
"""
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


CONSUMPTION_PRICE_TYPE = "Consumption"

# Retail Prices API field name -> attribute name
_API_FIELDS: Dict[str, str] = {
    "type": "price_type",
    "meterId": "meter_id",
    "meterName": "meter_name",
    "serviceName": "service_name",
    "serviceId": "service_id",
    "serviceFamily": "service_family",
    "productName": "product_name",
    "productId": "product_id",
    "skuName": "sku_name",
    "skuId": "sku_id",
    "armSkuName": "arm_sku_name",
    "armRegionName": "arm_region_name",
    "location": "location",
    "retailPrice": "retail_price",
    "unitPrice": "unit_price",
    "tierMinimumUnits": "tier_minimum_units",
    "currencyCode": "currency_code",
    "unitOfMeasure": "unit_of_measure",
    "effectiveStartDate": "effective_start_date",
    "isPrimaryMeterRegion": "is_primary_meter_region",
}

# Attributes that must arrive as strings when present
_NUMERIC_ATTRIBUTES = ("retail_price", "unit_price", "tier_minimum_units")
_STRING_ATTRIBUTES = frozenset(
    attribute for attribute in _API_FIELDS.values()
    if attribute not in _NUMERIC_ATTRIBUTES and attribute != "is_primary_meter_region"
)


@dataclass(frozen=True)
class PriceCatalogEntry:
    """
    One priced SKU/meter combination from the retail price feed.

    Only ``price_type`` and ``meter_id`` carry meaning for merging; the rest
    is descriptive payload. Fields the feed sends that are not modelled here
    are kept in ``extra`` so an entry serializes back to the item it came from.
    """
    price_type: str
    meter_id: str
    meter_name: str = ""
    service_name: str = ""
    service_id: str = ""
    service_family: str = ""
    product_name: str = ""
    product_id: str = ""
    sku_name: str = ""
    sku_id: str = ""
    arm_sku_name: str = ""
    arm_region_name: str = ""
    location: str = ""
    retail_price: float = 0.0
    unit_price: float = 0.0
    tier_minimum_units: float = 0.0
    currency_code: str = "USD"
    unit_of_measure: str = ""
    effective_start_date: str = ""
    is_primary_meter_region: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_consumption(self) -> bool:
        """True for pay-as-you-go entries (not reservations or savings plans)."""
        return self.price_type == CONSUMPTION_PRICE_TYPE

    @classmethod
    def from_api_item(cls, item: Dict[str, Any]) -> "PriceCatalogEntry":
        """
        Build an entry from a Retail Prices API item.

        Args:
            item: One element of the feed's ``Items`` array

        Returns:
            PriceCatalogEntry

        Raises:
            ValueError: If the item is not an object, has no meter id, or a
                descriptive field is not a string
        """
        if not isinstance(item, dict):
            raise ValueError(f"Price item must be an object, got {type(item).__name__}")

        meter_id = item.get("meterId")
        if not meter_id or not isinstance(meter_id, str):
            raise ValueError("Price item has no meterId")

        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in item.items():
            attribute = _API_FIELDS.get(key)
            if attribute is None:
                extra[key] = value
            elif value is not None:
                if attribute in _STRING_ATTRIBUTES and not isinstance(value, str):
                    raise ValueError(
                        f"Price item {meter_id}: {key} must be a string, got {type(value).__name__}"
                    )
                values[attribute] = value

        for attribute in _NUMERIC_ATTRIBUTES:
            if attribute in values:
                values[attribute] = float(values[attribute])

        values.setdefault("price_type", "")
        return cls(extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the Retail Prices API item shape for JSON serialization."""
        payload: Dict[str, Any] = dict(self.extra)
        for api_name, attribute in _API_FIELDS.items():
            value = getattr(self, attribute)
            if value is None:
                continue
            payload[api_name] = value
        return payload


@dataclass
class StoredGroup:
    """Persisted bundle of price entries sharing one derived catalog id."""
    catalog_id: str
    entries: List[PriceCatalogEntry]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.catalog_id,
            "price_items": [entry.to_dict() for entry in self.entries],
        }

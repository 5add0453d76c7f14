"""
Catalog identifier derivation.

Every price entry belongs to a meter family: the same service, product and
SKU in the same region. The identifier names that family and is used both as
the merge key and as the storage key, so it must stay stable across feed
refreshes and ignore everything that is specific to a single meter (meter id,
meter name, prices, tiers, effective dates).
"""
import re

from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry


ARN_PREFIX = "arn:azure"
GLOBAL_REGION = "global"

_WHITESPACE = re.compile(r"\s+")


def _normalize_segment(value: str) -> str:
    """Trim, lowercase and collapse whitespace runs to a single hyphen."""
    return _WHITESPACE.sub("-", (value or "").strip().lower())


def derive_catalog_id(entry: PriceCatalogEntry) -> str:
    """
    Derive the catalog id for a price entry.

    Format: ``arn:azure:<serviceFamily>:<region>:<serviceName>/<productName>/<skuName>``

    Args:
        entry: Price entry from the retail feed

    Returns:
        Deterministic identifier string
    """
    region = _normalize_segment(entry.arm_region_name) or GLOBAL_REGION
    resource = "/".join(
        _normalize_segment(part)
        for part in (entry.service_name, entry.product_name, entry.sku_name)
    )
    return f"{ARN_PREFIX}:{_normalize_segment(entry.service_family)}:{region}:{resource}"

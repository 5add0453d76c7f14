"""
Merge a freshly fetched price entry into a stored group.
"""
from typing import List, Sequence

from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry


def merge_price_entry(
    entry: PriceCatalogEntry,
    existing: Sequence[PriceCatalogEntry]
) -> List[PriceCatalogEntry]:
    """
    Merge an entry into an ordered group, deduplicating on meter id.

    Meter ids are globally unique, so an entry with the same meter id is
    replaced in place (the latest value from the feed wins). Otherwise the
    entry is appended. The order of the remaining entries is preserved and
    ``existing`` is never mutated.

    Args:
        entry: Entry to merge
        existing: Entries currently stored under the entry's catalog id

    Returns:
        New list holding at most one entry per meter id
    """
    if not existing:
        return [entry]

    merged = list(existing)
    for index, current in enumerate(merged):
        if current.meter_id == entry.meter_id:
            merged[index] = entry
            return merged

    merged.append(entry)
    return merged

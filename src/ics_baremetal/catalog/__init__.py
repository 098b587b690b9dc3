"""Catalog resolution: instance types, locations and operating systems."""

from ics_baremetal.catalog.resolver import (
    Alternatives,
    CatalogResolver,
    OperatingSystemNotFoundError,
    ResolutionError,
    find_sku,
    suggest_alternatives,
)

__all__ = [
    "Alternatives",
    "CatalogResolver",
    "OperatingSystemNotFoundError",
    "ResolutionError",
    "find_sku",
    "suggest_alternatives",
]

"""
Control catalog definitions and loading.

The catalog is read-only reference data: an ordered tree of
domains -> categories -> controls. The built-in catalog is CMMC 2.0
Level 1 (6 domains, 17 practices). Other frameworks with the same tree
shape can be loaded from YAML or JSON files.

Example:
    from cmmcdoc.catalog import get_default_catalog, load_catalog

    catalog = get_default_catalog()
    print(catalog.statistics())

    custom = load_catalog("frameworks/my-framework.yaml")
"""

from cmmcdoc.catalog.cmmc_controls import (
    Catalog,
    Category,
    Control,
    Domain,
    Priority,
    get_all_controls,
    get_control,
    get_default_catalog,
)
from cmmcdoc.catalog.loader import catalog_from_dict, load_catalog

__all__ = [
    # Dataclasses
    "Catalog",
    "Category",
    "Control",
    "Domain",
    "Priority",
    # Lookup functions
    "get_default_catalog",
    "get_control",
    "get_all_controls",
    # Loading
    "catalog_from_dict",
    "load_catalog",
]

"""
Load control catalogs from YAML or JSON files.

A catalog file has the same tree shape as the built-in catalog:

    id: my-framework
    name: My Framework
    version: "1.0"
    domains:
      - id: access-control
        name: Access Control
        abbreviation: AC
        priority: high
        categories:
          - id: ac-basic
            name: Basic Access
            controls:
              - id: AC.1.001
                text: Limit system access to authorized users.
                guidance: Maintain an account inventory.
                priority: high
                exampleCount: 4
                references: ["NIST SP 800-171 3.1.1"]

Controls inherit their domain name from the enclosing domain.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from cmmcdoc.catalog.cmmc_controls import Catalog, Category, Control, Domain, Priority
from cmmcdoc.errors import CatalogError

logger = logging.getLogger(__name__)


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise CatalogError(f"Missing required key '{key}' in {where}")
    return data[key]


def _parse_priority(value: Any, where: str, default: Priority | None = None) -> Priority:
    if value is None and default is not None:
        return default
    try:
        return Priority(str(value).lower())
    except ValueError as e:
        valid = ", ".join(p.value for p in Priority)
        raise CatalogError(
            f"Invalid priority '{value}' in {where}. Must be one of: {valid}"
        ) from e


def _parse_control(data: dict[str, Any], domain_name: str) -> Control:
    control_id = str(_require(data, "id", f"domain '{domain_name}'"))
    where = f"control '{control_id}'"

    example_count = data.get("exampleCount", data.get("example_count"))
    if example_count is None and isinstance(data.get("examples"), list):
        example_count = len(data["examples"])
    if example_count is not None:
        if isinstance(example_count, bool) or not isinstance(example_count, int):
            raise CatalogError(f"exampleCount must be an integer in {where}")

    references = data.get("references") or []
    if isinstance(references, str):
        references = [references]

    return Control(
        id=control_id,
        text=str(_require(data, "text", where)),
        guidance=str(data.get("guidance", "")),
        priority=_parse_priority(data.get("priority"), where),
        domain=domain_name,
        example_count=example_count,
        references=tuple(str(r) for r in references),
    )


def _parse_domain(data: dict[str, Any]) -> Domain:
    name = str(_require(data, "name", "catalog domain"))
    domain_id = str(data.get("id") or name.lower().replace(" ", "-"))
    where = f"domain '{name}'"

    categories = []
    for category_data in data.get("categories") or []:
        category_name = str(category_data.get("name") or name)
        categories.append(
            Category(
                id=str(category_data.get("id") or category_name.lower().replace(" ", "-")),
                name=category_name,
                description=str(category_data.get("description", "")),
                controls=[
                    _parse_control(c, name) for c in category_data.get("controls") or []
                ],
            )
        )

    return Domain(
        id=domain_id,
        name=name,
        abbreviation=str(data.get("abbreviation", "")),
        description=str(data.get("description", "")),
        priority=_parse_priority(data.get("priority"), where, default=Priority.MEDIUM),
        categories=categories,
    )


def catalog_from_dict(data: dict[str, Any]) -> Catalog:
    """
    Build a Catalog from a parsed dictionary.

    Args:
        data: Catalog tree with a "domains" list.

    Returns:
        Catalog instance.

    Raises:
        CatalogError: If required keys are missing or priorities are invalid.
    """
    if not isinstance(data, dict):
        raise CatalogError("Catalog root must be a mapping")
    if not isinstance(data.get("domains"), list):
        raise CatalogError("Catalog must contain a 'domains' list")

    domains = [_parse_domain(d) for d in data["domains"]]
    name = str(data.get("name", "Custom Catalog"))
    return Catalog(
        id=str(data.get("id") or name.lower().replace(" ", "-")),
        name=name,
        version=str(data.get("version", "")),
        description=str(data.get("description", "")),
        domains=domains,
    )


def load_catalog(path: Path | str) -> Catalog:
    """
    Load a control catalog from a YAML or JSON file.

    Files ending in .json are parsed as JSON, everything else as YAML.

    Args:
        path: Path to the catalog file.

    Returns:
        Loaded Catalog.

    Raises:
        CatalogError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        with open(path) as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in catalog file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in catalog file {path}: {e}") from e

    catalog = catalog_from_dict(data)
    logger.info("Loaded catalog %s with %d controls from %s", catalog.id, len(catalog), path)
    return catalog

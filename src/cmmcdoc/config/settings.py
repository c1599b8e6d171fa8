"""
Configuration settings management for cmmcdoc.

This module handles loading, validating, and saving configuration settings
from YAML files with support for environment variable overrides.

Configuration is loaded from ~/.cmmcdoc/config.yaml by default, with the
path overridable via the CMMCDOC_CONFIG environment variable.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cmmcdoc.assessment.estimator import EstimationPolicy
from cmmcdoc.assessment.models import OrganizationInfo
from cmmcdoc.errors import CmmcdocError

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".cmmcdoc"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_MERGE_PRECEDENCE = ("defaults", "caller")


@dataclass
class OrganizationConfig:
    """Default organization metadata used when an input omits it."""

    name: str = ""
    address: str = ""
    contact: str = ""
    system_name: str = ""
    system_description: str = ""
    responsible_parties: list[str] = field(default_factory=list)

    def to_organization_info(self) -> OrganizationInfo:
        """Build an OrganizationInfo from these defaults."""
        return OrganizationInfo(
            name=self.name,
            address=self.address,
            contact=self.contact,
            system_name=self.system_name,
            system_description=self.system_description,
            responsible_parties=list(self.responsible_parties),
        )


@dataclass
class EstimationConfig:
    """Cost and effort estimation settings."""

    hourly_rate: float = 150.0
    hours_per_day: float = 8.0
    not_implemented_multiplier: float = 1.5
    default_complexity: int = 3

    def to_policy(self) -> EstimationPolicy:
        """Build an EstimationPolicy; lookup tables keep their defaults."""
        return EstimationPolicy(
            hourly_rate=self.hourly_rate,
            hours_per_day=self.hours_per_day,
            not_implemented_multiplier=self.not_implemented_multiplier,
            default_complexity=self.default_complexity,
        )


@dataclass
class RaciConfig:
    """RACI matrix settings."""

    include_default_roles: bool = False
    merge_precedence: str = "defaults"


@dataclass
class RenderingConfig:
    """Placeholder substitution settings."""

    strict_placeholders: bool = False
    date_format: str = "%B %d, %Y"
    review_offset_days: int = 180


@dataclass
class ExportConfig:
    """Export settings."""

    render_pdf: bool = False


@dataclass
class Settings:
    """
    Complete cmmcdoc configuration settings.

    This dataclass represents all configuration options available in cmmcdoc.
    Settings are loaded from a YAML configuration file and can be overridden
    by environment variables prefixed with CMMCDOC_.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
        output_dir: Default directory for generated documents.
        organization: Default organization metadata.
        estimation: Cost and effort estimation settings.
        raci: RACI matrix settings.
        rendering: Placeholder substitution settings.
        export: Export settings.
    """

    log_level: str = "INFO"
    output_dir: str = str(DEFAULT_CONFIG_DIR / "documents")

    organization: OrganizationConfig = field(default_factory=OrganizationConfig)
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    raci: RaciConfig = field(default_factory=RaciConfig)
    rendering: RenderingConfig = field(default_factory=RenderingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)


class ConfigurationError(CmmcdocError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from CMMCDOC_CONFIG environment variable if set,
    otherwise returns the default path (~/.cmmcdoc/config.yaml).

    Returns:
        Path to the configuration file.
    """
    env_path = os.environ.get("CMMCDOC_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> Settings:
    """
    Load configuration from YAML file.

    Reads configuration from the specified path (or default if not provided),
    applies environment variable overrides, and validates the configuration.

    Args:
        config_path: Optional path to configuration file. If not provided,
                    uses CMMCDOC_CONFIG environment variable or default path.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
                          contains invalid settings.
    """
    if config_path is None:
        config_path = get_config_path()

    settings = Settings()

    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a mapping")

        try:
            settings = _apply_config_data(settings, config_data)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value in config file: {e}") from e

    try:
        settings = _apply_environment_overrides(settings)
    except ValueError as e:
        raise ConfigurationError(f"Invalid environment override: {e}") from e

    _validate_config(settings)

    return settings


def save_config(settings: Settings, config_path: Path | None = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        settings: Settings instance to save.
        config_path: Optional path to configuration file.

    Raises:
        ConfigurationError: If the configuration cannot be written.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_data = _settings_to_dict(settings)

    try:
        with open(config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Cannot write config file: {e}") from e


def _parse_bool(value: Any) -> bool:
    """Parse a YAML or environment boolean."""
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Apply configuration data from parsed YAML to settings."""
    cmmcdoc_data = data.get("cmmcdoc") or {}

    if "log_level" in cmmcdoc_data:
        settings.log_level = str(cmmcdoc_data["log_level"]).upper()
    if "output_dir" in cmmcdoc_data:
        settings.output_dir = str(cmmcdoc_data["output_dir"])

    organization = data.get("organization") or {}
    for key in ("name", "address", "contact", "system_name", "system_description"):
        if key in organization:
            setattr(settings.organization, key, str(organization[key] or ""))
    if "responsible_parties" in organization:
        settings.organization.responsible_parties = [
            str(p) for p in organization["responsible_parties"] or []
        ]

    estimation = data.get("estimation") or {}
    if "hourly_rate" in estimation:
        settings.estimation.hourly_rate = float(estimation["hourly_rate"])
    if "hours_per_day" in estimation:
        settings.estimation.hours_per_day = float(estimation["hours_per_day"])
    if "not_implemented_multiplier" in estimation:
        settings.estimation.not_implemented_multiplier = float(
            estimation["not_implemented_multiplier"]
        )
    if "default_complexity" in estimation:
        settings.estimation.default_complexity = int(estimation["default_complexity"])

    raci = data.get("raci") or {}
    if "include_default_roles" in raci:
        settings.raci.include_default_roles = _parse_bool(raci["include_default_roles"])
    if "merge_precedence" in raci:
        settings.raci.merge_precedence = str(raci["merge_precedence"]).lower()

    rendering = data.get("rendering") or {}
    if "strict_placeholders" in rendering:
        settings.rendering.strict_placeholders = _parse_bool(rendering["strict_placeholders"])
    if "date_format" in rendering:
        settings.rendering.date_format = str(rendering["date_format"])
    if "review_offset_days" in rendering:
        settings.rendering.review_offset_days = int(rendering["review_offset_days"])

    export = data.get("export") or {}
    if "render_pdf" in export:
        settings.export.render_pdf = _parse_bool(export["render_pdf"])

    return settings


def _apply_environment_overrides(settings: Settings) -> Settings:
    """Apply environment variable overrides to settings."""
    env_map: dict[str, tuple[str, Callable[[str], Any]]] = {
        "CMMCDOC_LOG_LEVEL": ("log_level", lambda x: x.upper()),
        "CMMCDOC_OUTPUT_DIR": ("output_dir", str),
        "CMMCDOC_ORGANIZATION": ("organization.name", str),
        "CMMCDOC_SYSTEM_NAME": ("organization.system_name", str),
        "CMMCDOC_HOURLY_RATE": ("estimation.hourly_rate", float),
        "CMMCDOC_STRICT_PLACEHOLDERS": ("rendering.strict_placeholders", _parse_bool),
    }

    for env_var, (attr_path, converter) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested_attr(settings, attr_path, converter(value))

    return settings


def _set_nested_attr(obj: Any, path: str, value: Any) -> None:
    """Set a nested attribute on an object using dot notation."""
    parts = path.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    setattr(obj, parts[-1], value)


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    if settings.log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log_level: {settings.log_level}. "
            f"Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if settings.estimation.hourly_rate <= 0:
        raise ConfigurationError("hourly_rate must be positive")
    if settings.estimation.hours_per_day <= 0:
        raise ConfigurationError("hours_per_day must be positive")
    if settings.estimation.not_implemented_multiplier <= 0:
        raise ConfigurationError("not_implemented_multiplier must be positive")
    if settings.estimation.default_complexity < 0:
        raise ConfigurationError("default_complexity must not be negative")

    if settings.raci.merge_precedence not in VALID_MERGE_PRECEDENCE:
        raise ConfigurationError(
            f"Invalid merge_precedence: {settings.raci.merge_precedence}. "
            f"Must be one of: {', '.join(VALID_MERGE_PRECEDENCE)}"
        )

    if settings.rendering.review_offset_days < 0:
        raise ConfigurationError("review_offset_days must not be negative")


def _settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert Settings instance to dictionary for YAML serialization."""
    return {
        "cmmcdoc": {
            "log_level": settings.log_level,
            "output_dir": settings.output_dir,
        },
        "organization": {
            "name": settings.organization.name,
            "address": settings.organization.address,
            "contact": settings.organization.contact,
            "system_name": settings.organization.system_name,
            "system_description": settings.organization.system_description,
            "responsible_parties": list(settings.organization.responsible_parties),
        },
        "estimation": {
            "hourly_rate": settings.estimation.hourly_rate,
            "hours_per_day": settings.estimation.hours_per_day,
            "not_implemented_multiplier": settings.estimation.not_implemented_multiplier,
            "default_complexity": settings.estimation.default_complexity,
        },
        "raci": {
            "include_default_roles": settings.raci.include_default_roles,
            "merge_precedence": settings.raci.merge_precedence,
        },
        "rendering": {
            "strict_placeholders": settings.rendering.strict_placeholders,
            "date_format": settings.rendering.date_format,
            "review_offset_days": settings.rendering.review_offset_days,
        },
        "export": {
            "render_pdf": settings.export.render_pdf,
        },
    }

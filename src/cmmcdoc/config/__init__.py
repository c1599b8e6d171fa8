"""
Configuration management for cmmcdoc.

This module handles loading, validating, and saving configuration settings:
organization defaults, estimation rates, RACI role merging, placeholder
rendering and export options.
"""

from cmmcdoc.config.settings import (
    ConfigurationError,
    EstimationConfig,
    ExportConfig,
    OrganizationConfig,
    RaciConfig,
    RenderingConfig,
    Settings,
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    # Settings
    "Settings",
    "OrganizationConfig",
    "EstimationConfig",
    "RaciConfig",
    "RenderingConfig",
    "ExportConfig",
    # Loading
    "load_config",
    "save_config",
    "get_config_path",
    "ConfigurationError",
]

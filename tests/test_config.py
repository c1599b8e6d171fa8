"""Tests for configuration settings."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from cmmcdoc.assessment.estimator import EstimationPolicy
from cmmcdoc.config.settings import (
    DEFAULT_CONFIG_FILE,
    ConfigurationError,
    EstimationConfig,
    OrganizationConfig,
    Settings,
    _apply_environment_overrides,
    _parse_bool,
    _set_nested_attr,
    _settings_to_dict,
    _validate_config,
    get_config_path,
    load_config,
    save_config,
)


class ConfigTestCase(unittest.TestCase):
    """Base class isolating tests from CMMCDOC_* environment variables."""

    def setUp(self) -> None:
        self.env_patcher = patch.dict(os.environ)
        self.env_patcher.start()
        for key in [k for k in os.environ if k.startswith("CMMCDOC_")]:
            del os.environ[key]
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.temp_dir.name) / "config.yaml"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()
        self.env_patcher.stop()

    def write_config(self, data: object) -> None:
        self.config_path.write_text(yaml.safe_dump(data))


class TestSettingsDefaults(unittest.TestCase):
    """Tests for default settings values."""

    def test_defaults(self) -> None:
        """Test default values."""
        settings = Settings()
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.estimation.hourly_rate, 150.0)
        self.assertEqual(settings.estimation.hours_per_day, 8.0)
        self.assertFalse(settings.raci.include_default_roles)
        self.assertEqual(settings.raci.merge_precedence, "defaults")
        self.assertEqual(settings.rendering.review_offset_days, 180)
        self.assertFalse(settings.rendering.strict_placeholders)
        self.assertFalse(settings.export.render_pdf)

    def test_estimation_policy(self) -> None:
        """Test conversion to an estimation policy."""
        policy = EstimationConfig(hourly_rate=100.0, default_complexity=2).to_policy()
        self.assertIsInstance(policy, EstimationPolicy)
        self.assertEqual(policy.hourly_rate, 100.0)
        self.assertEqual(policy.default_complexity, 2)
        self.assertEqual(policy.hours_per_day, 8.0)

    def test_organization_info(self) -> None:
        """Test conversion to organization info."""
        config = OrganizationConfig(
            name="Acme Corp", system_name="Payroll", responsible_parties=["Ops"]
        )
        org = config.to_organization_info()
        self.assertEqual(org.name, "Acme Corp")
        self.assertEqual(org.system_name, "Payroll")
        self.assertEqual(org.responsible_parties, ["Ops"])
        self.assertEqual(org.roles, [])


class TestLoadConfig(ConfigTestCase):
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self) -> None:
        """Test that a missing file yields default settings."""
        settings = load_config(self.config_path)
        self.assertEqual(settings, Settings())

    def test_load_values(self) -> None:
        """Test loading every section."""
        self.write_config(
            {
                "cmmcdoc": {"log_level": "debug", "output_dir": "/tmp/docs"},
                "organization": {
                    "name": "Acme Corp",
                    "system_name": "Payroll",
                    "responsible_parties": ["Security Team"],
                },
                "estimation": {"hourly_rate": 120, "default_complexity": 4},
                "raci": {"include_default_roles": "yes", "merge_precedence": "CALLER"},
                "rendering": {"strict_placeholders": True, "review_offset_days": 90},
                "export": {"render_pdf": "on"},
            }
        )
        settings = load_config(self.config_path)
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.output_dir, "/tmp/docs")
        self.assertEqual(settings.organization.name, "Acme Corp")
        self.assertEqual(settings.organization.responsible_parties, ["Security Team"])
        self.assertEqual(settings.estimation.hourly_rate, 120.0)
        self.assertEqual(settings.estimation.default_complexity, 4)
        self.assertTrue(settings.raci.include_default_roles)
        self.assertEqual(settings.raci.merge_precedence, "caller")
        self.assertTrue(settings.rendering.strict_placeholders)
        self.assertEqual(settings.rendering.review_offset_days, 90)
        self.assertTrue(settings.export.render_pdf)

    def test_empty_file(self) -> None:
        """Test that an empty file yields defaults."""
        self.config_path.write_text("")
        self.assertEqual(load_config(self.config_path).log_level, "INFO")

    def test_invalid_yaml(self) -> None:
        """Test that malformed YAML raises ConfigurationError."""
        self.config_path.write_text("cmmcdoc: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            load_config(self.config_path)

    def test_non_mapping(self) -> None:
        """Test that a list document is rejected."""
        self.write_config(["a", "b"])
        with self.assertRaises(ConfigurationError):
            load_config(self.config_path)

    def test_invalid_value(self) -> None:
        """Test that non-numeric rates are rejected."""
        self.write_config({"estimation": {"hourly_rate": "expensive"}})
        with self.assertRaises(ConfigurationError):
            load_config(self.config_path)

    def test_invalid_boolean(self) -> None:
        """Test that unparseable booleans are rejected."""
        self.write_config({"export": {"render_pdf": "maybe"}})
        with self.assertRaises(ConfigurationError):
            load_config(self.config_path)

    def test_environment_overrides(self) -> None:
        """Test that environment variables win over the file."""
        self.write_config({"organization": {"name": "File Corp"}})
        with patch.dict(
            os.environ,
            {
                "CMMCDOC_ORGANIZATION": "Env Corp",
                "CMMCDOC_LOG_LEVEL": "warning",
                "CMMCDOC_HOURLY_RATE": "200",
                "CMMCDOC_STRICT_PLACEHOLDERS": "true",
            },
        ):
            settings = load_config(self.config_path)
        self.assertEqual(settings.organization.name, "Env Corp")
        self.assertEqual(settings.log_level, "WARNING")
        self.assertEqual(settings.estimation.hourly_rate, 200.0)
        self.assertTrue(settings.rendering.strict_placeholders)

    def test_invalid_environment_override(self) -> None:
        """Test that a malformed environment value raises."""
        with patch.dict(os.environ, {"CMMCDOC_HOURLY_RATE": "lots"}):
            with self.assertRaises(ConfigurationError) as cm:
                load_config(self.config_path)
        self.assertIn("Invalid environment override", str(cm.exception))

    def test_validation_runs_after_overrides(self) -> None:
        """Test that overrides are validated."""
        with patch.dict(os.environ, {"CMMCDOC_LOG_LEVEL": "verbose"}):
            with self.assertRaises(ConfigurationError):
                load_config(self.config_path)


class TestSaveConfig(ConfigTestCase):
    """Tests for save_config."""

    def test_round_trip(self) -> None:
        """Test that saved settings load back unchanged."""
        settings = Settings()
        settings.organization.name = "Acme Corp"
        settings.organization.responsible_parties = ["Ops", "Security"]
        settings.estimation.hourly_rate = 175.0
        settings.raci.merge_precedence = "caller"

        nested = Path(self.temp_dir.name) / "nested" / "config.yaml"
        save_config(settings, nested)
        self.assertTrue(nested.exists())
        self.assertEqual(load_config(nested), settings)

    def test_settings_to_dict(self) -> None:
        """Test the serialized layout."""
        data = _settings_to_dict(Settings())
        self.assertEqual(
            list(data),
            ["cmmcdoc", "organization", "estimation", "raci", "rendering", "export"],
        )
        self.assertEqual(data["estimation"]["hourly_rate"], 150.0)


class TestConfigPath(ConfigTestCase):
    """Tests for get_config_path."""

    def test_default_path(self) -> None:
        """Test the default configuration path."""
        self.assertEqual(get_config_path(), DEFAULT_CONFIG_FILE)

    def test_environment_path(self) -> None:
        """Test the CMMCDOC_CONFIG override."""
        with patch.dict(os.environ, {"CMMCDOC_CONFIG": str(self.config_path)}):
            self.assertEqual(get_config_path(), self.config_path)
            self.write_config({"cmmcdoc": {"log_level": "ERROR"}})
            self.assertEqual(load_config().log_level, "ERROR")


class TestHelpers(ConfigTestCase):
    """Tests for private helpers."""

    def test_parse_bool(self) -> None:
        """Test boolean parsing."""
        self.assertTrue(_parse_bool(True))
        self.assertTrue(_parse_bool("Yes"))
        self.assertTrue(_parse_bool("1"))
        self.assertFalse(_parse_bool("off"))
        self.assertFalse(_parse_bool(""))
        with self.assertRaises(ValueError):
            _parse_bool("sometimes")

    def test_set_nested_attr(self) -> None:
        """Test dot-path attribute assignment."""
        settings = Settings()
        _set_nested_attr(settings, "rendering.date_format", "%Y-%m-%d")
        _set_nested_attr(settings, "log_level", "DEBUG")
        self.assertEqual(settings.rendering.date_format, "%Y-%m-%d")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_apply_environment_overrides(self) -> None:
        """Test override application on its own."""
        with patch.dict(os.environ, {"CMMCDOC_SYSTEM_NAME": "Payroll"}):
            settings = _apply_environment_overrides(Settings())
        self.assertEqual(settings.organization.system_name, "Payroll")

    def test_validate_config(self) -> None:
        """Test each validation rule."""
        _validate_config(Settings())

        cases = [
            ("log_level", "LOUD"),
            ("estimation.hourly_rate", 0.0),
            ("estimation.hours_per_day", -1.0),
            ("estimation.not_implemented_multiplier", 0.0),
            ("estimation.default_complexity", -1),
            ("raci.merge_precedence", "newest"),
            ("rendering.review_offset_days", -5),
        ]
        for path, value in cases:
            with self.subTest(path=path):
                settings = Settings()
                _set_nested_attr(settings, path, value)
                with self.assertRaises(ConfigurationError):
                    _validate_config(settings)


if __name__ == "__main__":
    unittest.main()

"""Tests for configuration management."""

import json
import unittest
import tempfile
import shutil
from pathlib import Path

from config import AdvisorConfig, ConfigStorage, ConfigValidator
from config.advisor_config import ENV_DATABASE, ENV_REPORT_DIR, ENV_STORE_URL


class TestAdvisorConfig(unittest.TestCase):
    """Test AdvisorConfig model."""

    def test_defaults(self):
        """Test default thresholds and capacities."""
        config = AdvisorConfig()
        self.assertEqual(config.slow_query_threshold_ms, 100)
        self.assertEqual(config.sample_capacity, 100)
        self.assertEqual(config.slow_log_capacity, 50)
        self.assertEqual(config.duplicate_window_ms, 60000)
        self.assertEqual(config.duplicate_threshold_ms, 1000)
        self.assertTrue(config.background_index_build)

    def test_dict_round_trip(self):
        """Test serialization round trip."""
        config = AdvisorConfig(store_url='mongodb://db:27017', database_name='shop',
                               monitored_collections=['orders'], max_workers=8,
                               index_rules=[{'collection': 'carts', 'fields': ['user']}])
        restored = AdvisorConfig.from_dict(config.to_dict())
        self.assertEqual(restored, config)

    def test_from_dict_partial(self):
        """Test missing keys fall back to defaults."""
        config = AdvisorConfig.from_dict({'store_url': 'sqlite:///x.db', 'unknown': 1})
        self.assertEqual(config.store_url, 'sqlite:///x.db')
        self.assertEqual(config.report_dir, 'performance-reports')

    def test_env_overrides(self):
        """Test environment variables win over stored values."""
        config = AdvisorConfig(store_url='sqlite:///a.db').apply_env({
            ENV_STORE_URL: 'mongodb://prod:27017',
            ENV_DATABASE: 'shop',
            ENV_REPORT_DIR: '/var/reports',
        })
        self.assertEqual(config.store_url, 'mongodb://prod:27017')
        self.assertEqual(config.database_name, 'shop')
        self.assertEqual(config.report_dir, '/var/reports')

    def test_empty_env_ignored(self):
        """Test blank variables do not override."""
        config = AdvisorConfig.from_env({ENV_STORE_URL: ''})
        self.assertEqual(config.store_url, AdvisorConfig().store_url)


class TestConfigStorage(unittest.TestCase):
    """Test configuration storage."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.storage = ConfigStorage(self.temp_dir)

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir)

    def test_load_missing(self):
        """Test loading when no file exists."""
        self.assertIsNone(self.storage.load_config())
        self.assertFalse(self.storage.exists())

    def test_save_and_load(self):
        """Test saving then loading."""
        config = AdvisorConfig(store_url='sqlite:///shop.db', slow_query_threshold_ms=250)
        path = self.storage.save_config(config)

        self.assertEqual(path, Path(self.temp_dir) / '.db_advisor' / 'advisor_config.json')
        self.assertEqual(self.storage.load_config(), config)

    def test_backup_on_overwrite(self):
        """Test the previous file is kept as .backup."""
        self.storage.save_config(AdvisorConfig(max_workers=2))
        self.storage.save_config(AdvisorConfig(max_workers=3))

        backup = self.storage.config_file.with_suffix('.backup')
        with open(backup) as f:
            self.assertEqual(json.load(f)['max_workers'], 2)
        self.assertFalse(self.storage.config_file.with_suffix('.tmp').exists())

    def test_corrupt_file_returns_none(self):
        """Test invalid JSON is reported as no configuration."""
        self.storage.config_dir.mkdir(parents=True)
        self.storage.config_file.write_text('{not json')
        self.assertIsNone(self.storage.load_config())


class TestConfigValidator(unittest.TestCase):
    """Test configuration validation."""

    def setUp(self):
        """Set up test fixtures."""
        self.validator = ConfigValidator()

    def test_valid_defaults(self):
        """Test the default configuration is valid."""
        is_valid, errors = self.validator.validate_config(AdvisorConfig())
        self.assertTrue(is_valid, errors)

    def test_invalid_values(self):
        """Test each invalid field is reported."""
        config = AdvisorConfig(store_url='postgres://x', monitored_collections=['ok', '1bad name'],
                               slow_query_threshold_ms=-1, sample_capacity=0,
                               max_workers=0, read_timeout_seconds=0)
        is_valid, errors = self.validator.validate_config(config)

        self.assertFalse(is_valid)
        self.assertIn("Unsupported store URL: postgres://x", errors)
        self.assertIn("Invalid collection name: 1bad name", errors)
        self.assertIn("Slow query threshold cannot be negative", errors)
        self.assertIn("Sample capacity must be at least 1", errors)
        self.assertIn("Max workers must be at least 1", errors)
        self.assertIn("Read timeout must be positive", errors)

    def test_threshold_exceeds_window(self):
        """Test the duplicate threshold must fit inside the window."""
        config = AdvisorConfig(duplicate_window_ms=500, duplicate_threshold_ms=1000)
        is_valid, errors = self.validator.validate_config(config)
        self.assertFalse(is_valid)

    def test_invalid_index_rule(self):
        """Test malformed extra rules are rejected."""
        config = AdvisorConfig(index_rules=[{'collection': 'carts', 'fields': ['user'], 'priority': 'urgent'}])
        is_valid, errors = self.validator.validate_config(config)
        self.assertFalse(is_valid)
        self.assertTrue(errors[0].startswith("Invalid index rule"))


if __name__ == '__main__':
    unittest.main()

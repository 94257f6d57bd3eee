"""Configuration validation."""

import re
from typing import List, Tuple

from advisor.index_rules import load_rules
from .advisor_config import AdvisorConfig


class ConfigValidator:
    """Validates advisor configurations."""

    # Collection and table names: letters, digits, underscore, dot, dash
    COLLECTION_PATTERN = re.compile(r'^[A-Za-z_][\w.\-]*$')

    SUPPORTED_SCHEMES = ('mongodb://', 'mongodb+srv://', 'sqlite:///')

    def validate_config(self, config: AdvisorConfig) -> Tuple[bool, List[str]]:
        """
        Validate an advisor configuration.

        Args:
            config: Configuration to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        # Validate store URL
        if not config.store_url or not config.store_url.strip():
            errors.append("Store URL cannot be empty")
        elif '://' in config.store_url and not config.store_url.startswith(self.SUPPORTED_SCHEMES):
            errors.append(f"Unsupported store URL: {config.store_url}")

        # Validate collections
        for name in config.monitored_collections:
            if not isinstance(name, str) or not self.COLLECTION_PATTERN.match(name):
                errors.append(f"Invalid collection name: {name}")

        # Validate thresholds
        if config.slow_query_threshold_ms < 0:
            errors.append("Slow query threshold cannot be negative")
        if config.duplicate_window_ms <= 0:
            errors.append("Duplicate window must be positive")
        if config.duplicate_threshold_ms <= 0:
            errors.append("Duplicate threshold must be positive")
        elif config.duplicate_threshold_ms > config.duplicate_window_ms:
            errors.append("Duplicate threshold cannot exceed the duplicate window")

        # Validate capacities
        if config.sample_capacity < 1:
            errors.append("Sample capacity must be at least 1")
        if config.slow_log_capacity < 1:
            errors.append("Slow log capacity must be at least 1")
        if config.max_workers < 1:
            errors.append("Max workers must be at least 1")
        elif config.max_workers > 64:
            errors.append("Max workers too large (max 64)")

        if config.read_timeout_seconds is not None and config.read_timeout_seconds <= 0:
            errors.append("Read timeout must be positive")

        if not config.report_dir:
            errors.append("Report directory cannot be empty")

        # Validate extra index rules
        try:
            load_rules(config.index_rules)
        except (KeyError, ValueError, TypeError) as e:
            errors.append(f"Invalid index rule: {e}")

        return len(errors) == 0, errors

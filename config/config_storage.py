"""Configuration persistence and storage."""

import json
import logging
import shutil
from pathlib import Path
from typing import Optional

from .advisor_config import AdvisorConfig

logger = logging.getLogger(__name__)


class ConfigStorage:
    """Handles configuration file persistence."""

    CONFIG_FILENAME = "advisor_config.json"
    CONFIG_DIR = ".db_advisor"

    def __init__(self, base_path: Optional[str] = None):
        """Initialize configuration storage."""
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self.config_dir = self.base_path / self.CONFIG_DIR
        self.config_file = self.config_dir / self.CONFIG_FILENAME

    def _ensure_config_dir(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.config_file.exists()

    def load_config(self) -> Optional[AdvisorConfig]:
        """
        Load configuration from file.

        Returns:
            AdvisorConfig if exists and valid, None otherwise
        """
        if not self.config_file.exists():
            return None

        try:
            with open(self.config_file, 'r') as f:
                data = json.load(f)
            return AdvisorConfig.from_dict(data)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load config from {self.config_file}: {e}")
            return None

    def load_effective(self) -> AdvisorConfig:
        """Stored configuration (or defaults) with environment overrides applied."""
        config = self.load_config() or AdvisorConfig()
        return config.apply_env()

    def save_config(self, config: AdvisorConfig) -> Path:
        """
        Save configuration to file with atomic write.

        Args:
            config: Configuration to save

        Returns:
            Path of the written file
        """
        self._ensure_config_dir()
        json_content = json.dumps(config.to_dict(), indent=2)

        # Atomic write with backup
        temp_file = self.config_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w') as f:
                f.write(json_content)

            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.backup')
                shutil.copy2(self.config_file, backup_file)

            temp_file.replace(self.config_file)
        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

        logger.info(f"Saved advisor configuration to {self.config_file}")
        return self.config_file

    def get_config_path(self) -> Path:
        return self.config_file

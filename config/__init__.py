"""Configuration management module for the database performance advisor."""

from .advisor_config import AdvisorConfig
from .config_storage import ConfigStorage
from .config_validator import ConfigValidator

__all__ = [
    'AdvisorConfig',
    'ConfigStorage',
    'ConfigValidator'
]

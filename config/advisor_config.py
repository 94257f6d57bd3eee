"""Configuration model for the performance advisor."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

ENV_STORE_URL = 'DB_ADVISOR_STORE_URL'
ENV_DATABASE = 'DB_ADVISOR_DATABASE'
ENV_REPORT_DIR = 'DB_ADVISOR_REPORT_DIR'

DEFAULT_STORE_URL = 'sqlite:///app.db'


@dataclass
class AdvisorConfig:
    """Settings shared by the CLI, MCP server and scheduled tasks."""
    store_url: str = DEFAULT_STORE_URL
    database_name: Optional[str] = None
    monitored_collections: List[str] = field(default_factory=list)  # empty = rule table collections
    slow_query_threshold_ms: float = 100
    sample_capacity: int = 100
    slow_log_capacity: int = 50
    duplicate_window_ms: float = 60000
    duplicate_threshold_ms: float = 1000
    read_timeout_seconds: Optional[float] = 30
    background_index_build: bool = True
    report_dir: str = 'performance-reports'
    image_dir: Optional[str] = None
    max_workers: int = 4
    index_rules: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'store_url': self.store_url,
            'database_name': self.database_name,
            'monitored_collections': list(self.monitored_collections),
            'slow_query_threshold_ms': self.slow_query_threshold_ms,
            'sample_capacity': self.sample_capacity,
            'slow_log_capacity': self.slow_log_capacity,
            'duplicate_window_ms': self.duplicate_window_ms,
            'duplicate_threshold_ms': self.duplicate_threshold_ms,
            'read_timeout_seconds': self.read_timeout_seconds,
            'background_index_build': self.background_index_build,
            'report_dir': self.report_dir,
            'image_dir': self.image_dir,
            'max_workers': self.max_workers,
            'index_rules': [dict(rule) for rule in self.index_rules]
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AdvisorConfig':
        """Create from dictionary. Unknown keys are ignored, missing keys take defaults."""
        defaults = cls()
        return cls(
            store_url=data.get('store_url', defaults.store_url),
            database_name=data.get('database_name'),
            monitored_collections=list(data.get('monitored_collections', [])),
            slow_query_threshold_ms=data.get('slow_query_threshold_ms', defaults.slow_query_threshold_ms),
            sample_capacity=data.get('sample_capacity', defaults.sample_capacity),
            slow_log_capacity=data.get('slow_log_capacity', defaults.slow_log_capacity),
            duplicate_window_ms=data.get('duplicate_window_ms', defaults.duplicate_window_ms),
            duplicate_threshold_ms=data.get('duplicate_threshold_ms', defaults.duplicate_threshold_ms),
            read_timeout_seconds=data.get('read_timeout_seconds', defaults.read_timeout_seconds),
            background_index_build=data.get('background_index_build', defaults.background_index_build),
            report_dir=data.get('report_dir', defaults.report_dir),
            image_dir=data.get('image_dir'),
            max_workers=data.get('max_workers', defaults.max_workers),
            index_rules=list(data.get('index_rules', []))
        )

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> 'AdvisorConfig':
        """Override connection and output settings from environment variables."""
        environ = os.environ if environ is None else environ
        if environ.get(ENV_STORE_URL):
            self.store_url = environ[ENV_STORE_URL]
        if environ.get(ENV_DATABASE):
            self.database_name = environ[ENV_DATABASE]
        if environ.get(ENV_REPORT_DIR):
            self.report_dir = environ[ENV_REPORT_DIR]
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'AdvisorConfig':
        return cls().apply_env(environ)

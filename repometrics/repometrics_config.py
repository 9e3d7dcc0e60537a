"""
Configuration module for repometrics.

Provides a dataclass-based configuration with sensible defaults
and a global configuration accessor.
"""

from dataclasses import dataclass, field, fields
from typing import Optional
import os


@dataclass
class RepoMetricsConfig:
    """Configuration settings for a repometrics run."""

    # Commit selection
    branch: str = ''
    first_parent: bool = False
    include_merges: bool = False
    sample_every: int = 1
    max_commits: Optional[int] = None

    # Blob handling
    max_file_bytes: int = 1_000_000

    # Output settings
    output_prefix: str = 'metrics'
    msg_avg_window: int = 50
    csv_decimals: int = 2
    chart_src: str = ''
    export_json: bool = False
    export_yaml: bool = False

    # Processing settings (optimized for low-resource systems)
    processes: int = field(default_factory=lambda: min(2, os.cpu_count() or 1))
    progress_interval: int = 50
    max_memory_mb: int = 2048

    # Repository acquisition
    keep_temp: bool = False
    dry_run: bool = False

    # Debug settings
    debug: bool = False
    verbose: bool = False

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict) -> 'RepoMetricsConfig':
        """Create config from dictionary, ignoring unknown keys."""
        config = cls()
        for key, value in d.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config

    def apply_override(self, assignment: str) -> None:
        """
        Apply a ``key=value`` override, coercing the value to the field type.

        Args:
            assignment: Override string as given to ``-c``

        Raises:
            ValueError: If the assignment is malformed or the value does not parse
            KeyError: If the key is not a configuration field
        """
        if '=' not in assignment:
            raise ValueError('Invalid configuration format. Use key=value: %s' % assignment)
        key, value = assignment.split('=', 1)
        key = key.strip()
        if key not in self.to_dict():
            raise KeyError('no such key "%s" in config' % key)

        current = getattr(self, key)
        if isinstance(current, bool):
            setattr(self, key, value.lower() in ('true', '1', 'yes', 'on'))
        elif isinstance(current, int) or key == 'max_commits':
            if key == 'max_commits' and value.lower() in ('', 'none'):
                setattr(self, key, None)
            else:
                setattr(self, key, int(value))
        else:
            setattr(self, key, value)


# Global configuration instance
_config: RepoMetricsConfig = RepoMetricsConfig()


def get_config() -> RepoMetricsConfig:
    """Get the global configuration instance."""
    return _config


def set_config(config: RepoMetricsConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config

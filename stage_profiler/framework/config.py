"""
Configuration Management

YAML-based configuration for metrics collection and aggregation.
"""

from dataclasses import dataclass

import yaml


@dataclass
class ProfilingConfig:
    """Configuration for stage profiling."""

    enabled: bool = True  # Whether collectors record anything
    percent_precision: int = 2  # Max decimals in the percent duration annotation
    worker_method: str = "get_metrics"  # Ray actor method returning a worker's partial tree

    def __post_init__(self):
        """Validate configuration values."""
        if self.percent_precision < 0:
            raise ValueError(f"percent_precision must be >= 0, got {self.percent_precision}")
        if not self.worker_method:
            raise ValueError("worker_method must be a non-empty method name")

    @classmethod
    def from_dict(cls, config_dict: dict | None) -> "ProfilingConfig":
        """Build configuration from a mapping, reading its `profiling` section when present.

        Args:
            config_dict: Parsed configuration (None gives defaults)

        Returns:
            ProfilingConfig instance
        """
        config_dict = config_dict or {}
        section = config_dict.get("profiling", config_dict)
        return cls(**(section or {}))

    @classmethod
    def from_yaml(cls, config_path: str) -> "ProfilingConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ProfilingConfig instance
        """
        with open(config_path) as f:
            config_dict = yaml.safe_load(f)

        return cls.from_dict(config_dict)

"""
Configuration Management
========================
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass

import yaml

from .vcp import INPUT_SOURCE_NAMES, input_source_name, parse_vcp_code

logger = logging.getLogger(__name__)


@dataclass
class DDCConfig:
    """ddcutil settings for the controlled monitor."""
    display: Optional[int] = None
    retry_count: int = 3
    sleep_multiplier: float = 1.0


class Config:
    """
    Configuration manager for source switching.

    Example file::

        monitor:
          display: 1
          ddc:
            retry_count: 3
            sleep_multiplier: 1.0
        input_sources:
          laptop: 0x0F
          desktop: 0x11
    """

    DEFAULT_CONFIG_PATH = Path.home() / ".config" / "source-switch" / "config.yaml"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to configuration file, or None for default
        """
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._data: Dict[str, Any] = {}

        self.ddc = DDCConfig()
        self.input_sources: Dict[str, int] = {}

    def load(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if configuration was loaded successfully
        """
        if not self.config_path.exists():
            logger.warning(f"Configuration file not found: {self.config_path}")
            return False

        try:
            with open(self.config_path, 'r') as f:
                self._data = yaml.safe_load(f) or {}
            if not isinstance(self._data, dict):
                raise ValueError("top level must be a mapping")
            self._parse_config()
            logger.info(f"Loaded configuration from {self.config_path}")
            return True

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse configuration: {e}")
            return False
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load configuration: {e}")
            return False

    @staticmethod
    def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
        """Get a mapping section, treating a missing/empty one as {}."""
        section = data.get(key) or {}
        if not isinstance(section, dict):
            raise ValueError(f"'{key}' must be a mapping, got {type(section).__name__}")
        return section

    def _parse_config(self):
        """Parse loaded configuration data into typed objects."""
        monitor = self._section(self._data, 'monitor')
        ddc = self._section(monitor, 'ddc')
        sources = self._section(self._data, 'input_sources')
        display = monitor.get('display')
        self.ddc = DDCConfig(
            display=int(display) if display is not None else None,
            retry_count=int(ddc.get('retry_count', 3)),
            sleep_multiplier=float(ddc.get('sleep_multiplier', 1.0)),
        )

        self.input_sources = {}
        for name, value in sources.items():
            try:
                self.input_sources[str(name).lower()] = parse_vcp_code(value)
            except ValueError as e:
                logger.warning(f"Skipping input source '{name}': {e}")

    def save(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if configuration was saved successfully
        """
        monitor = self._data.setdefault('monitor', {})
        if self.ddc.display is not None:
            monitor['display'] = self.ddc.display
        monitor['ddc'] = {
            'retry_count': self.ddc.retry_count,
            'sleep_multiplier': self.ddc.sleep_multiplier,
        }
        self._data['input_sources'] = dict(self.input_sources)

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")
            return False

    def resolve_input_source(self, name_or_value: Union[str, int]) -> Optional[int]:
        """
        Resolve an input source to its VCP 0x60 value.

        Configured names win over MCCS names ("HDMI-1", "DisplayPort-1");
        anything else is parsed as a hex value.
        """
        if isinstance(name_or_value, int):
            return name_or_value

        key = name_or_value.strip().lower()
        if key in self.input_sources:
            return self.input_sources[key]

        for value, name in INPUT_SOURCE_NAMES.items():
            if name.lower() == key:
                return value

        try:
            return parse_vcp_code(key)
        except ValueError:
            logger.warning(f"Unknown input source: {name_or_value}")
            return None

    def get_input_source_name(self, value: int) -> str:
        """Get the configured name of an input source, falling back to the MCCS name."""
        for name, val in self.input_sources.items():
            if val == value:
                return name
        return input_source_name(value)

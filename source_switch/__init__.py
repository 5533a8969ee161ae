"""
Source Switch - DDC/CI capabilities parsing and input switching
===============================================================

Read a monitor's DDC/CI capabilities string, find out which VCP features it
supports, and switch inputs or adjust settings through ddcutil:
- Lenient parser for real-world capabilities strings
- Capability-guarded get/set of VCP features
- Named input sources from a YAML config
"""

__version__ = "1.0.0"
__author__ = "Source Switch"

from .capabilities import CapabilitiesError, CapabilityReport, FeatureEntry, parse_capabilities
from .config import Config
from .ddc import DDCController, DDCError
from .vcp import VcpCode

__all__ = [
    "CapabilitiesError",
    "CapabilityReport",
    "FeatureEntry",
    "parse_capabilities",
    "Config",
    "DDCController",
    "DDCError",
    "VcpCode",
]

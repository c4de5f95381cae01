"""
Configuration handling for toolchainprobe.
"""

from toolchainprobe.core.exceptions import ConfigError
from toolchainprobe.config.parser import ProbeConfig, parse_config

__all__ = ["ConfigError", "ProbeConfig", "parse_config"]

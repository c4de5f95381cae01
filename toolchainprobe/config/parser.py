"""YAML configuration parser for toolchainprobe.

This module provides parsing and validation for toolchainprobe.yaml
configuration files, which select the compilers a ``BuildEnvironment``
probes and whether probe results are cached.

Example toolchainprobe.yaml:

    version: 1
    compilers:
      c: gcc
      cxx: g++
    cache: true
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import yaml

from ..core.exceptions import ConfigError

VALID_COMPILER_KEYS = ("c", "cxx")


@dataclass
class ProbeConfig:
    """Capability prober configuration.

    Compilers left as None fall back to $CC / $CXX, then to ``cc`` / ``c++``.
    """

    compiler_c: Optional[str] = None
    compiler_cxx: Optional[str] = None
    cache: bool = True


def parse_config(config_path: Path) -> ProbeConfig:
    """
    Parse toolchainprobe.yaml configuration file.

    Args:
        config_path: Path to toolchainprobe.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    return _parse_and_validate(data)


def _parse_and_validate(data) -> ProbeConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    compilers = _parse_compilers(data.get("compilers") or {})

    cache = data.get("cache", True)
    if not isinstance(cache, bool):
        raise ConfigError(f"cache must be true or false, got: {cache!r}")

    return ProbeConfig(
        compiler_c=compilers.get("c"),
        compiler_cxx=compilers.get("cxx"),
        cache=cache,
    )


def _parse_compilers(data) -> dict:
    """Parse the compilers section."""
    if not isinstance(data, dict):
        raise ConfigError("compilers must be a dictionary")

    for key, value in data.items():
        if key not in VALID_COMPILER_KEYS:
            raise ConfigError(
                f"Invalid compiler key: {key} (expected one of {list(VALID_COMPILER_KEYS)})"
            )
        if not isinstance(value, str) or not value:
            raise ConfigError(f"compilers.{key} must be a non-empty string")

    return data

"""
Compiler capability probing for toolchainprobe.

This module provides functionality for:
- Compiler family/version detection
- Declaration, function, header and feature probes
- Memoization of probe results
- Export of results as preprocessor defines and link flags
"""

from toolchainprobe.probe.types import (
    CheckKind,
    FeatureResult,
    FunctionResult,
    Language,
)
from toolchainprobe.probe.cache import MISSING, ProbeCache
from toolchainprobe.probe.identity import (
    CompilerIdentity,
    CompilerKind,
    parse_identity,
    resolve_identity,
)
from toolchainprobe.probe.features import (
    DEFAULT_FEATURES,
    Feature,
    FeatureRegistry,
)
from toolchainprobe.probe.sources import DEFAULT_HEADERS, define_name, normalize_header
from toolchainprobe.probe.environment import BuildEnvironment

__all__ = [
    # Types
    "CheckKind",
    "FeatureResult",
    "FunctionResult",
    "Language",
    # Cache
    "MISSING",
    "ProbeCache",
    # Identity
    "CompilerIdentity",
    "CompilerKind",
    "parse_identity",
    "resolve_identity",
    # Features
    "DEFAULT_FEATURES",
    "Feature",
    "FeatureRegistry",
    # Sources
    "DEFAULT_HEADERS",
    "define_name",
    "normalize_header",
    # Prober
    "BuildEnvironment",
]

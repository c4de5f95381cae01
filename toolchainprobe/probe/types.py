"""Shared types for capability probing."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union

from ..core.exceptions import InvalidProbeArgumentError


class Language(Enum):
    """Probe language, valued by its ``-x`` spelling."""

    C = "c"
    CXX = "c++"

    @classmethod
    def coerce(cls, value: Union["Language", str]) -> "Language":
        """
        Accept a Language or one of 'c', 'c++', 'cxx'.

        Raises:
            InvalidProbeArgumentError: For anything else
        """
        if isinstance(value, Language):
            return value
        if isinstance(value, str):
            name = value.lower()
            if name == "c":
                return cls.C
            if name in ("c++", "cxx"):
                return cls.CXX
        raise InvalidProbeArgumentError(f"Invalid language: {value!r}")


class CheckKind(Enum):
    DECLARED = "declared"
    FUNCTIONS = "functions"
    HEADERS = "headers"
    FEATURES = "features"


@dataclass(frozen=True)
class FunctionResult:
    """
    Outcome of a function probe.

    Attributes:
        ok: Whether the function compiled and linked
        extra_link_flags: Flags that were needed to link it (empty if none)
    """

    ok: bool
    extra_link_flags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FeatureResult:
    """
    Outcome of a named feature probe.

    Attributes:
        value: Feature-specific structured result
        defines: Preprocessor defines the feature contributes
        libs: Link flags the feature contributes
    """

    value: Any = None
    defines: Tuple[str, ...] = ()
    libs: Tuple[str, ...] = ()

"""
Named composite probes.

A feature is a pure function of a ``BuildEnvironment`` built from the
primitive checks. The registry is immutable; ``with_feature`` returns a
new registry.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, Iterator, Mapping, Optional

from ..core.exceptions import FeatureNotFoundError
from .sources import strerror_r_source
from .types import FeatureResult, Language

if TYPE_CHECKING:
    from .environment import BuildEnvironment


@dataclass(frozen=True)
class Feature:
    """
    A named feature probe.

    Attributes:
        name: Registry name
        language: Language the feature's result is cached under
        probe: Function computing the result
    """

    name: str
    language: Language
    probe: Callable[["BuildEnvironment"], FeatureResult]


class FeatureRegistry(Mapping):
    """Read-only name -> Feature mapping."""

    def __init__(self, features: Optional[Dict[str, Feature]] = None):
        self._features = MappingProxyType(dict(features or {}))

    def __getitem__(self, name: str) -> Feature:
        return self._features[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def lookup(self, name: str) -> Feature:
        """
        Raises:
            FeatureNotFoundError: If no feature has this name
        """
        try:
            return self._features[name]
        except KeyError:
            raise FeatureNotFoundError(name) from None

    def with_feature(self, feature: Feature) -> "FeatureRegistry":
        """Return a new registry that also holds ``feature``."""
        features = dict(self._features)
        features[feature.name] = feature
        return FeatureRegistry(features)


def probe_strerror_r(env: "BuildEnvironment") -> FeatureResult:
    """
    Check whether strerror_r is declared and whether it is the GNU
    variant returning ``char *`` rather than the POSIX ``int`` one.
    """
    declared = env.check_declared(Language.C, "strerror_r")
    returns_char_ptr = False
    if declared:
        source = strerror_r_source(env.default_headers(Language.C))
        returns_char_ptr = env.try_compile(Language.C, source) is True

    defines = []
    if declared:
        defines.append("HAVE_DECL_STRERROR_R")
    if returns_char_ptr:
        defines.append("STRERROR_R_CHAR_P")

    return FeatureResult(
        value={"declared": declared, "returns_char_ptr": returns_char_ptr},
        defines=tuple(defines),
    )


DEFAULT_FEATURES = FeatureRegistry(
    {
        "strerror_r": Feature("strerror_r", Language.C, probe_strerror_r),
    }
)

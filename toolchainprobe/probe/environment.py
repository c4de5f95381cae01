"""
Compiler capability probing.

``BuildEnvironment`` answers "does this compiler provide X?" by compiling
small synthetic programs fed on standard input and looking only at the
exit status. Answers are memoized per (language, check kind, key) and can
be exported as preprocessor defines and link flags.

Usage:
    from toolchainprobe.probe import BuildEnvironment

    env = BuildEnvironment()
    env.check_header("c", "stdio.h")
    env.check_function("c", "cos", search_libs=["m"])
    print(env.defines("c", rendered=True))   # ['HAVE_STDIO_H=1', 'HAVE_COS=1']
    print(env.libs("c"))                     # ['-lm']
"""

import logging
import os
import subprocess
from typing import Dict, List, Optional, Sequence, Union

from ..config.parser import ProbeConfig
from ..core.exceptions import CompilationError, InvalidProbeArgumentError
from .cache import MISSING, ProbeCache
from .features import DEFAULT_FEATURES, FeatureRegistry
from .identity import CompilerIdentity, resolve_identity
from .sources import (
    DEFAULT_HEADERS,
    declared_name,
    declared_source,
    define_name,
    function_source,
    header_name,
    header_source,
    link_flag,
    normalize_header,
)
from .types import CheckKind, FeatureResult, FunctionResult, Language

logger = logging.getLogger(__name__)

LanguageArg = Union[Language, str]

DEFAULT_COMPILERS = {Language.C: "cc", Language.CXX: "c++"}
COMPILER_ENV_VARS = {Language.C: "CC", Language.CXX: "CXX"}


def _require_name(value, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidProbeArgumentError(f"Invalid {what}: {value!r}")
    return value


def _params(compiler_params: Optional[Sequence[str]]) -> List[str]:
    if compiler_params is None:
        return []
    if isinstance(compiler_params, str):
        raise InvalidProbeArgumentError(
            f"compiler_params must be a sequence of strings, got {compiler_params!r}"
        )
    return list(compiler_params)


class BuildEnvironment:
    """
    Capability prober for one C compiler and one C++ compiler.

    The compiler identity for a language is resolved on its first probe
    and kept for the lifetime of the instance.

    Attributes:
        cache: Probe result store (disabled when constructed with cache=False)
        features: Registry consulted by ``check_feature``
    """

    def __init__(
        self,
        compiler_c: Optional[str] = None,
        compiler_cxx: Optional[str] = None,
        cache: bool = True,
        features: Optional[FeatureRegistry] = None,
    ):
        """
        Create a prober.

        Args:
            compiler_c: C compiler command (default: $CC, then 'cc')
            compiler_cxx: C++ compiler command (default: $CXX, then 'c++')
            cache: Remember probe results
            features: Feature registry (default: the built-in features)
        """
        configured = {Language.C: compiler_c, Language.CXX: compiler_cxx}
        self._compilers: Dict[Language, str] = {
            language: (
                configured[language]
                or os.environ.get(COMPILER_ENV_VARS[language])
                or DEFAULT_COMPILERS[language]
            )
            for language in Language
        }
        self._identities: Dict[Language, Optional[CompilerIdentity]] = {
            language: None for language in Language
        }
        self.cache = ProbeCache(enabled=cache)
        self.features = features if features is not None else DEFAULT_FEATURES

    @classmethod
    def from_config(
        cls, config: ProbeConfig, features: Optional[FeatureRegistry] = None
    ) -> "BuildEnvironment":
        """Create a prober from a parsed toolchainprobe.yaml."""
        return cls(
            compiler_c=config.compiler_c,
            compiler_cxx=config.compiler_cxx,
            cache=config.cache,
            features=features,
        )

    def compiler(self, lang: LanguageArg) -> str:
        """Compiler command used for ``lang``."""
        return self._compilers[Language.coerce(lang)]

    def compiler_identity(self, lang: LanguageArg) -> CompilerIdentity:
        """
        Return the identity of the compiler for ``lang``, detecting it once.

        Raises:
            CompilerIdentityError: If detection fails
        """
        language = Language.coerce(lang)
        identity = self._identities[language]
        if identity is None:
            identity = resolve_identity(self._compilers[language], language)
            self._identities[language] = identity
        return identity

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def try_compile(
        self,
        lang: LanguageArg,
        source: str,
        compiler_params: Optional[Sequence[str]] = None,
    ) -> Union[bool, CompilationError]:
        """
        Compile and link ``source`` read from standard input.

        Args:
            lang: Source language
            source: Complete translation unit
            compiler_params: Extra compiler/linker arguments

        Returns:
            True on success, otherwise a CompilationError holding the
            compiler's diagnostics (returned, not raised)

        Raises:
            InvalidProbeArgumentError: If ``lang`` or ``source`` is malformed
            CompilerIdentityError: If the compiler cannot be identified
        """
        language = Language.coerce(lang)
        if not isinstance(source, str):
            raise InvalidProbeArgumentError("Invalid code argument")
        params = _params(compiler_params)

        self.compiler_identity(language)

        command = [
            self._compilers[language],
            "-x",
            language.value,
            "-o",
            os.devnull,
            "-",
            *params,
        ]
        try:
            result = subprocess.run(
                command,
                input=source,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.debug(f"Failed to run {command[0]}: {e}")
            return CompilationError(output=str(e))

        if result.returncode == 0:
            return True

        logger.debug(f"Probe failed ({result.returncode}): {result.stderr.strip()}")
        return CompilationError(output=result.stderr, returncode=result.returncode)

    def check_declared(
        self,
        lang: LanguageArg,
        symbol: str,
        compiler_params: Optional[Sequence[str]] = None,
        headers: Optional[Sequence[str]] = None,
    ) -> bool:
        """
        Check whether a symbol is declared, as a macro or otherwise.

        A call-shaped symbol such as ``strerror_r(int,char *,size_t)`` is
        probed with typed null arguments under C++.

        Args:
            lang: Probe language
            symbol: Identifier, optionally with an argument type list
            compiler_params: Extra compiler arguments
            headers: Headers to include (default: the available default headers)
        """
        language = Language.coerce(lang)
        _require_name(symbol, "symbol name")

        cached = self.cache.get(language, CheckKind.DECLARED, symbol)
        if cached is not MISSING:
            logger.debug(f"Cache hit: declared {symbol} ({language.value})")
            return cached

        if not headers:
            headers = self.default_headers(language)
        source = declared_source(symbol, headers)
        found = self.try_compile(language, source, compiler_params) is True

        logger.debug(f"Declared {symbol} ({language.value}): {found}")
        self.cache.set(language, CheckKind.DECLARED, symbol, found)
        return found

    def check_function(
        self,
        lang: LanguageArg,
        name: str,
        search_libs: Optional[Sequence[str]] = None,
        compiler_params: Optional[Sequence[str]] = None,
        headers: Optional[Sequence[str]] = None,
    ) -> bool:
        """
        Check whether a function can be linked.

        The function is tried without extra libraries first, then with each
        of ``search_libs`` in order; the first library that works is
        remembered and reported by ``libs()``.

        Args:
            lang: Probe language
            name: Function name
            search_libs: Libraries to try ('m' or '-lm')
            compiler_params: Extra compiler arguments
            headers: Extra headers to include
        """
        language = Language.coerce(lang)
        _require_name(name, "function name")
        libraries = [
            _require_name(lib, "library") for lib in (search_libs or [])
        ]

        cached = self.cache.get(language, CheckKind.FUNCTIONS, name)
        if cached is not MISSING:
            logger.debug(f"Cache hit: function {name} ({language.value})")
            return cached.ok

        source = function_source(name, headers)
        params = _params(compiler_params)

        result = FunctionResult(ok=False)
        for extra in [None] + [link_flag(lib) for lib in libraries]:
            flags = params + ([extra] if extra else [])
            if self.try_compile(language, source, flags) is True:
                result = FunctionResult(
                    ok=True, extra_link_flags=(extra,) if extra else ()
                )
                break

        logger.debug(f"Function {name} ({language.value}): {result}")
        self.cache.set(language, CheckKind.FUNCTIONS, name, result)
        return result.ok

    def check_header(
        self,
        lang: LanguageArg,
        header: str,
        compiler_params: Optional[Sequence[str]] = None,
    ) -> bool:
        """
        Check whether a header exists and can be included on its own.

        ``stdio.h`` and ``<stdio.h>`` are the same probe; ``"stdio.h"``
        is a different one.
        """
        language = Language.coerce(lang)
        key = normalize_header(header)

        cached = self.cache.get(language, CheckKind.HEADERS, key)
        if cached is not MISSING:
            logger.debug(f"Cache hit: header {key} ({language.value})")
            return cached

        found = self.try_compile(language, header_source(key), compiler_params) is True

        logger.debug(f"Header {key} ({language.value}): {found}")
        self.cache.set(language, CheckKind.HEADERS, key, found)
        return found

    def check_feature(self, name: str) -> FeatureResult:
        """
        Run a named feature probe from the registry.

        Raises:
            FeatureNotFoundError: If the registry has no such feature
            InvalidProbeArgumentError: If the feature probe returns something
                other than a FeatureResult
        """
        _require_name(name, "feature name")
        feature = self.features.lookup(name)

        cached = self.cache.get(feature.language, CheckKind.FEATURES, name)
        if cached is not MISSING:
            logger.debug(f"Cache hit: feature {name}")
            return cached

        result = feature.probe(self)
        if result is None:
            result = FeatureResult()
        elif not isinstance(result, FeatureResult):
            raise InvalidProbeArgumentError(
                f"Feature {name} returned {type(result).__name__}, expected FeatureResult"
            )

        logger.debug(f"Feature {name}: {result.value!r}")
        self.cache.set(feature.language, CheckKind.FEATURES, name, result)
        return result

    def default_headers(self, lang: LanguageArg = Language.C) -> List[str]:
        """
        Return the standard headers that are available.

        Each candidate goes through ``check_header``, so the available
        ones also show up in ``defines()``.
        """
        return [h for h in DEFAULT_HEADERS if self.check_header(lang, h)]

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def _languages(self, lang: Optional[LanguageArg]) -> List[Language]:
        if lang is None:
            return list(Language)
        return [Language.coerce(lang)]

    def defines(
        self, lang: Optional[LanguageArg] = None, rendered: bool = False
    ) -> List[str]:
        """
        Preprocessor defines for every positive cached probe.

        Args:
            lang: Restrict to one language (default: C, then C++)
            rendered: Render as ``NAME=1`` instead of ``NAME``

        Returns:
            Deduplicated defines in probe order; empty if caching is disabled
        """
        names: List[str] = []
        for language in self._languages(lang):
            for kind, key, value in self.cache.items(language):
                if kind is CheckKind.DECLARED and value:
                    names.append(f"HAVE_{define_name(declared_name(key))}")
                elif kind is CheckKind.HEADERS and value:
                    names.append(f"HAVE_{define_name(header_name(key))}")
                elif kind is CheckKind.FUNCTIONS and value.ok:
                    names.append(f"HAVE_{define_name(key)}")
                elif kind is CheckKind.FEATURES:
                    names.extend(value.defines)

        if rendered:
            names = [n if "=" in n else f"{n}=1" for n in names]
        return list(dict.fromkeys(names))

    def libs(self, lang: Optional[LanguageArg] = None) -> List[str]:
        """
        Link flags required by the positive cached probes.

        Returns:
            Deduplicated flags in probe order; empty if caching is disabled
        """
        flags: List[str] = []
        for language in self._languages(lang):
            for kind, _key, value in self.cache.items(language):
                if kind is CheckKind.FUNCTIONS and value.ok:
                    flags.extend(value.extra_link_flags)
                elif kind is CheckKind.FEATURES:
                    flags.extend(value.libs)
        return list(dict.fromkeys(flags))

    def __repr__(self) -> str:
        return (
            f"BuildEnvironment(cc={self._compilers[Language.C]!r}, "
            f"cxx={self._compilers[Language.CXX]!r}, cache={self.cache.enabled})"
        )

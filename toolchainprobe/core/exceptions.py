"""
Centralized exception hierarchy for toolchainprobe.

Toolchain discovery never raises: missing registry entries, helper failures
and incomplete installations are skipped silently. The exceptions below are
raised by configuration parsing and by the capability prober.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class ToolchainProbeError(Exception):
    """Base exception for all toolchainprobe errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(ToolchainProbeError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Capability Probe Exceptions
# ============================================================================


class ProbeError(ToolchainProbeError):
    """Base exception for capability probing errors."""

    pass


class InvalidProbeArgumentError(ProbeError, ValueError):
    """Raised when a probe is called with a malformed argument."""

    pass


class CompilerIdentityError(ProbeError):
    """Raised when the compiler family and version cannot be determined."""

    def __init__(self, compiler: str, language: str, output: str = ""):
        self.compiler = compiler
        self.language = language
        self.output = output
        super().__init__(
            f"Unable to determine compiler identity: {compiler} ({language})"
        )


class FeatureNotFoundError(ProbeError, LookupError):
    """Raised when an unknown feature name is requested."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid feature: {name}")


class CompilationError(ProbeError):
    """
    A probe program failed to compile.

    Instances are returned, not raised, by ``BuildEnvironment.try_compile``
    so callers can inspect the compiler diagnostics.
    """

    def __init__(self, output: str = "", returncode: int = 1):
        self.output = output
        self.returncode = returncode
        super().__init__(f"Compilation failed (exit status {returncode})")

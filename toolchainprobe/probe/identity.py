"""
Compiler family and version detection.

The compiler preprocesses a line of predefined macro names; the expanded
tokens tell clang and GCC-compatible compilers apart and carry their
versions.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..core.exceptions import CompilerIdentityError
from .types import Language

logger = logging.getLogger(__name__)

IDENTITY_MACROS = (
    "__clang__",
    "__GNUC__",
    "__GNUC_MINOR__",
    "__GNUC_PATCHLEVEL__",
    "__clang_major__",
    "__clang_minor__",
    "__clang_patchlevel__",
)


class CompilerKind(Enum):
    GNU = "gnu"
    CLANG = "clang"


@dataclass(frozen=True)
class CompilerIdentity:
    """
    Compiler family and version.

    Attributes:
        kind: Compiler family
        version: (major, minor, patch)
    """

    kind: CompilerKind
    version: Tuple[int, int, int]

    def __str__(self) -> str:
        return f"{self.kind.value} {'.'.join(str(v) for v in self.version)}"


def _to_int(token: str) -> int:
    # Unexpanded macro names read as 0
    try:
        return int(token)
    except ValueError:
        return 0


def parse_identity(output: str) -> CompilerIdentity:
    """
    Classify preprocessed identity macros.

    Raises:
        ValueError: If the output does not hold exactly one token per macro
    """
    values = output.split()
    if len(values) != len(IDENTITY_MACROS):
        raise ValueError(f"Expected {len(IDENTITY_MACROS)} tokens, got {values!r}")

    if values[0] == "1":
        kind = CompilerKind.CLANG
        numbers = values[4:7]
    else:
        kind = CompilerKind.GNU
        numbers = values[1:4]

    major, minor, patch = (_to_int(v) for v in numbers)
    return CompilerIdentity(kind=kind, version=(major, minor, patch))


def resolve_identity(compiler: str, language: Language) -> CompilerIdentity:
    """
    Run the preprocessor to identify a compiler.

    Args:
        compiler: Compiler command
        language: Language to preprocess as

    Returns:
        The compiler identity

    Raises:
        CompilerIdentityError: If the compiler cannot be run, fails, or
            prints something unrecognizable
    """
    try:
        result = subprocess.run(
            [compiler, "-E", "-P", "-x", language.value, "-"],
            input=" ".join(IDENTITY_MACROS),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise CompilerIdentityError(compiler, language.value, str(e)) from e

    if result.returncode != 0:
        logger.debug(f"{compiler} -E returned {result.returncode}: {result.stderr}")
        raise CompilerIdentityError(compiler, language.value, result.stderr)

    try:
        identity = parse_identity(result.stdout)
    except ValueError as e:
        raise CompilerIdentityError(compiler, language.value, result.stdout) from e

    logger.debug(f"{compiler} ({language.value}) identified as {identity}")
    return identity

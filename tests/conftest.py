"""
Pytest configuration and shared fixtures for toolchainprobe tests.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from toolchainprobe.core.platform import PlatformInfo

GCC_IDENTITY = "__clang__ 12 2 0 __clang_major__ __clang_minor__ __clang_patchlevel__\n"
CLANG_IDENTITY = "1 4 2 1 17 0 6\n"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that need a real C compiler on PATH",
    )
    config.addinivalue_line("markers", "unit: marks fast, isolated unit tests")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests when no C compiler is installed."""
    if shutil.which("cc") or shutil.which("gcc") or shutil.which("clang"):
        return
    skip_integration = pytest.mark.skip(reason="No C compiler available")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Compiler fakes
# ============================================================================


class FakeCompiler:
    """
    Stand-in for ``subprocess.run`` that answers compiler invocations.

    Identity requests (``-E``) print ``identity_output``. Every other call
    is a probe compilation that succeeds when ``accept(source, args)``
    returns True.
    """

    def __init__(
        self,
        accept: Optional[Callable[[str, List[str]], bool]] = None,
        identity_output: str = GCC_IDENTITY,
        identity_returncode: int = 0,
    ):
        self.accept = accept or (lambda source, args: True)
        self.identity_output = identity_output
        self.identity_returncode = identity_returncode
        self.identity_calls: List[List[str]] = []
        self.compile_calls: List[Tuple[List[str], str]] = []

    def __call__(self, args, input=None, **kwargs):
        args = list(args)
        if "-E" in args:
            self.identity_calls.append(args)
            return Mock(
                returncode=self.identity_returncode,
                stdout=self.identity_output,
                stderr="" if self.identity_returncode == 0 else "cc: fatal error",
            )

        self.compile_calls.append((args, input))
        ok = self.accept(input, args)
        return Mock(
            returncode=0 if ok else 1,
            stdout="",
            stderr="" if ok else "<stdin>: error: probe failed",
        )

    @property
    def sources(self) -> List[str]:
        return [source for _, source in self.compile_calls]


@pytest.fixture
def fake_compiler(monkeypatch):
    """Install a FakeCompiler in place of subprocess.run."""

    def install(**kwargs) -> FakeCompiler:
        compiler = FakeCompiler(**kwargs)
        monkeypatch.setattr(subprocess, "run", compiler)
        return compiler

    return install


@pytest.fixture(autouse=True)
def clean_compiler_env(monkeypatch):
    """Keep $CC / $CXX from leaking into compiler selection."""
    monkeypatch.delenv("CC", raising=False)
    monkeypatch.delenv("CXX", raising=False)


# ============================================================================
# Discovery fakes
# ============================================================================


class FakeRegistry:
    """RegistryLookup stand-in backed by a dict of (key, value, use_32bit_view)."""

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.queries: List[Tuple[str, str, bool]] = []

    def query(self, key: str, value: str, use_32bit_view: bool = False):
        self.queries.append((key, value, use_32bit_view))
        return self.values.get((key, value, use_32bit_view))


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def platform_windows() -> PlatformInfo:
    """64-bit Windows host."""
    return PlatformInfo("windows", "x64")


@pytest.fixture
def platform_windows_x86() -> PlatformInfo:
    """32-bit Windows host."""
    return PlatformInfo("windows", "x86")


@pytest.fixture
def vs_root(tmp_path) -> Path:
    """Resolved directory to build fake installations under."""
    return tmp_path.resolve()

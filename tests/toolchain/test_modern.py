"""
Tests for toolchainprobe.toolchain.modern module.
"""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from toolchainprobe.toolchain.modern import (
    HELPER_SCRIPT,
    ModernToolchainLocator,
    Packages,
    has_required_packages,
    parse_sdk_versions,
    sdk_short_version,
)

SDK_KEY = "HKLM\\Software\\Microsoft\\Microsoft SDKs\\Windows"
SDK_KEY_WOW64 = "HKLM\\Software\\Wow6432Node\\Microsoft\\Microsoft SDKs\\Windows"

BASE_PACKAGES = [Packages.MSBUILD, Packages.VC_TOOLS]


def make_vs_install(
    root: Path, toolset: str = "v142", toolset_version: str = "14.29.30133", arch: str = "x64"
) -> Path:
    """Create the MSBuild and VC toolset trees of a modern installation."""
    msbuild_dir = root / "MSBuild" / ("15.0" if toolset == "v141" else "Current") / "Bin"
    msbuild_dir.mkdir(parents=True)
    (msbuild_dir / "MSBuild.exe").write_text("")
    marker_dir = root / "VC" / "Auxiliary" / "Build"
    marker_dir.mkdir(parents=True)
    (marker_dir / f"Microsoft.VCToolsVersion.{toolset}.default.txt").write_text(
        f"{toolset_version}\n"
    )
    msvc = root / "VC" / "Tools" / "MSVC" / toolset_version
    (msvc / "bin" / f"Host{arch}" / arch).mkdir(parents=True)
    (msvc / "bin" / f"Host{arch}" / arch / "cl.exe").write_text("")
    (msvc / "include").mkdir()
    (msvc / "lib" / arch).mkdir(parents=True)
    return root


def make_sdk(root: Path, version: str, arch: str = "x64") -> Path:
    """Create the Windows SDK directories for one version."""
    (root / "Include" / version / "ucrt").mkdir(parents=True)
    (root / "Lib" / version / "um" / arch).mkdir(parents=True)
    (root / "Lib" / version / "ucrt" / arch).mkdir(parents=True)
    return root


def helper_output(instances):
    return Mock(returncode=0, stdout=json.dumps(instances), stderr="")


@pytest.fixture
def vs2019(vs_root, fake_registry):
    """Complete VS 2019 install with SDK 10.0.19041.0 registered."""
    root = make_vs_install(vs_root / "VS2019")
    sdk = make_sdk(vs_root / "Windows Kits" / "10", "10.0.19041.0")
    fake_registry.values[(f"{SDK_KEY}\\v10.0", "InstallationFolder", False)] = str(sdk)
    return root


def instance(root, version="16.11.34729.46", packages=None):
    return {
        "path": str(root),
        "version": version,
        "packages": BASE_PACKAGES + ["Microsoft.VisualStudio.Component.Windows10SDK.19041"]
        if packages is None
        else packages,
    }


class TestPackageFilters:
    """Tests for package helpers."""

    def test_requires_msbuild(self):
        assert not has_required_packages([Packages.VC_TOOLS])

    def test_requires_vc_tools_or_express(self):
        assert has_required_packages([Packages.MSBUILD, Packages.VC_TOOLS])
        assert has_required_packages([Packages.MSBUILD, Packages.EXPRESS])
        assert not has_required_packages([Packages.MSBUILD])

    def test_parse_sdk_versions(self):
        packages = [
            Packages.WIN81_SDK,
            "Microsoft.VisualStudio.Component.Windows10SDK.17763",
            "Microsoft.VisualStudio.Component.Windows10SDK.19041.Desktop",
            "Microsoft.VisualStudio.Component.Windows10SDK.18362.UWP",
            "Microsoft.VisualStudio.Component.Windows10SDK.IpOverUsb",
            "Microsoft.VisualStudio.Component.Windows10SDK",
            "Microsoft.VisualStudio.Component.VC.CoreIde",
        ]
        assert parse_sdk_versions(packages) == ["8.1", "10.0.17763.0", "10.0.19041.0"]

    def test_negative_build_rejected(self):
        assert parse_sdk_versions(["Microsoft.VisualStudio.Component.Windows10SDK.-1"]) == []

    def test_sdk_short_version(self):
        assert sdk_short_version("10.0.19041.0") == "v10.0"
        assert sdk_short_version("8.1") == "v8.1"
        assert sdk_short_version("10") is None


class TestEnumeration:
    """Tests for ModernToolchainLocator.enumerate_instances."""

    def test_default_helper_command(self, monkeypatch, fake_registry, platform_windows):
        monkeypatch.setenv("SystemRoot", "C:\\Windows")
        locator = ModernToolchainLocator(registry=fake_registry, platform=platform_windows)

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = helper_output([])
            assert locator.enumerate_instances() == []

            args = mock_run.call_args[0][0]
            assert args[0].endswith("powershell.exe")
            assert args[1:5] == ["-ExecutionPolicy", "Unrestricted", "-NoProfile", "-File"]
            assert args[5] == str(HELPER_SCRIPT)

    def test_helper_script_is_packaged(self):
        assert HELPER_SCRIPT.is_file()

    def test_no_system_root(self, monkeypatch, fake_registry, platform_windows):
        monkeypatch.delenv("SystemRoot", raising=False)
        locator = ModernToolchainLocator(registry=fake_registry, platform=platform_windows)

        with patch("subprocess.run") as mock_run:
            assert locator.enumerate_instances() == []
            mock_run.assert_not_called()

    def test_helper_unavailable(self, fake_registry, platform_windows):
        locator = ModernToolchainLocator(
            registry=fake_registry, platform=platform_windows, helper_command=["helper"]
        )

        with patch("subprocess.run", side_effect=FileNotFoundError()):
            assert locator.search() == []

    def test_helper_fails(self, fake_registry, platform_windows):
        locator = ModernToolchainLocator(
            registry=fake_registry, platform=platform_windows, helper_command=["helper"]
        )

        with patch("subprocess.run", return_value=Mock(returncode=1, stdout="", stderr="x")):
            assert locator.search() == []

    @pytest.mark.parametrize("stdout", ["not json", "", '{"path": "C:\\\\VS"}', "42"])
    def test_invalid_output(self, stdout, fake_registry, platform_windows):
        locator = ModernToolchainLocator(
            registry=fake_registry, platform=platform_windows, helper_command=["helper"]
        )

        with patch("subprocess.run", return_value=Mock(returncode=0, stdout=stdout, stderr="")):
            assert locator.search() == []


class TestModernToolchainLocator:
    """Tests for candidate resolution."""

    def make_locator(self, registry, platform):
        return ModernToolchainLocator(
            registry=registry, platform=platform, helper_command=["helper"]
        )

    def test_resolves_complete_install(self, vs2019, vs_root, fake_registry, platform_windows):
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019)])):
            toolchains = locator.search()

        assert len(toolchains) == 1
        tc = toolchains[0]
        msvc = vs2019 / "VC" / "Tools" / "MSVC" / "14.29.30133"
        sdk = vs_root / "Windows Kits" / "10"
        assert tc.install_path == vs2019
        assert tc.version.full == "16.11.34729.46"
        assert (tc.version.major, tc.version.minor) == (16, 11)
        assert tc.year == 2019
        assert tc.toolset == "v142"
        assert tc.build_tool_path == vs2019 / "MSBuild" / "Current" / "Bin" / "MSBuild.exe"
        assert tc.compiler_path == msvc / "bin" / "Hostx64" / "x64" / "cl.exe"
        assert tc.include_paths == (msvc / "include", sdk / "Include" / "10.0.19041.0" / "ucrt")
        assert tc.library_paths == (
            msvc / "lib" / "x64",
            sdk / "Lib" / "10.0.19041.0" / "um" / "x64",
            sdk / "Lib" / "10.0.19041.0" / "ucrt" / "x64",
        )
        assert tc.sdk_versions == ("10.0.19041.0",)

    def test_x86_host_uses_x86_directories(self, vs_root, fake_registry, platform_windows_x86):
        root = make_vs_install(vs_root / "VS2019", arch="x86")
        sdk = make_sdk(vs_root / "Kits", "10.0.19041.0", arch="x86")
        fake_registry.values[(f"{SDK_KEY}\\v10.0", "InstallationFolder", False)] = str(sdk)
        locator = self.make_locator(fake_registry, platform_windows_x86)

        with patch("subprocess.run", return_value=helper_output([instance(root)])):
            toolchains = locator.search()

        assert len(toolchains) == 1
        assert toolchains[0].compiler_path.parent.name == "x86"
        assert toolchains[0].compiler_path.parent.parent.name == "Hostx86"

    def test_uses_highest_sdk(self, vs2019, vs_root, fake_registry, platform_windows):
        make_sdk(vs_root / "Windows Kits" / "10", "10.0.22621.0")
        packages = BASE_PACKAGES + [
            "Microsoft.VisualStudio.Component.Windows10SDK.19041",
            Packages.WIN81_SDK,
            "Microsoft.VisualStudio.Component.Windows10SDK.22621",
        ]
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019, packages=packages)])):
            (tc,) = locator.search()

        assert tc.sdk_versions == ("10.0.22621.0", "10.0.19041.0", "8.1")
        assert "10.0.22621.0" in str(tc.include_paths[1])

    def test_sdk_from_wow64_key(self, vs_root, fake_registry, platform_windows):
        root = make_vs_install(vs_root / "VS2019")
        sdk = make_sdk(vs_root / "Kits", "10.0.19041.0")
        fake_registry.values[(f"{SDK_KEY_WOW64}\\v10.0", "InstallationFolder", False)] = str(sdk)
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(root)])):
            assert len(locator.search()) == 1

    def test_express_edition_accepted(self, vs2019, fake_registry, platform_windows):
        packages = [
            Packages.MSBUILD,
            Packages.EXPRESS,
            "Microsoft.VisualStudio.Component.Windows10SDK.19041",
        ]
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019, packages=packages)])):
            assert len(locator.search()) == 1

    def test_rejects_missing_compiler_packages(self, vs2019, fake_registry, platform_windows):
        """Base build tools alone are not enough."""
        packages = [Packages.MSBUILD, "Microsoft.VisualStudio.Component.Windows10SDK.19041"]
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019, packages=packages)])):
            assert locator.search() == []

    def test_rejects_without_sdk_markers(self, vs2019, fake_registry, platform_windows):
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019, packages=BASE_PACKAGES)])):
            assert locator.search() == []

    @pytest.mark.parametrize("version", ["14.0.25420.1", "16", "16.11", "", None, "abc"])
    def test_rejects_unknown_or_malformed_version(self, version, vs2019, fake_registry, platform_windows):
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019, version=version)])):
            assert locator.search() == []

    def test_rejects_missing_toolset_marker(self, vs2019, fake_registry, platform_windows):
        marker = vs2019 / "VC" / "Auxiliary" / "Build" / "Microsoft.VCToolsVersion.v142.default.txt"
        marker.unlink()
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019)])):
            assert locator.search() == []

    def test_rejects_missing_compiler(self, vs2019, fake_registry, platform_windows):
        (vs2019 / "VC" / "Tools" / "MSVC" / "14.29.30133" / "bin" / "Hostx64" / "x64" / "cl.exe").unlink()
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019)])):
            assert locator.search() == []

    def test_rejects_missing_msbuild(self, vs2019, fake_registry, platform_windows):
        (vs2019 / "MSBuild" / "Current" / "Bin" / "MSBuild.exe").unlink()
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019)])):
            assert locator.search() == []

    def test_rejects_unregistered_sdk(self, vs_root, fake_registry, platform_windows):
        root = make_vs_install(vs_root / "VS2019")
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(root)])):
            assert locator.search() == []

    def test_rejects_incomplete_sdk(self, vs2019, vs_root, fake_registry, platform_windows):
        (vs_root / "Windows Kits" / "10" / "Lib" / "10.0.19041.0" / "ucrt" / "x64").rmdir()
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output([instance(vs2019)])):
            assert locator.search() == []

    def test_bad_candidate_does_not_stop_scan(self, vs2019, fake_registry, platform_windows):
        instances = [
            {"path": 42, "version": "16.0.0", "packages": BASE_PACKAGES},
            {"version": "16.0.0"},
            {"path": str(vs2019), "version": "16.0.0", "packages": "not-a-list"},
            instance(vs2019),
        ]
        locator = self.make_locator(fake_registry, platform_windows)

        with patch("subprocess.run", return_value=helper_output(instances)):
            toolchains = locator.search()

        assert len(toolchains) == 1

"""
toolchainprobe/toolchain/registry.py

Best-effort Windows registry reads through ``reg.exe``.
"""

import logging
import os
import re
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)

HKLM_SOFTWARE = "HKLM\\Software"
HKLM_SOFTWARE_WOW64 = "HKLM\\Software\\Wow6432Node"


class RegistryLookup:
    """
    Query single string values from the Windows registry.

    Every failure (no ``SystemRoot``, ``reg.exe`` missing or failing, key
    or value absent, unparseable output) is reported as None. Callers
    treat the registry as a hint, never as a hard requirement.
    """

    def __init__(self, reg_path: Optional[str] = None):
        """
        Initialize lookup.

        Args:
            reg_path: Explicit path to reg.exe (defaults to the one under
                %SystemRoot%\\System32)
        """
        self.reg_path = reg_path

    def _reg_executable(self) -> Optional[str]:
        if self.reg_path:
            return self.reg_path
        system_root = os.environ.get("SystemRoot")
        if not system_root:
            return None
        return os.path.join(system_root, "System32", "reg.exe")

    def query(
        self, key: str, value: str, use_32bit_view: bool = False
    ) -> Optional[str]:
        """
        Read one registry value.

        Args:
            key: Full key path (e.g. 'HKLM\\Software\\Microsoft\\MSBuild')
            value: Value name under the key
            use_32bit_view: Query the 32-bit registry view (/reg:32)

        Returns:
            The value's data as a string, or None if it could not be read
        """
        reg = self._reg_executable()
        if reg is None:
            logger.debug("SystemRoot is not set, skipping registry lookup")
            return None

        args = [reg, "query", key, "/v", value]
        if use_32bit_view:
            args.append("/reg:32")

        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"reg.exe query {key} /v {value} failed: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"Registry value not found: {key}\\{value}")
            return None

        return parse_reg_output(result.stdout, value)


def parse_reg_output(output: str, value: str) -> Optional[str]:
    """
    Extract the data of ``value`` from ``reg.exe query`` output.

    Matches lines of the form ``    <value>    REG_<type>    <data>``.
    """
    pattern = re.compile(
        rf"^\s+{re.escape(value)}\s+REG_\w+\s+(\S.*)$",
        re.IGNORECASE | re.MULTILINE,
    )
    match = pattern.search(output or "")
    if match is None:
        return None
    return match.group(1).rstrip()

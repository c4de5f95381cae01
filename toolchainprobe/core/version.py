"""
Dotted version ordering.

Toolchain and SDK versions are ranked newest first. Comparison is numeric
per component, so "10.0" ranks above "9.9", and when every shared component
ties the version with more components ranks first ("10.0.1" above "10.0").

Example:
    >>> sort_versions(["8.1", "10.0.17763.0", "10.0.19041.0"])
    ['10.0.19041.0', '10.0.17763.0', '8.1']
"""

import functools
import re
from typing import Iterable, List, Optional

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_component(component: str) -> Optional[int]:
    """
    Parse the leading integer of a version component.

    Returns:
        The integer, or None when the component has no leading digits
    """
    match = _LEADING_INT.match(component)
    if match is None:
        return None
    return int(match.group(1))


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dotted version strings, newest first.

    A component without leading digits does not decide the order at its
    position; comparison moves on to the next component.

    Args:
        a: First version string
        b: Second version string

    Returns:
        -1 if ``a`` sorts first, 1 if ``b`` sorts first, 0 if equivalent
    """
    split_a = a.split(".")
    split_b = b.split(".")

    for part_a, part_b in zip(split_a, split_b):
        n_a = _parse_component(part_a)
        n_b = _parse_component(part_b)
        if n_a is None or n_b is None:
            continue
        if n_a > n_b:
            return -1
        if n_a < n_b:
            return 1

    if len(split_a) > len(split_b):
        return -1
    if len(split_a) < len(split_b):
        return 1
    return 0


version_sort_key = functools.cmp_to_key(compare_versions)


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Return the versions as a new list, newest first."""
    return sorted(versions, key=version_sort_key)


__all__ = ["compare_versions", "sort_versions", "version_sort_key"]

"""Version parsing and comparison utilities.

Cargo versions are strict semantic versions, so unlike pyproject versions
nothing is padded: "1.2" is rejected rather than read as "1.2.0".
"""

from __future__ import annotations

import semver


def parse_version(version_str: str) -> semver.Version:
    """Parse a strict semantic version string.

    Raises:
        ValueError: If the string is not valid semver (e.g. "1.2", "v1.2.3").
    """
    return semver.Version.parse(version_str)


def is_valid_version(version_str: str) -> bool:
    """Return True if version_str is a valid semantic version."""
    return semver.Version.is_valid(version_str)


def same_version(a: str, b: str) -> bool:
    """Compare two versions by semver precedence.

    Build metadata does not take part in precedence, so "1.0.0+a" and
    "1.0.0" are the same version.

    Examples:
        same_version("1.0.0", "1.0.0+build.5") → True
        same_version("1.0.0", "1.0.0-rc.1") → False
    """
    return parse_version(a).compare(b) == 0

"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

import re

import semver

from .models import ChangeType

_SHORT_VERSION = re.compile(r"\d+(\.\d+)?")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Padding only applies to plain numeric versions. Anything else must be
    valid semver as written, so "1.2.3.4" and "1.0.0.dev1" are rejected.

    Raises:
        ValueError: If the string is not a valid version.
    """
    version_str = version_str.strip()
    if _SHORT_VERSION.fullmatch(version_str):
        parts = version_str.split(".")
        while len(parts) < 3:
            parts.append("0")
        version_str = ".".join(parts)
    return semver.Version.parse(version_str)


def bump_version(version_str: str, level: ChangeType) -> str:
    """Increment a version at the given level and return it as a string.

    DEPENDENCY increments the patch digit, like PATCH.

    Examples:
        bump_version("1.2.3", ChangeType.MINOR) → "1.3.0"
        bump_version("1.0", ChangeType.PATCH) → "1.0.1"
        bump_version("2", ChangeType.MAJOR) → "3.0.0"

    Raises:
        ValueError: If the version is invalid or level is NONE.
    """
    version = parse_version(version_str)
    if level is ChangeType.MAJOR:
        return str(version.bump_major())
    if level is ChangeType.MINOR:
        return str(version.bump_minor())
    if level in (ChangeType.PATCH, ChangeType.DEPENDENCY):
        return str(version.bump_patch())
    raise ValueError(f"Cannot bump a version by change type {level.value!r}")


def next_major(version_str: str) -> str:
    """Return the first release of the next major line ("1.4.2" → "2.0.0")."""
    return str(parse_version(version_str).bump_major())

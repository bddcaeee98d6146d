"""Dependency string utilities.

Provides functions for parsing PEP 508 dependency strings and widening their
version specifiers so they admit a newly bumped workspace version.
"""

from __future__ import annotations

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name

from .versions import next_major

# Operators that pin a single version; these are kept and re-pinned.
_PIN_OPERATORS = ("==", "===", "~=")


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def dep_specifier(dep_str: str) -> str:
    """Return the version specifier of a dependency string ("" if none)."""
    return str(Requirement(dep_str).specifier)


def admit_version(dep_str: str, version: str) -> str:
    """Rewrite a dependency so its specifier admits ``version``.

    The string is returned untouched when it has no specifier, points at a
    URL, or already admits the version. A lone ``==``, ``===`` or ``~=``
    specifier keeps its operator and moves to the new version; anything else
    becomes ``>=version,<next-major``. Extras (sorted) and environment
    markers are preserved.

    Examples:
        admit_version("pkg>=1.0", "1.0.1") → "pkg>=1.0"
        admit_version("pkg==1.0.0", "1.0.1") → "pkg==1.0.1"
        admit_version("pkg[b,a]~=1.0.0", "2.0.0") → "pkg[a,b]~=2.0.0"
        admit_version("pkg>=1.0,<2", "2.0.0") → "pkg>=2.0.0,<3.0.0"
    """
    req = Requirement(dep_str)
    if req.url or not req.specifier:
        return dep_str
    if req.specifier.contains(version, prereleases=True):
        return dep_str

    specs = list(req.specifier)
    if len(specs) == 1 and specs[0].operator in _PIN_OPERATORS:
        spec = f"{specs[0].operator}{version}"
    else:
        spec = f">={version},<{next_major(version)}"

    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}{spec}{marker}"

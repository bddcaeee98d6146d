"""Error types raised by the release engine.

Every error here is fatal for a run: the engine never returns a partial
plan. Each error carries the data an operator needs to fix the offending
change file or manifest and re-run.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class ReleaseError(Exception):
    """Base class for all engine failures."""


class WorkspaceError(ReleaseError):
    """The workspace or its configuration could not be loaded."""


class InvalidChangeFile(ReleaseError):
    """A change file could not be parsed or failed validation."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid change file {path}: {detail}")


class UnknownPackage(ReleaseError):
    """A change request names a package that is not in the workspace."""

    def __init__(self, package_name: str) -> None:
        self.package_name = package_name
        super().__init__(f"Change request for unknown package: {package_name}")


class InvalidVersion(ReleaseError):
    """A package's current version is not valid semver."""

    def __init__(self, package_name: str, version: str) -> None:
        self.package_name = package_name
        self.version = version
        super().__init__(f"Invalid version for {package_name}: {version!r}")


class CyclicDependency(ReleaseError):
    """The affected packages contain a production dependency cycle."""

    def __init__(self, members: Iterable[str]) -> None:
        self.members = sorted(members)
        super().__init__(
            f"Dependency cycle detected involving: {', '.join(self.members)}"
        )


class ConflictingChangeTypes(ReleaseError):
    """Change files disagree on the severity for one package.

    Only raised under the ``strict`` conflict policy.
    """

    def __init__(self, package_name: str, change_types: Iterable[str]) -> None:
        self.package_name = package_name
        self.change_types = sorted(set(change_types))
        super().__init__(
            f"Conflicting change types for {package_name}: "
            f"{', '.join(self.change_types)}"
        )

"""Data models for cascade-release.

These Pydantic models represent the core data structures that flow from
change files through the engine into the release pipeline.
"""

from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path

from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict, Field, field_validator

_SEVERITY = ("none", "dependency", "patch", "minor", "major")


@functools.total_ordering
class ChangeType(Enum):
    """Severity of a change, totally ordered from NONE to MAJOR.

    NONE marks informational entries that never change a version.
    DEPENDENCY means "nothing changed here, but a production dependency did",
    so the package is re-versioned and re-published without a semantic bump.
    """

    NONE = "none"
    DEPENDENCY = "dependency"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _SEVERITY.index(self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ChangeType):
            return NotImplemented
        return self.rank < other.rank


class ChangeRequest(BaseModel):
    """One entry of a change file: a package and how much it changed.

    Attributes:
        package_name: Package the change applies to, normalized per PEP 503.
        change_type: Requested severity.
        comment: Free-form description for changelogs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    package_name: str = Field(alias="packageName", min_length=1)
    change_type: ChangeType = Field(alias="changeType")
    comment: str = ""

    @field_validator("package_name")
    @classmethod
    def _canonical(cls, value: str) -> str:
        return canonicalize_name(value)


class ChangeFile(BaseModel):
    """The requests parsed from a single change file."""

    path: Path
    requests: list[ChangeRequest]


class PackageNode(BaseModel):
    """Metadata for a single package in the workspace snapshot.

    Attributes:
        name: Canonical package name.
        version: Current version string from pyproject.toml.
        folder: Path from the workspace root to the package directory.
        prod_dependencies: Internal runtime deps, name → specifier string.
        dev_dependencies: Internal development-only deps, name → specifier.
              These never take part in bump propagation.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    folder: str
    prod_dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)


class BumpPlan(BaseModel):
    """The version decision for one affected package.

    Attributes:
        package_name: Package being bumped.
        old_version: Version before the bump.
        new_version: Version after the bump.
        change_type: Final change type, kept for changelogs and records.
        explicit: True if a change file asked for this bump, False if it was
              propagated from a production dependency.
    """

    model_config = ConfigDict(frozen=True)

    package_name: str
    old_version: str
    new_version: str
    change_type: ChangeType
    explicit: bool


class ManifestEdit(BaseModel):
    """One value in a package manifest that a plan sets.

    ``location`` is "version" for the project version, otherwise the dotted
    path of the dependency list holding the requirement on ``dependency``
    (e.g. "project.dependencies" or "dependency-groups.test").
    """

    model_config = ConfigDict(frozen=True)

    package_name: str
    manifest: str
    location: str
    dependency: str | None = None
    old: str
    new: str

    @property
    def changed(self) -> bool:
        return self.old != self.new


class ReleasePlan(BaseModel):
    """Result of one engine run.

    Attributes:
        bumps: Bump for every affected package, in publish order.
        change_files: Change files the plan was computed from.
    """

    bumps: list[BumpPlan] = Field(default_factory=list)
    change_files: list[Path] = Field(default_factory=list)

    @property
    def publish_order(self) -> list[str]:
        return [bump.package_name for bump in self.bumps]

    @property
    def affected(self) -> set[str]:
        return {bump.package_name for bump in self.bumps}

    def entries(self) -> list[dict[str, str]]:
        """The publish sequence handed to the VCS and registry client."""
        return [
            {
                "packageName": bump.package_name,
                "newVersion": bump.new_version,
                "finalChangeType": bump.change_type.value,
            }
            for bump in self.bumps
        ]

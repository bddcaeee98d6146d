"""Release configuration, read from [tool.cascade-release] in the root pyproject.

Example:

    [tool.cascade-release]
    change-folder = "changes"
    conflict-policy = "max"      # or "strict"
    dependency-bump = "patch"    # or "inherit"
    workers = 4
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import WorkspaceError
from .toml import get_tool_table, load_pyproject

TOOL_NAME = "cascade-release"


class ConflictPolicy(str, Enum):
    """What to do when change files disagree on a package's severity."""

    MAX = "max"
    STRICT = "strict"


class DependencyBump(str, Enum):
    """Which version digit a propagated dependency bump increments."""

    PATCH = "patch"
    INHERIT = "inherit"


class ReleaseConfig(BaseModel):
    """Resolved release settings.

    Attributes:
        change_folder: Folder holding change files, relative to the root.
        conflict_policy: MAX takes the highest requested severity; STRICT
              rejects differing severities for the same package.
        dependency_bump: PATCH always bumps the patch digit of propagated
              packages; INHERIT bumps the same digit as the upstream change.
        workers: Thread count for reading change files. None reads serially.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    change_folder: str = Field(default="changes", alias="change-folder")
    conflict_policy: ConflictPolicy = Field(
        default=ConflictPolicy.MAX, alias="conflict-policy"
    )
    dependency_bump: DependencyBump = Field(
        default=DependencyBump.PATCH, alias="dependency-bump"
    )
    workers: int | None = Field(default=None, ge=1)

    def change_path(self, root: Path) -> Path:
        return root / self.change_folder


def load_config(root: Path) -> ReleaseConfig:
    """Load the release config from ``root/pyproject.toml``.

    Missing table or missing keys fall back to defaults.

    Raises:
        WorkspaceError: If the table holds unknown keys or invalid values.
    """
    doc = load_pyproject(root / "pyproject.toml")
    try:
        return ReleaseConfig.model_validate(get_tool_table(doc, TOOL_NAME))
    except ValidationError as exc:
        raise WorkspaceError(f"Invalid [tool.{TOOL_NAME}] settings:\n{exc}") from exc

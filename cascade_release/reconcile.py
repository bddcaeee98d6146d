"""Change file reconciliation.

Change files are only removed once the caller confirms the plan built from
them has been durably applied (manifests written and committed). Until then
a crash leaves them in place and the next run recomputes the same plan.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field


class ReconcileResult(BaseModel):
    """Outcome of a reconciliation.

    Attributes:
        deleted: Files removed from disk.
        pending: Files that would be removed once the commit is confirmed.
    """

    deleted: list[Path] = Field(default_factory=list)
    pending: list[Path] = Field(default_factory=list)


def reconcile_change_files(
    files: Iterable[Path], *, commit_succeeded: bool
) -> ReconcileResult:
    """Delete consumed change files, or report them when not yet committed.

    Files already gone are counted as deleted.
    """
    files = sorted(set(files))
    if not commit_succeeded:
        return ReconcileResult(pending=files)

    for path in files:
        path.unlink(missing_ok=True)
    return ReconcileResult(deleted=files)

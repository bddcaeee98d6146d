"""End-to-end tests for cascade_release.engine on real workspaces."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from cascade_release.config import ReleaseConfig
from cascade_release.engine import compute_plan
from cascade_release.errors import CyclicDependency, InvalidChangeFile
from cascade_release.models import ChangeType
from cascade_release.mutate import apply_bumps
from cascade_release.reconcile import reconcile_change_files
from cascade_release.workspace import discover_packages


class TestComputePlan:
    def test_patch_propagates_and_orders(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("a", deps=["b>=1.0"])
        add_package("b")
        write_changes("fix.json", {"packageName": "b", "changeType": "patch"})

        plan = compute_plan(discover_packages(workspace), workspace / "changes")

        assert plan.publish_order == ["b", "a"]
        b, a = plan.bumps
        assert (b.new_version, b.change_type, b.explicit) == (
            "1.0.1",
            ChangeType.PATCH,
            True,
        )
        assert (a.new_version, a.change_type, a.explicit) == (
            "1.0.1",
            ChangeType.DEPENDENCY,
            False,
        )
        assert plan.change_files == [workspace / "changes" / "fix.json"]

    def test_two_files_same_package(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("c", version="2.0.0")
        write_changes("one.json", {"packageName": "c", "changeType": "patch"})
        write_changes("two.json", {"packageName": "c", "changeType": "major"})

        graph = discover_packages(workspace)
        plan = compute_plan(graph, workspace / "changes", ReleaseConfig(workers=2))

        assert plan.entries() == [
            {"packageName": "c", "newVersion": "3.0.0", "finalChangeType": "major"}
        ]

    def test_dev_dependent_unaffected(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("d", groups={"dev": ["e"]})
        add_package("e")
        write_changes("e.json", {"packageName": "e", "changeType": "major"})

        plan = compute_plan(discover_packages(workspace), workspace / "changes")

        assert plan.affected == {"e"}

    def test_cycle_between_changed_packages(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("f", deps=["g"])
        add_package("g", deps=["f"])
        write_changes(
            "fg.json",
            {"packageName": "f", "changeType": "minor"},
            {"packageName": "g", "changeType": "patch"},
        )

        with pytest.raises(CyclicDependency) as exc_info:
            compute_plan(discover_packages(workspace), workspace / "changes")
        assert exc_info.value.members == ["f", "g"]

    def test_empty_change_folder(self, workspace: Path, add_package: Callable) -> None:
        add_package("a")
        (workspace / "changes").mkdir()

        plan = compute_plan(discover_packages(workspace), workspace / "changes")

        assert plan.bumps == []
        assert plan.publish_order == []
        result = reconcile_change_files(plan.change_files, commit_succeeded=True)
        assert result.deleted == []

    def test_invalid_file_aborts(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("a")
        write_changes("good.json", {"packageName": "a", "changeType": "patch"})
        (workspace / "changes" / "bad.json").write_text("oops")

        with pytest.raises(InvalidChangeFile) as exc_info:
            compute_plan(discover_packages(workspace), workspace / "changes")
        assert exc_info.value.path.name == "bad.json"

    def test_deterministic(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("app", deps=["lib", "util"])
        add_package("lib", deps=["util"])
        add_package("util")
        add_package("zeta", deps=["util"])
        write_changes("1.json", {"packageName": "util", "changeType": "minor"})
        write_changes("2.json", {"packageName": "lib", "changeType": "patch"})

        graph = discover_packages(workspace)
        first = compute_plan(graph, workspace / "changes")
        second = compute_plan(graph, workspace / "changes", ReleaseConfig(workers=4))

        assert first.model_dump_json() == second.model_dump_json()
        assert first.publish_order == ["util", "lib", "app", "zeta"]

    def test_apply_then_rerun_is_empty(
        self,
        workspace: Path,
        add_package: Callable,
        write_changes: Callable,
    ) -> None:
        add_package("a", deps=["b==1.0.0"])
        add_package("b")
        write_changes("fix.json", {"packageName": "b", "changeType": "patch"})

        graph = discover_packages(workspace)
        plan = compute_plan(graph, workspace / "changes")
        apply_bumps(graph, plan.bumps, workspace, dry_run=False)
        reconcile_change_files(plan.change_files, commit_succeeded=True)

        graph = discover_packages(workspace)
        assert graph.get("b").version == "1.0.1"
        assert graph.get("a").prod_dependencies == {"b": "==1.0.1"}
        assert compute_plan(graph, workspace / "changes").affected == set()

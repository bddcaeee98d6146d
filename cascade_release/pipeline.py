"""Release pipeline: discover → plan → apply → commit → tag → publish.

This module drives cascade-release from the command line:
1. Discover all packages in the workspace
2. Read change files and compute the bump plan and publish order
3. Write new versions and widened dependency ranges to pyproject.toml files
4. Commit the manifest edits
5. Delete the consumed change files (only after the commit succeeded)
6. Tag each released package
7. Build and publish packages in dependency order

Steps 3-7 each run only when the caller asks for them. A step that is not
enabled prints the commands it would run, prefixed with DRYRUN.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .config import ReleaseConfig, load_config
from .engine import compute_plan
from .graph import DependencyGraph
from .models import ManifestEdit, ReleasePlan
from .mutate import apply_bumps, edited_manifests
from .reconcile import ReconcileResult, reconcile_change_files
from .shell import fatal, git, run, step
from .workspace import discover_packages

COMMIT_MESSAGE = "chore: apply package updates"


def load_workspace(root: Path) -> tuple[DependencyGraph, ReleaseConfig]:
    """Load config and snapshot the workspace, printing what was found."""
    config = load_config(root)

    step("Discovering workspace packages")
    graph = discover_packages(root)
    for node in graph.packages():
        deps = list(node.prod_dependencies)
        dev = list(node.dev_dependencies)
        line = f"  {node.name} {node.version} ({node.folder})"
        if deps:
            line += f" → [{', '.join(deps)}]"
        if dev:
            line += f" dev → [{', '.join(dev)}]"
        print(line)

    return graph, config


def show_plan(plan: ReleasePlan) -> None:
    """Print the bump plan in publish order."""
    step(f"Release plan ({len(plan.change_files)} change files)")
    if not plan.bumps:
        print("  Nothing to release")
        return
    for i, bump in enumerate(plan.bumps, start=1):
        source = "explicit" if bump.explicit else "propagated"
        print(
            f"  {i}. {bump.package_name}: {bump.old_version} → {bump.new_version}"
            f" ({bump.change_type.value}, {source})"
        )


def show_edits(edits: list[ManifestEdit], *, dry_run: bool) -> None:
    """Print manifest edits that change a value."""
    changed = [e for e in edits if e.changed]
    step(f"{'DRYRUN: ' if dry_run else ''}Updating {len(changed)} manifest values")
    for edit in changed:
        target = edit.dependency or "version"
        print(f"  {edit.manifest} [{edit.location}] {target}:")
        print(f"    {edit.old} → {edit.new}")


def show_skipped(*args: str) -> None:
    """Print a command that a dry run does not execute."""
    print(f"  DRYRUN: {' '.join(args)}")


def commit_manifests(
    root: Path, manifests: list[str], plan: ReleasePlan, *, dry_run: bool = False
) -> None:
    """Commit the rewritten pyproject.toml files."""
    step(f"{'DRYRUN: ' if dry_run else ''}Committing manifest updates")
    if dry_run:
        for manifest in manifests:
            show_skipped("git", "add", manifest)
        show_skipped("git", "commit", "-m", f'"{COMMIT_MESSAGE}"')
        return

    for manifest in manifests:
        git("add", manifest, cwd=root)

    # Check if there are actually changes to commit
    staged = git("diff", "--cached", "--name-only", cwd=root, check=False)
    if not staged:
        fatal("No changes to commit")

    summary = "\n".join(
        f"  {b.package_name}: {b.old_version} → {b.new_version}" for b in plan.bumps
    )
    git("commit", "-m", COMMIT_MESSAGE, "-m", summary, cwd=root)
    print("  Committed")


def commit_reconciled(root: Path, result: ReconcileResult) -> None:
    """Commit the removal of consumed change files."""
    if not result.deleted:
        return
    for path in result.deleted:
        git("rm", "--cached", "--quiet", "--ignore-unmatch", str(path), cwd=root)
    git("commit", "-m", "chore: remove applied change files", cwd=root)


def tag_packages(root: Path, plan: ReleasePlan, *, dry_run: bool = False) -> None:
    """Create per-package git tags with format {package-name}/v{version}."""
    step(f"{'DRYRUN: ' if dry_run else ''}Creating package tags")
    for bump in plan.bumps:
        tag = f"{bump.package_name}/v{bump.new_version}"
        message = f"{bump.package_name} v{bump.new_version}"
        if dry_run:
            show_skipped("git", "tag", "-a", tag, "-m", f'"{message}"')
            continue
        git("tag", "-a", tag, "-m", message, cwd=root)
        print(f"  {tag}")


def publish_packages(
    root: Path,
    graph: DependencyGraph,
    plan: ReleasePlan,
    *,
    dry_run: bool = False,
    publish_url: str | None = None,
    token: str | None = None,
) -> None:
    """Build and upload packages in publish order using uv.

    Each package is built into a freshly emptied dist/<name>/ and uploaded
    before the next one is built, so no package is ever published ahead of
    its dependencies and no artifact of an earlier release is uploaded again.

    Args:
        root: Workspace root.
        graph: Workspace snapshot, for package folders.
        plan: Release plan; packages are published in its order.
        dry_run: Print the uv commands instead of running them.
        publish_url: Upload to this index instead of PyPI.
        token: Token passed to ``uv publish``. Never printed.
    """
    upload_opts: list[str] = []
    shown_opts: list[str] = []
    if publish_url:
        upload_opts += ["--publish-url", publish_url]
        shown_opts += ["--publish-url", publish_url]
    if token:
        upload_opts += ["--token", token]
        shown_opts += ["--token", "***"]

    step(f"{'DRYRUN: ' if dry_run else ''}Publishing {len(plan.bumps)} packages")
    for bump in plan.bumps:
        node = graph.get(bump.package_name)
        out_dir = root / "dist" / bump.package_name
        print(f"\n  {bump.package_name} {bump.new_version} ({node.folder})")
        if dry_run:
            show_skipped("uv", "build", node.folder, "--out-dir", str(out_dir))
            show_skipped("uv", "publish", *shown_opts, f"{out_dir}/*")
            continue

        shutil.rmtree(out_dir, ignore_errors=True)
        result = run(
            "uv", "build", node.folder, "--out-dir", str(out_dir), cwd=root, check=False
        )
        if result.returncode != 0:
            fatal(f"Failed to build {bump.package_name}")
        artifacts = sorted(str(p) for p in out_dir.iterdir())
        result = run("uv", "publish", *upload_opts, *artifacts, cwd=root, check=False)
        if result.returncode != 0:
            fatal(f"Failed to publish {bump.package_name}")


def run_plan(root: Path, change_folder: Path | None = None) -> ReleasePlan:
    """Compute and print the release plan without changing anything."""
    graph, config = load_workspace(root)
    plan = compute_plan(graph, change_folder or config.change_path(root), config)
    show_plan(plan)
    show_edits(apply_bumps(graph, plan.bumps, root, dry_run=True), dry_run=True)
    return plan


def run_publish(
    root: Path,
    *,
    apply: bool = False,
    commit: bool = False,
    tag: bool = False,
    publish: bool = False,
    change_folder: Path | None = None,
    publish_url: str | None = None,
    token: str | None = None,
) -> ReleasePlan:
    """Execute the release pipeline.

    Every step that is not enabled is printed as a DRYRUN line instead.

    Args:
        root: Workspace root.
        apply: Write new versions and ranges to the manifests.
        commit: Commit the manifest edits, then delete and commit the
            consumed change files. Requires ``apply``.
        tag: Tag every released package. Requires ``commit``. Ignored when
            ``publish_url`` is set, since the release is not on the main index.
        publish: Build and upload every released package. Requires ``apply``.
        change_folder: Override the configured change folder.
        publish_url: Upload to this index instead of PyPI.
        token: Token for the upload.

    Returns:
        The computed plan.
    """
    if commit and not apply:
        fatal("--commit requires --apply")
    if tag and not commit:
        fatal("--tag requires --commit")
    if publish and not apply:
        fatal("--publish requires --apply")

    graph, config = load_workspace(root)
    plan = compute_plan(graph, change_folder or config.change_path(root), config)
    show_plan(plan)
    if not plan.bumps:
        return plan

    # Phase 1: manifests
    edits = apply_bumps(graph, plan.bumps, root, dry_run=not apply)
    show_edits(edits, dry_run=not apply)

    # Phase 2: commit, then retire the change files
    commit_manifests(root, edited_manifests(edits), plan, dry_run=not commit)
    result = reconcile_change_files(plan.change_files, commit_succeeded=commit)
    step(f"{'Deleted' if result.deleted else 'DRYRUN: would delete'} change files")
    for path in result.deleted or result.pending:
        print(f"  - {path}")
    commit_reconciled(root, result)

    # Phase 3: tag and publish
    if tag and publish_url:
        print(f"\n  Not tagging: publishing to {publish_url}")
    tag_packages(root, plan, dry_run=not tag or bool(publish_url))
    publish_packages(
        root,
        graph,
        plan,
        dry_run=not publish,
        publish_url=publish_url,
        token=token,
    )

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return plan

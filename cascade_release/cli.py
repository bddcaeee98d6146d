"""CLI entry point for cascade-release."""

from __future__ import annotations

import json
from pathlib import Path

import click

from cascade_release.changes import write_change_file
from cascade_release.config import load_config
from cascade_release.engine import compute_plan
from cascade_release.errors import ReleaseError, UnknownPackage
from cascade_release.models import ChangeRequest, ChangeType
from cascade_release.pipeline import run_plan, run_publish
from cascade_release.workspace import discover_packages

_REQUESTABLE = [t.value for t in ChangeType if t is not ChangeType.DEPENDENCY]

_change_folder_option = click.option(
    "--change-folder",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Folder holding change files. Defaults to [tool.cascade-release].",
)


@click.group()
@click.version_option(package_name="cascade-release")
def cli() -> None:
    """Version bumps and publish order for uv workspaces, driven by change files."""


@cli.command()
@click.argument("package")
@click.option(
    "-t",
    "--type",
    "change_type",
    type=click.Choice(_REQUESTABLE),
    required=True,
    help="Severity of the change.",
)
@click.option("-m", "--message", default="", help="Changelog comment.")
@_change_folder_option
def change(
    package: str, change_type: str, message: str, change_folder: Path | None
) -> None:
    """Record a change request for PACKAGE."""
    root = Path.cwd()
    try:
        config = load_config(root)
        graph = discover_packages(root)
        request = ChangeRequest(
            package_name=package, change_type=ChangeType(change_type), comment=message
        )
        if request.package_name not in graph:
            raise UnknownPackage(request.package_name)
        path = write_change_file(change_folder or config.change_path(root), [request])
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"✓ Wrote {path}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON.")
@_change_folder_option
def plan(as_json: bool, change_folder: Path | None) -> None:
    """Show the release plan without changing anything."""
    root = Path.cwd()
    try:
        if as_json:
            config = load_config(root)
            result = compute_plan(
                discover_packages(root),
                change_folder or config.change_path(root),
                config,
            )
            click.echo(json.dumps(result.entries(), indent=2))
        else:
            run_plan(root, change_folder)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option(
    "-a", "--apply", is_flag=True, help="Write new versions to pyproject.toml files."
)
@click.option(
    "-c",
    "--commit",
    is_flag=True,
    help="Commit manifest updates and delete consumed change files.",
)
@click.option("--tag", is_flag=True, help="Tag each released package.")
@click.option(
    "-p", "--publish", is_flag=True, help="Build and upload packages with uv."
)
@click.option(
    "--publish-url",
    default=None,
    help="Upload to this index instead of PyPI. Disables tagging.",
)
@click.option(
    "--token",
    envvar="UV_PUBLISH_TOKEN",
    default=None,
    help="Token for the upload.",
)
@_change_folder_option
def publish(
    apply: bool,
    commit: bool,
    tag: bool,
    publish: bool,
    change_folder: Path | None,
    publish_url: str | None,
    token: str | None,
) -> None:
    """Apply change files and publish packages (usually called from CI).

    Without flags this is a dry run: each step prints the commands it would
    run, prefixed with DRYRUN.
    """
    try:
        run_publish(
            Path.cwd(),
            apply=apply,
            commit=commit,
            tag=tag,
            publish=publish,
            change_folder=change_folder,
            publish_url=publish_url,
            token=token,
        )
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc

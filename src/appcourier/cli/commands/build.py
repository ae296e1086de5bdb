"""Build standalone apps.

Usage:
    appcourier build ios [PROJECT_DIR] [-c]   # Publish and start an iOS build
    appcourier build status [PROJECT_DIR]     # Show recent builds
"""

import json
from pathlib import Path

import click

from ..analytics import track
from ..builder import IOSBuilder, resolve_username
from ..credentials.prompts import QuestionaryPrompter
from ..platform.client import PlatformClient
from ..platform.config import DASHBOARD_URL
from ..platform.types import BuildResponse
from ..project import get_publish_info
from ..utils import format_timestamp

project_dir_argument = click.argument(
    "project_dir",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
)


@click.group()
def build():
    """Build standalone apps on appcourier servers."""
    pass


@build.command("ios")
@project_dir_argument
@click.option(
    "--clear-credentials",
    "-c",
    is_flag=True,
    help="Ignore stored credentials and enter them again",
)
@click.option("--json", "as_json", is_flag=True, help="Output the build as JSON")
def build_ios(project_dir: str, clear_credentials: bool, as_json: bool) -> None:
    """Publish the project and build a standalone iOS app.

    \b
    Example:
        appcourier build ios
        appcourier build ios ./my-app --clear-credentials
    """
    builder = IOSBuilder(
        Path(project_dir),
        PlatformClient(),
        QuestionaryPrompter(),
        clear_credentials=clear_credentials,
    )
    result = builder.run()
    track("cli_build", {"platform": result.platform})

    if as_json:
        click.echo(json.dumps(result.model_dump(), indent=2))
        return

    click.echo()
    click.echo(f"  Build started: {click.style(result.id, bold=True)}")
    click.echo(f"  Follow it at {DASHBOARD_URL}/builds/{result.id}")
    click.echo("  or run: appcourier build status")
    click.echo()


@build.command("status")
@project_dir_argument
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def build_status(project_dir: str, as_json: bool) -> None:
    """Show recent builds for the project."""
    client = PlatformClient()
    info = get_publish_info(Path(project_dir), resolve_username(client))
    builds = client.list_builds(info.experience_name)

    if as_json:
        click.echo(json.dumps([b.model_dump() for b in builds], indent=2))
        return

    if not builds:
        click.echo(f"No builds found for {info.experience_name}.")
        click.echo("Start one with 'appcourier build ios'")
        return

    _output_table(builds)


def _output_table(builds: list[BuildResponse]) -> None:
    status_colors = {
        "finished": "green",
        "errored": "red",
        "pending": "yellow",
        "in-progress": "cyan",
        "canceled": "white",
    }

    for b in builds:
        color = status_colors.get(b.status, "white")
        click.echo(f"\n{click.style(b.id, bold=True)} ({b.platform})")
        click.echo(f"  Status:   {click.style(b.status, fg=color)}")
        if b.created_at:
            click.echo(f"  Started:  {format_timestamp(b.created_at)}")
        if b.artifact_url:
            click.echo(f"  Artifact: {b.artifact_url}")
        if b.error:
            click.echo(f"  Error:    {click.style(b.error, fg='red')}")

    click.echo()

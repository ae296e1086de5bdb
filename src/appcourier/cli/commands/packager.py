"""Start and stop the local packager for a project."""

from pathlib import Path

import click

from ..processes import start_packager, stop_packager
from ..project import load_project_config
from .build import project_dir_argument


@click.command()
@project_dir_argument
def start(project_dir: str) -> None:
    """Start the project's packager in the background.

    Runs packager.command from appcourier.yaml and records the process so
    'appcourier status' and 'appcourier stop' can find it.
    """
    config = load_project_config(Path(project_dir))
    process = start_packager(
        Path(project_dir), config.packager.command, config.packager.port
    )
    click.echo(f"Packager running (pid {process.pid}).")
    if process.port:
        click.echo(f"  Port: {process.port}")
    click.echo(f"  Logs: {process.log_file}")


@click.command()
@project_dir_argument
def stop(project_dir: str) -> None:
    """Stop the project's packager."""
    process = stop_packager(Path(project_dir))
    if process is None:
        click.echo("No packager is recorded for this project.")
        return
    click.echo(f"Stopped packager (pid {process.pid}).")

"""Show local packager status.

Usage:
    appcourier status            # Packager for the current project
    appcourier status ./my-app   # Packager for another project
    appcourier status --all      # Every packager appcourier started
"""

from pathlib import Path

import click

from ..processes import PackagerProcess, is_running, list_processes, read_packager
from ..utils import format_timestamp
from .build import project_dir_argument


@click.command()
@project_dir_argument
@click.option("--all", "-a", "show_all", is_flag=True, help="Show status for all processes")
def status(project_dir: str, show_all: bool) -> None:
    """Show the status of the packager started for a project."""
    if show_all:
        _output_all(list_processes())
        return

    process = read_packager(Path(project_dir))
    if process is None:
        click.echo("Packager: not started")
        click.echo("Start it with 'appcourier start'")
        return
    _output_process(process)


def _state(process: PackagerProcess) -> str:
    if is_running(process.pid):
        return click.style("running", fg="green")
    return click.style("stopped", fg="red")


def _output_process(process: PackagerProcess) -> None:
    click.echo(f"Packager: {_state(process)}")
    click.echo(f"  PID:     {process.pid}")
    click.echo(f"  Command: {process.command}")
    if process.port:
        click.echo(f"  Port:    {process.port}")
    if process.started_at:
        click.echo(f"  Started: {format_timestamp(process.started_at)}")
    if process.log_file:
        click.echo(f"  Logs:    {process.log_file}")


def _output_all(processes: list[PackagerProcess]) -> None:
    if not processes:
        click.echo("No packager processes recorded.")
        return

    click.echo(f"{'PID':<8} {'STATUS':<9} {'STARTED':<13} PROJECT")
    for p in processes:
        state = "running" if is_running(p.pid) else "stopped"
        color = "green" if state == "running" else "red"
        click.echo(
            f"{p.pid:<8} {click.style(f'{state:<9}', fg=color)} "
            f"{format_timestamp(p.started_at, short=True):<13} {p.project_dir}"
        )

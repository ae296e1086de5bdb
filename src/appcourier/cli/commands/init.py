"""Create an appcourier.yaml for an existing app project."""

import re
from pathlib import Path

import click

from ..analytics import track
from . import APPCOURIER_YAML

TEMPLATE = """\
# appcourier project configuration
name: {name}

ios:
  bundle_identifier: {bundle_identifier}

# Command that runs your local packager (used by 'appcourier start')
packager:
  command: npx expo start
  port: 19000

# Paths left out when publishing (relative to this file)
# ignore:
#   - assets/raw
"""


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9-]+", "-", name.lower()).strip("-")
    return slug or "my-app"


@click.command()
@click.option("--name", "-n", default=None, help="Project slug (defaults to directory name)")
@click.option(
    "--bundle-identifier",
    default=None,
    help="iOS bundle identifier, e.g. com.example.myapp",
)
def init(name: str | None, bundle_identifier: str | None) -> None:
    """Create appcourier.yaml in the current directory."""
    project_dir = Path.cwd()
    config_path = project_dir / APPCOURIER_YAML
    if config_path.exists():
        click.echo(f"{APPCOURIER_YAML} already exists. Nothing to do.")
        return

    slug = _slugify(name or project_dir.name)
    bundle_identifier = bundle_identifier or f"com.example.{slug.replace('-', '')}"
    config_path.write_text(
        TEMPLATE.format(name=slug, bundle_identifier=bundle_identifier)
    )

    click.echo(f"Created {APPCOURIER_YAML}")
    click.echo()
    click.echo(f"  name: {slug}")
    click.echo(f"  ios.bundle_identifier: {bundle_identifier}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  appcourier login")
    click.echo("  appcourier build ios")
    track("cli_init")

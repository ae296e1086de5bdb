"""Log out from appcourier.

The `appcourier logout` command clears the stored session.

Usage:
    appcourier logout    # Clear stored session
"""

import click

from ..analytics import track
from ..platform.auth import clear_session


@click.command()
def logout() -> None:
    """Log out from appcourier.

    Clears the session stored in ~/.appcourier/credentials.json. Credentials
    kept by the service for your apps are not touched.
    """
    if not clear_session():
        click.echo("Not logged in.")
        return

    click.echo("Logged out successfully.")
    track("cli_logout")

"""Authenticate with the appcourier service.

The `appcourier login` command authenticates with the Platform API, either
using an API key or the OAuth device flow.

Usage:
    appcourier login                 # Interactive OAuth flow
    appcourier login --api-key KEY   # API key authentication
"""

import sys
import time
import webbrowser

import click

from ..analytics import track
from ..platform.auth import (
    clear_session,
    get_session,
    remember_username,
    save_session,
)
from ..platform.client import PlatformAPIError, PlatformClient
from ..platform.config import DEVICE_POLL_INTERVAL
from ..platform.types import Session


@click.command()
@click.option("--api-key", help="API key for authentication")
def login(api_key: str | None) -> None:
    """Authenticate with appcourier.

    Authenticates using either an API key or interactive OAuth device flow.
    The session is stored in ~/.appcourier/credentials.json.

    Examples:
        appcourier login                 # Interactive OAuth flow
        appcourier login --api-key KEY   # Use API key
    """
    existing = get_session()
    if existing and not api_key:
        client = PlatformClient()
        if client.validate_token():
            who = f" as {existing.username}" if existing.username else ""
            click.echo(f"Already logged in{who}. Use 'appcourier logout' to sign out.")
            return

    client = PlatformClient()

    if api_key:
        _login_with_api_key(client, api_key)
    else:
        _login_with_device_flow(client)

    _look_up_username(client)
    track("cli_login", {"method": "api_key" if api_key else "device"})


def _login_with_api_key(client: PlatformClient, api_key: str) -> None:
    """Authenticate using an API key."""
    save_session(Session(token=api_key))

    if not client.validate_token():
        clear_session()
        click.echo("Error: Invalid API key", err=True)
        sys.exit(1)

    click.echo("Authenticated successfully with API key.")


def _login_with_device_flow(client: PlatformClient) -> None:
    """Authenticate using OAuth device flow."""
    try:
        device = client.get_device_code()
    except PlatformAPIError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"\nTo authenticate, visit: {device.verification_uri}")
    click.echo(f"Enter code: {click.style(device.user_code, bold=True)}\n")

    try:
        webbrowser.open(device.verification_uri_complete)
        click.echo("Browser opened automatically.")
    except Exception:
        click.echo("Please open the URL above in your browser.")

    click.echo("\nWaiting for authentication...")

    start = time.time()
    poll_interval = max(device.interval, DEVICE_POLL_INTERVAL)

    while time.time() - start < device.expires_in:
        try:
            session = client.poll_device_token(device.device_code)
            save_session(session)
            click.echo(click.style("\nAuthenticated successfully!", fg="green"))
            return
        except PlatformAPIError as e:
            oauth_error = e.details.get("oauth_error") if e.details else None
            if oauth_error == "authorization_pending":
                time.sleep(poll_interval)
            elif oauth_error == "slow_down":
                poll_interval += 1
                time.sleep(poll_interval)
            else:
                click.echo(f"\nError: {e.message}", err=True)
                sys.exit(1)

    click.echo("\nError: Authentication timed out", err=True)
    sys.exit(1)


def _look_up_username(client: PlatformClient) -> None:
    try:
        user = client.get_current_user()
    except PlatformAPIError as e:
        click.echo(f"Warning: could not look up your username: {e.message}", err=True)
        return
    remember_username(user.username)
    click.echo(f"Logged in as {click.style(user.username, bold=True)}.")

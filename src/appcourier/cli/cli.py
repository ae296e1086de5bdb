#!/usr/bin/env python3
"""appcourier CLI - build and publish standalone mobile apps

Usage:
    appcourier login [--api-key=KEY]
    appcourier logout
    appcourier init
    appcourier build ios [PROJECT_DIR] [-c]
    appcourier build status [PROJECT_DIR]
    appcourier start|stop [PROJECT_DIR]
    appcourier status [PROJECT_DIR] [--all]
"""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import click
import requests

from .commands import login, logout
from .commands.build import build
from .commands.init import init
from .commands.packager import start, stop
from .commands.status import status
from .platform.client import PlatformAPIError

try:
    _VERSION = version("appcourier")
except PackageNotFoundError:
    _VERSION = "unknown"


@click.group()
@click.version_option(version=_VERSION)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """appcourier CLI - build and publish standalone mobile apps"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# Authentication
cli.add_command(login.login)
cli.add_command(logout.logout)

# Project
cli.add_command(init)
cli.add_command(build)

# Local packager
cli.add_command(start)
cli.add_command(stop)
cli.add_command(status)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except PlatformAPIError as e:
        click.echo(f"Error: {e.message}", err=True)
        hint = {
            401: "Hint: Run 'appcourier login' to authenticate.",
            403: "Hint: You don't have permission for this action.",
            404: "Hint: Check the experience name in appcourier.yaml.",
            409: "Hint: Rerun with -c to enter your credentials again.",
            422: "Hint: Check your input and try again.",
            429: "Hint: Too many requests. Please wait and try again.",
            500: "Hint: This is a server issue. Please try again later.",
            502: "Hint: The server is temporarily unavailable. Please try again later.",
            503: "Hint: The service is temporarily unavailable. Please try again later.",
        }.get(e.status_code)
        if hint:
            click.echo(hint, err=True)
        sys.exit(1)
    except requests.exceptions.SSLError:
        click.echo("Error: SSL certificate verification failed.", err=True)
        click.echo("Hint: Check your network or try again later.", err=True)
        sys.exit(1)
    except requests.ConnectionError:
        click.echo("Error: Could not connect to appcourier API.", err=True)
        click.echo("Hint: Check your internet connection and try again.", err=True)
        sys.exit(1)
    except requests.Timeout:
        click.echo("Error: Request timed out.", err=True)
        click.echo("Hint: The server may be busy. Please try again.", err=True)
        sys.exit(1)
    except requests.RequestException:
        click.echo("Error: Network request failed.", err=True)
        click.echo("Hint: Check your connection and try again.", err=True)
        sys.exit(1)
    except (click.Abort, KeyboardInterrupt):
        click.echo(err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(
            "Hint: If this persists, try updating with 'pip install -U appcourier'.",
            err=True,
        )
        sys.exit(1)


if __name__ == "__main__":
    main()

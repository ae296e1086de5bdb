"""Operator-facing errors raised by CLI commands.

These are click exceptions: click prints ``Error: <message>`` and exits with
status 1. Other exceptions (network faults, bugs) are not rewritten here.
"""

import click

INVALID_OPTIONS = "INVALID_OPTIONS"
CREDENTIAL_ERROR = "CREDENTIAL_ERROR"
BUILD_IN_PROGRESS = "BUILD_IN_PROGRESS"
NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
PACKAGER_NOT_RUNNING = "PACKAGER_NOT_RUNNING"
PUBLISH_ERROR = "PUBLISH_ERROR"


class CommandError(click.ClickException):
    """An error with a message meant for the person running the command."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(CommandError):
    """The project configuration is missing something the command needs."""

    def __init__(self, message: str) -> None:
        super().__init__(INVALID_OPTIONS, message)


class CredentialError(CommandError):
    """Credentials could not be collected or were rejected by the service."""

    def __init__(self, message: str, code: str = CREDENTIAL_ERROR) -> None:
        super().__init__(code, message)

"""Collect and validate the Apple credentials an iOS build needs.

Order matters: the Apple ID must be valid before a certificate can be issued
for the account, and the App ID must be registered before a push certificate
can be issued for it. Every kind is either re-validated from what the service
stores or collected from scratch, never both.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path

import click

from ..errors import CredentialError
from ..platform.client import PlatformAPIError, PlatformClient
from ..platform.types import (
    IOS,
    Accepted,
    CredentialMetadata,
    IOSCredentials,
    Rejected,
)
from ..project import PublishInfo, require_bundle_identifier
from .prompts import (
    Choice,
    Prompter,
    Question,
    ask_all,
    existing_file,
    required,
    resolve_path,
)
from .state import (
    Action,
    CredentialKind,
    CredentialState,
    plan,
    state_after_validation,
)

logger = logging.getLogger(__name__)

MANAGED = "managed"
UPLOAD = "upload"

CERT_FETCH_FAILED = "Failed fetching/uploading certificates."
CERT_NOT_IN_PORTAL = (
    "Oops! This certificate doesn't seem to be present in your developer "
    "portal. Please upload a different certificate that exists in your "
    "developer portal."
)

STORED_INVALID = {
    CredentialKind.APPLE_ID: (
        "Stored credentials are invalid! Rerun this command with "
        '"-c" in order to reinput your credentials.'
    ),
    CredentialKind.CERT: (
        "Stored certificate is invalid! Rerun this command with "
        '"-c" in order to reinput your credentials and reupload/regenerate certificates.'
    ),
    CredentialKind.PUSH: (
        "Stored push certificate is invalid! Rerun this command with "
        '"-c" in order to reinput your credentials and reupload/regenerate certificates.'
    ),
}

APPLE_ID_QUESTIONS = [
    Question(name="apple_id", message="What's your Apple ID?", validate=required),
    Question(
        name="password", message="Password?", kind="password", validate=required
    ),
    Question(
        name="team_id",
        message=(
            "What is your Apple Team ID (you can find that on this page: "
            "https://developer.apple.com/account/#/membership)?"
        ),
        validate=required,
    ),
]


def certificate_questions(noun: str, password_message: str) -> list[Question]:
    """Questions offering a managed certificate or uploading a local P12."""

    def uploading(answers: dict) -> bool:
        return answers.get("manage") == UPLOAD

    return [
        Question(
            name="manage",
            kind="select",
            message=(
                f"Do you already have a {noun} you'd like us to use,\n"
                f"or do you want us to manage your {noun}s for you?"
            ),
            choices=[
                Choice("Let appcourier handle the process!", MANAGED),
                Choice("I want to upload my own certificate!", UPLOAD),
            ],
        ),
        Question(
            name="p12_path",
            message="Path to P12 file:",
            filter=resolve_path,
            validate=existing_file,
            when=uploading,
        ),
        Question(
            name="p12_password",
            kind="password",
            message=password_message,
            when=uploading,
        ),
    ]


CERT_QUESTIONS = certificate_questions(
    "distribution certificate", "Certificate P12 password (empty is OK):"
)
PUSH_CERT_QUESTIONS = certificate_questions(
    "push notification certificate", "Push certificate P12 password (empty is OK):"
)


def read_p12(path: str) -> str:
    """Read a P12 file and return its contents base64 encoded."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


class CredentialWorkflow:
    """Bring Apple ID, certificate and push certificate to a valid state.

    Args:
        client: Platform API client.
        prompter: Where questions for the operator go.
        metadata: Which user, experience and app the credentials are for.
        clear_credentials: Ignore whatever the service has stored and
            collect every kind again.
    """

    def __init__(
        self,
        client: PlatformClient,
        prompter: Prompter,
        metadata: CredentialMetadata,
        clear_credentials: bool = False,
    ) -> None:
        self.client = client
        self.prompter = prompter
        self.metadata = metadata
        self.clear_credentials = clear_credentials
        self.states: dict[CredentialKind, CredentialState] = {}

    @classmethod
    def for_project(
        cls,
        client: PlatformClient,
        prompter: Prompter,
        info: PublishInfo,
        clear_credentials: bool = False,
    ) -> CredentialWorkflow:
        """Build a workflow from a project's publish info.

        Raises:
            ConfigurationError: If the project has no bundle identifier.
        """
        metadata = CredentialMetadata(
            username=info.username,
            experience_name=info.experience_name,
            bundle_identifier=require_bundle_identifier(info.bundle_identifier),
            platform=IOS,
        )
        return cls(client, prompter, metadata, clear_credentials)

    def run(self) -> dict[CredentialKind, CredentialState]:
        """Run every step in order. Any failure stops the whole workflow."""
        existing = self.client.fetch_credentials(self.metadata)
        actions = plan(existing, self.clear_credentials)
        summary = {kind.value: action.value for kind, action in actions.items()}
        logger.debug(f"Credential plan for {self.metadata.experience_name}: {summary}")

        self._settle(CredentialKind.APPLE_ID, actions[CredentialKind.APPLE_ID])
        self._settle(CredentialKind.CERT, actions[CredentialKind.CERT])
        self.ensure_app_id()
        self._settle(CredentialKind.PUSH, actions[CredentialKind.PUSH])
        return self.states

    def _settle(self, kind: CredentialKind, action: Action) -> None:
        if action is Action.REVALIDATE:
            self.revalidate(kind)
        else:
            collect = {
                CredentialKind.APPLE_ID: self.collect_apple_id,
                CredentialKind.CERT: self.collect_certificate,
                CredentialKind.PUSH: self.collect_push_certificate,
            }[kind]
            collect()
        self.states[kind] = CredentialState.VALID
        logger.info(f"{kind.value} credentials are valid")

    def revalidate(self, kind: CredentialKind) -> None:
        """Check stored credentials of one kind without sending new data."""
        result = self.client.validate_credentials(IOS, kind.value, None, self.metadata)
        state = state_after_validation(result)
        if state is CredentialState.INVALID:
            self.states[kind] = state
            raise CredentialError(STORED_INVALID[kind])

    # ==================== APPLE ID ====================

    def collect_apple_id(self) -> None:
        click.echo()
        click.echo(
            "We need your Apple ID/password to manage certificates and "
            "provisioning profiles from your Apple Developer account."
        )
        answers = ask_all(self.prompter, APPLE_ID_QUESTIONS)
        credentials = IOSCredentials(
            apple_id=answers["apple_id"],
            password=answers["password"],
            team_id=answers["team_id"],
        )

        result = self.client.validate_credentials(
            IOS, CredentialKind.APPLE_ID.value, credentials, self.metadata
        )
        if isinstance(result, Rejected):
            raise CredentialError(result.message, code=result.code)
        if not result.valid:
            raise CredentialError("Your Apple ID credentials could not be verified.")

        self.client.update_credentials(IOS, credentials, self.metadata)

    # ==================== DISTRIBUTION CERTIFICATE ====================

    def collect_certificate(self) -> None:
        click.echo()
        answers = ask_all(self.prompter, CERT_QUESTIONS)

        try:
            if answers["manage"] == MANAGED:
                result = self.client.generate_certificates(self.metadata)
                if not (isinstance(result, Accepted) and result.valid):
                    raise CredentialError(CERT_FETCH_FAILED)
                return

            credentials = IOSCredentials(
                cert_p12=read_p12(answers["p12_path"]),
                cert_password=answers.get("p12_password", ""),
            )
            result = self.client.validate_credentials(
                IOS, CredentialKind.CERT.value, credentials, self.metadata
            )
            if isinstance(result, Rejected):
                raise CredentialError(CERT_NOT_IN_PORTAL, code=result.code)
            if not result.valid:
                raise CredentialError(CERT_NOT_IN_PORTAL)
            self.client.update_credentials(IOS, credentials, self.metadata)
        except PlatformAPIError as e:
            raise CredentialError(CERT_FETCH_FAILED) from e

    # ==================== APP ID ====================

    def ensure_app_id(self) -> None:
        """Register the App ID for the bundle identifier if it doesn't exist."""
        message = (
            "It seems like we can't create an app on the Apple developer center "
            f"with this app id: {self.metadata.bundle_identifier}. "
            "Please change your bundle identifier to something else."
        )
        try:
            result = self.client.ensure_app_id(self.metadata)
        except PlatformAPIError as e:
            raise CredentialError(message) from e
        if isinstance(result, Rejected):
            raise CredentialError(message, code=result.code)
        if not result.valid:
            raise CredentialError(message)

    # ==================== PUSH CERTIFICATE ====================

    def collect_push_certificate(self) -> None:
        click.echo()
        answers = ask_all(self.prompter, PUSH_CERT_QUESTIONS)

        try:
            if answers["manage"] == MANAGED:
                result = self.client.generate_push_certificates(self.metadata)
                if isinstance(result, Rejected):
                    raise CredentialError(result.message, code=result.code)
                is_valid = result.valid
            else:
                credentials = IOSCredentials(
                    push_p12=read_p12(answers["p12_path"]),
                    push_password=answers.get("p12_password", ""),
                )
                result = self.client.validate_credentials(
                    IOS, CredentialKind.PUSH.value, credentials, self.metadata
                )
                if isinstance(result, Rejected):
                    raise CredentialError(
                        "Oops! This push certificate doesn't seem to be present "
                        "in your developer portal. Please upload a different "
                        "certificate that exists in your developer portal.",
                        code=result.code,
                    )
                is_valid = result.valid
                if is_valid:
                    self.client.update_credentials(IOS, credentials, self.metadata)
        except PlatformAPIError as e:
            raise CredentialError(CERT_FETCH_FAILED) from e

        # A falsy result without a rejection is still a failure
        if not is_valid:
            raise CredentialError(CERT_FETCH_FAILED)

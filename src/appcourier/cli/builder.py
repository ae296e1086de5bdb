"""Publish a project and start a standalone iOS build.

Steps:
1) Check the project is buildable at all: it needs an ios.bundle_identifier
   and a running packager (``appcourier start``).
2) Refuse to start if a build for this experience is already running. Only
   one build per user/experience can happen at once.
3) Collect and validate Apple ID, distribution certificate and push
   certificate (see :mod:`appcourier.cli.credentials.workflow`).
4) Package and publish the project.
5) Start the build for the published experience.
"""

import logging
from pathlib import Path

import click

from .credentials.prompts import Prompter
from .credentials.workflow import CredentialWorkflow
from .errors import BUILD_IN_PROGRESS, PACKAGER_NOT_RUNNING, PUBLISH_ERROR, CommandError
from .platform.auth import remember_username, require_session
from .platform.client import PlatformClient
from .platform.packaging import package_project
from .platform.types import IOS, BuildResponse
from .processes import is_running, read_packager
from .project import (
    ProjectConfig,
    PublishInfo,
    load_project_config,
    require_bundle_identifier,
)
from .utils import StepProgress, format_size

logger = logging.getLogger(__name__)


def resolve_username(client: PlatformClient) -> str:
    """Username of the logged-in account, looked up once and then cached.

    Raises:
        CommandError: If nobody is logged in.
    """
    session = require_session()
    if session.username:
        return session.username

    username = client.get_current_user().username
    remember_username(username)
    return username


class IOSBuilder:
    """Drive a full iOS build for one project directory."""

    platform = IOS

    def __init__(
        self,
        project_dir: Path,
        client: PlatformClient,
        prompter: Prompter,
        clear_credentials: bool = False,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.client = client
        self.prompter = prompter
        self.clear_credentials = clear_credentials
        self.progress = StepProgress(total=3)

    def run(self) -> BuildResponse:
        # Local checks come before anything touches the network
        config = load_project_config(self.project_dir)
        require_bundle_identifier(config.ios.bundle_identifier)
        self.check_packager_status()

        info = PublishInfo.for_config(config, resolve_username(self.client))
        workflow = CredentialWorkflow.for_project(
            self.client, self.prompter, info, self.clear_credentials
        )

        self.check_status(info)
        workflow.run()
        experience_ids = self.publish(info, config)
        return self.build(experience_ids)

    def check_packager_status(self) -> None:
        """Stop unless the packager for this project is running."""
        process = read_packager(self.project_dir)
        if process is None or not is_running(process.pid):
            raise CommandError(
                PACKAGER_NOT_RUNNING,
                "The packager for this project isn't running. Start it with "
                "'appcourier start' and run this command again.",
            )
        logger.debug(f"Packager running with pid {process.pid}")

    def check_status(self, info: PublishInfo) -> None:
        """Stop if the experience already has a build in flight."""
        builds = self.client.list_builds(
            info.experience_name, platform=self.platform, limit=5
        )
        active = [b for b in builds if b.is_active]
        if active:
            raise CommandError(
                BUILD_IN_PROGRESS,
                f"Build {active[0].id} for {info.experience_name} is still "
                f"{active[0].status}. Only one build per experience can run at "
                "a time; check it with 'appcourier build status'.",
            )

    def publish(self, info: PublishInfo, config: ProjectConfig) -> list[str]:
        """Package the project and publish it. Returns the experience ids.

        Raises:
            CommandError: If the service published nothing.
        """
        click.echo()
        with self.progress.step("Packaging project") as step:
            package_path, manifest = package_project(self.project_dir, config)
            step.detail = format_size(manifest.size_bytes)

        try:
            with self.progress.step(f"Publishing {info.experience_name}"):
                published = self.client.publish(
                    info.experience_name, manifest, str(package_path)
                )
        finally:
            package_path.unlink(missing_ok=True)

        if not published.experience_ids:
            raise CommandError(
                PUBLISH_ERROR,
                f"Publishing {info.experience_name} returned no experiences to build.",
            )
        if published.url:
            click.echo(f"  Published to {published.url}")
        logger.debug(f"Published experience ids: {published.experience_ids}")
        return published.experience_ids

    def build(self, experience_ids: list[str]) -> BuildResponse:
        with self.progress.step("Starting build") as step:
            build = self.client.submit_build(experience_ids, self.platform)
            step.detail = build.id
        return build

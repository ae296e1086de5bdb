"""Loading the appcourier.yaml project configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .commands import APPCOURIER_YAML
from .errors import ConfigurationError

DOCS_URL = "https://docs.appcourier.dev/guides/building-standalone-apps"


class IOSConfig(BaseModel):
    bundle_identifier: str | None = None


class PackagerConfig(BaseModel):
    command: str | None = None
    port: int | None = None


class ProjectConfig(BaseModel):
    """Parsed appcourier.yaml."""

    name: str
    sdk_version: str | None = None
    ios: IOSConfig = Field(default_factory=IOSConfig)
    packager: PackagerConfig = Field(default_factory=PackagerConfig)
    ignore: list[str] = Field(default_factory=list)


class PublishInfo(BaseModel):
    """Who is publishing what, resolved from the session and the project."""

    username: str
    slug: str
    bundle_identifier: str | None = None

    @classmethod
    def for_config(cls, config: ProjectConfig, username: str) -> "PublishInfo":
        return cls(
            username=username,
            slug=config.name,
            bundle_identifier=config.ios.bundle_identifier,
        )

    @property
    def experience_name(self) -> str:
        return f"@{self.username}/{self.slug}"


def load_project_config(project_dir: Path) -> ProjectConfig:
    """Load and validate appcourier.yaml.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    config_path = Path(project_dir) / APPCOURIER_YAML
    if not config_path.exists():
        raise ConfigurationError(
            f"No {APPCOURIER_YAML} found in {project_dir}. "
            "Run 'appcourier init' to create one."
        )

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {APPCOURIER_YAML}:\n  {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{APPCOURIER_YAML} must be a YAML mapping.")

    if not raw.get("name"):
        raise ConfigurationError(f"'name' is required in {APPCOURIER_YAML}.")

    try:
        return ProjectConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {APPCOURIER_YAML}:\n{e}") from e


def get_publish_info(project_dir: Path, username: str) -> PublishInfo:
    """Resolve the publish identity for a project."""
    return PublishInfo.for_config(load_project_config(project_dir), username)


def require_bundle_identifier(bundle_identifier: str | None) -> str:
    """Raises ConfigurationError unless the project sets ios.bundle_identifier."""
    if not bundle_identifier:
        raise ConfigurationError(
            "Your project must have an ios.bundle_identifier set in "
            f"{APPCOURIER_YAML}. See {DOCS_URL}"
        )
    return bundle_identifier

"""Data types for Platform API contracts."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IOS = "ios"


class Session(BaseModel):
    """Stored authentication session for the Platform API."""

    token: str
    token_type: str = "Bearer"
    expires_at: str | None = None
    refresh_token: str | None = None
    username: str | None = None


class DeviceCodeResponse(BaseModel):
    """OAuth device code response."""

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str
    expires_in: int
    interval: int


class UserResponse(BaseModel):
    """The account the current session belongs to."""

    id: str
    username: str
    email: str | None = None


# ==================== CREDENTIALS ====================


class CredentialMetadata(BaseModel):
    """Key identifying which user, experience and app a credential set is for."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    username: str
    experience_name: str
    bundle_identifier: str
    platform: str = IOS


class IOSCredentials(BaseModel):
    """Apple developer credentials for one app.

    A field being set means that kind of credential is known to the service.
    Certificate fields hold base64 encoded P12 data.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    apple_id: str | None = None
    password: str | None = None
    team_id: str | None = None
    cert_p12: str | None = None
    cert_password: str | None = None
    push_p12: str | None = None
    push_password: str | None = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Accepted(BaseModel):
    """The service accepted the credential or finished the operation."""

    kind: Literal["accepted"] = "accepted"
    valid: bool = True


class Rejected(BaseModel):
    """The service rejected the request with a known error code."""

    kind: Literal["rejected"] = "rejected"
    code: str
    message: str


CredentialResult = Accepted | Rejected


# ==================== PUBLISH & BUILD ====================


class PublishManifest(BaseModel):
    """Manifest uploaded alongside a published project archive."""

    version: str = "1.0"
    appcourier_version: str = "0.1.0"
    name: str
    slug: str
    bundle_identifier: str | None = None
    created_at: str = ""
    checksum: str = ""
    size_bytes: int = 0


class PublishResponse(BaseModel):
    """Response from publishing a project."""

    experience_ids: list[str] = Field(default_factory=list, alias="ids")
    url: str | None = None

    model_config = {"populate_by_name": True}


BuildStatus = Literal["pending", "in-progress", "finished", "errored", "canceled"]

ACTIVE_BUILD_STATUSES = ("pending", "in-progress")


class BuildResponse(BaseModel):
    """A remote standalone-app build."""

    id: str
    platform: str = IOS
    status: BuildStatus
    experience_name: str | None = Field(None, alias="experienceName")
    artifact_url: str | None = Field(None, alias="artifactUrl")
    error: str | None = Field(None, alias="errorMessage")
    created_at: str = ""
    updated_at: str = ""

    model_config = {"populate_by_name": True}

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BUILD_STATUSES

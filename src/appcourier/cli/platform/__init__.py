"""appcourier Platform API client."""

from .auth import (
    clear_session,
    get_session,
    remember_username,
    require_session,
    save_session,
)
from .client import PlatformAPIError, PlatformClient
from .config import CREDENTIALS_FILE, PLATFORM_API_URL
from .packaging import package_project
from .types import (
    Accepted,
    BuildResponse,
    CredentialMetadata,
    CredentialResult,
    IOSCredentials,
    PublishManifest,
    PublishResponse,
    Rejected,
    Session,
)

__all__ = [
    # Auth
    "save_session",
    "get_session",
    "clear_session",
    "require_session",
    "remember_username",
    # Client
    "PlatformClient",
    "PlatformAPIError",
    # Config
    "PLATFORM_API_URL",
    "CREDENTIALS_FILE",
    # Packaging
    "package_project",
    # Types
    "Accepted",
    "Rejected",
    "CredentialResult",
    "CredentialMetadata",
    "IOSCredentials",
    "PublishManifest",
    "PublishResponse",
    "BuildResponse",
    "Session",
]

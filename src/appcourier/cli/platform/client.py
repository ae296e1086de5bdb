"""HTTP client for the appcourier Platform API."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .auth import get_session
from .config import DEFAULT_TIMEOUT, PLATFORM_API_URL, USER_AGENT
from .types import (
    Accepted,
    BuildResponse,
    CredentialMetadata,
    CredentialResult,
    DeviceCodeResponse,
    IOSCredentials,
    PublishManifest,
    PublishResponse,
    Rejected,
    Session,
    UserResponse,
)

logger = logging.getLogger(__name__)

# Status codes the service uses for rejections that carry an error_code
CLASSIFIED_STATUS_CODES = (400, 409, 422)


class PlatformAPIError(Exception):
    """Platform API error with status code and message."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict | None = None,
        error_code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        self.error_code = error_code
        super().__init__(f"[{status_code}] {message}")


class PlatformClient:
    """HTTP client for the appcourier Platform API."""

    def __init__(
        self, base_url: str = PLATFORM_API_URL, timeout: int = DEFAULT_TIMEOUT
    ) -> None:
        """Initialize the Platform API client.

        Args:
            base_url: Base URL for the Platform API.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _get_headers(self, authenticated: bool = True) -> dict[str, str]:
        """Get request headers.

        Raises:
            PlatformAPIError: If authenticated=True but no session found.
        """
        headers = {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }
        if authenticated:
            session = get_session()
            if not session:
                raise PlatformAPIError(
                    401, "Not authenticated. Run 'appcourier login' first."
                )
            headers["Authorization"] = f"{session.token_type} {session.token}"
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict | None = None,
        files: dict | None = None,
        data: dict | None = None,
        params: dict | None = None,
        authenticated: bool = True,
    ) -> requests.Response:
        """Make request to Platform API.

        Args:
            method: HTTP method.
            endpoint: API endpoint (without /v1 prefix).
            json_data: JSON body data.
            files: Files for multipart upload.
            data: Form data for multipart upload.
            params: URL query parameters.
            authenticated: Whether to include auth header.

        Returns:
            Response object.

        Raises:
            PlatformAPIError: On API errors or connection issues.
        """
        url = f"{self.base_url}/v1{endpoint}"
        headers = self._get_headers(authenticated)

        # Remove Content-Type for multipart uploads
        if files:
            headers.pop("Content-Type", None)

        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                json=json_data,
                files=files,
                data=data,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise PlatformAPIError(0, "Cannot connect to appcourier API") from e
        except requests.exceptions.Timeout as e:
            raise PlatformAPIError(0, "Request timed out") from e
        except requests.exceptions.RequestException as e:
            raise PlatformAPIError(0, "Network request failed") from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except json.JSONDecodeError:
                error_data = {}
            if not isinstance(error_data, dict):
                error_data = {}
            detail = error_data.get("detail") or error_data.get("message")
            if detail and not isinstance(detail, str):
                detail = json.dumps(detail)
            logger.debug(
                f"{method} {url} failed with {response.status_code}: {detail}"
            )
            raise PlatformAPIError(
                response.status_code,
                detail or response.reason,
                error_data.get("details"),
                error_code=error_data.get("error_code"),
            )
        return response

    @staticmethod
    def _safe_json(resp: requests.Response) -> Any:
        """Parse JSON from response, raising PlatformAPIError on failure."""
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise PlatformAPIError(
                resp.status_code,
                "Unexpected response from server. Please try again.",
            ) from e

    @classmethod
    def _safe_dict(cls, resp: requests.Response) -> dict[str, Any]:
        """Parse a JSON object body; any other JSON value is a server error."""
        data = cls._safe_json(resp)
        if not isinstance(data, dict):
            raise PlatformAPIError(
                resp.status_code,
                "Unexpected response from server. Please try again.",
            )
        return data

    _T = TypeVar("_T", bound=BaseModel)

    @staticmethod
    def _safe_validate(model_cls: type[_T], data: Any) -> _T:
        """Validate data against a Pydantic model, raising PlatformAPIError on failure."""
        try:
            return model_cls.model_validate(data)
        except ValidationError as e:
            raise PlatformAPIError(
                0,
                "Unexpected response format from server. "
                "Try updating: pip install -U appcourier",
            ) from e

    def _credential_request(self, endpoint: str, payload: dict) -> CredentialResult:
        """POST to a credential endpoint and classify the outcome.

        Rejections the service tags with an ``error_code`` come back as
        :class:`Rejected`; every other failure raises.
        """
        try:
            resp = self._request("POST", endpoint, json_data=payload)
        except PlatformAPIError as e:
            if e.error_code and e.status_code in CLASSIFIED_STATUS_CODES:
                logger.debug(f"{endpoint} rejected: {e.error_code}")
                return Rejected(code=e.error_code, message=e.message)
            raise
        data = self._safe_dict(resp) if resp.content else {}
        return Accepted(valid=bool(data.get("valid", True)))

    # ==================== AUTH ====================

    def validate_token(self) -> bool:
        """Validate the current session.

        Returns:
            True if token is valid, False otherwise.
        """
        try:
            resp = self._request("GET", "/auth/validate")
            return bool(self._safe_dict(resp).get("valid", False))
        except PlatformAPIError:
            return False

    def get_device_code(self) -> DeviceCodeResponse:
        """Request OAuth device code for authentication."""
        resp = self._request("POST", "/auth/device-code", authenticated=False)
        return self._safe_validate(DeviceCodeResponse, self._safe_json(resp))

    def poll_device_token(self, device_code: str) -> Session:
        """Poll for OAuth token after user authorization.

        Args:
            device_code: Device code from get_device_code().

        Returns:
            Session if authorized.

        Raises:
            PlatformAPIError: If authorization pending (428) or failed.
        """
        resp = self._request(
            "POST",
            "/auth/device-token",
            json_data={"device_code": device_code},
            authenticated=False,
        )
        data = self._safe_dict(resp)

        # Handle OAuth error responses per RFC 8628
        if "error" in data:
            error = data["error"]
            if error == "authorization_pending":
                raise PlatformAPIError(
                    428,
                    "Authorization pending",
                    {"oauth_error": "authorization_pending"},
                )
            elif error == "slow_down":
                raise PlatformAPIError(400, "Slow down", {"oauth_error": "slow_down"})
            elif error == "expired_token":
                raise PlatformAPIError(
                    410, "Device code expired", {"oauth_error": "expired_token"}
                )
            elif error == "access_denied":
                raise PlatformAPIError(
                    403, "Access denied by user", {"oauth_error": "access_denied"}
                )
            else:
                raise PlatformAPIError(400, data.get("error_description", error))

        token = data.get("access_token") or data.get("token")
        if not token:
            raise PlatformAPIError(
                500,
                f"Invalid response from auth server: missing token. Response keys: {list(data.keys())}",
            )

        return Session(
            token=token,
            expires_at=data.get("expires_at"),
            refresh_token=data.get("refresh_token"),
        )

    def get_current_user(self) -> UserResponse:
        """Get the account the current session belongs to."""
        resp = self._request("GET", "/auth/me")
        return self._safe_validate(UserResponse, self._safe_json(resp))

    # ==================== CREDENTIALS ====================

    def fetch_credentials(self, metadata: CredentialMetadata) -> IOSCredentials | None:
        """Fetch the credentials stored for an experience.

        Args:
            metadata: Which user, experience and app to look up.

        Returns:
            Stored credentials, or None if the service has none.
        """
        resp = self._request(
            "POST",
            "/credentials/fetch",
            json_data={"metadata": metadata.model_dump(by_alias=True)},
        )
        data = self._safe_dict(resp).get("credentials")
        if not data:
            return None
        return self._safe_validate(IOSCredentials, data)

    def validate_credentials(
        self,
        platform: str,
        kind: str,
        credentials: IOSCredentials | None,
        metadata: CredentialMetadata,
    ) -> CredentialResult:
        """Validate one kind of credential.

        Args:
            platform: Target platform, e.g. "ios".
            kind: Credential kind ("appleId", "cert" or "push").
            credentials: New credentials to check, or None to re-check the
                stored ones.
            metadata: Which user, experience and app they belong to.
        """
        return self._credential_request(
            "/credentials/validate",
            {
                "platform": platform,
                "type": kind,
                "credentials": credentials.to_wire() if credentials else None,
                "metadata": metadata.model_dump(by_alias=True),
            },
        )

    def update_credentials(
        self,
        platform: str,
        credentials: IOSCredentials,
        metadata: CredentialMetadata,
    ) -> None:
        """Store credentials for an experience, merging with existing ones."""
        self._request(
            "POST",
            "/credentials/update",
            json_data={
                "platform": platform,
                "credentials": credentials.to_wire(),
                "metadata": metadata.model_dump(by_alias=True),
            },
        )

    def generate_certificates(self, metadata: CredentialMetadata) -> CredentialResult:
        """Ask the service to create and store a distribution certificate."""
        return self._credential_request(
            "/credentials/generate-certs",
            {"metadata": metadata.model_dump(by_alias=True)},
        )

    def generate_push_certificates(
        self, metadata: CredentialMetadata
    ) -> CredentialResult:
        """Ask the service to create and store a push notification certificate.

        The returned :class:`Accepted` carries whether the new certificate
        validated.
        """
        return self._credential_request(
            "/credentials/generate-push-certs",
            {"metadata": metadata.model_dump(by_alias=True)},
        )

    def ensure_app_id(self, metadata: CredentialMetadata) -> CredentialResult:
        """Make sure an App ID exists for the bundle identifier."""
        return self._credential_request(
            "/credentials/ensure-app-id",
            {"metadata": metadata.model_dump(by_alias=True)},
        )

    # ==================== PUBLISH & BUILD ====================

    def publish(
        self, name: str, manifest: PublishManifest, tarball_path: str
    ) -> PublishResponse:
        """Upload a packaged project.

        Args:
            name: Full experience name, e.g. "@jane/my-app".
            manifest: Manifest describing the archive.
            tarball_path: Path to the .tar.gz package.

        Returns:
            Ids of the published experiences.
        """
        with open(tarball_path, "rb") as f:
            resp = self._request(
                "POST",
                "/publish",
                files={"file": ("project.tar.gz", f, "application/gzip")},
                data={
                    "name": name,
                    "manifest": manifest.model_dump_json(),
                },
            )
        return self._safe_validate(PublishResponse, self._safe_json(resp))

    def submit_build(self, experience_ids: list[str], platform: str) -> BuildResponse:
        """Start a standalone-app build for published experiences."""
        resp = self._request(
            "POST",
            "/builds",
            json_data={"experienceIds": experience_ids, "platform": platform},
        )
        return self._safe_validate(BuildResponse, self._safe_json(resp))

    def list_builds(
        self, experience_name: str, platform: str | None = None, limit: int = 10
    ) -> list[BuildResponse]:
        """List recent builds for an experience, newest first."""
        params: dict[str, str] = {
            "experienceName": experience_name,
            "limit": str(limit),
        }
        if platform:
            params["platform"] = platform
        resp = self._request("GET", "/builds", params=params)
        builds = self._safe_dict(resp).get("builds") or []
        if not isinstance(builds, list):
            raise PlatformAPIError(
                resp.status_code, "Unexpected response from server. Please try again."
            )
        return [self._safe_validate(BuildResponse, b) for b in builds]

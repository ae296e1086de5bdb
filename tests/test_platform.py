"""Tests for appcourier.cli.platform module."""

import json
import tarfile
from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from appcourier.cli.platform.auth import (
    clear_session,
    get_session,
    remember_username,
    require_session,
    save_session,
)
from appcourier.cli.errors import NOT_AUTHENTICATED, CommandError
from appcourier.cli.platform.client import PlatformAPIError, PlatformClient
from appcourier.cli.platform.packaging import package_project, should_exclude
from appcourier.cli.platform.types import (
    Accepted,
    BuildResponse,
    CredentialMetadata,
    IOSCredentials,
    PublishManifest,
    Rejected,
    Session,
)
from appcourier.cli.project import load_project_config


def _response(status_code: int = 200, payload=None, reason: str = "OK"):
    """Build a fake requests.Response."""
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.reason = reason
    resp.content = json.dumps(payload).encode() if payload is not None else b""
    resp.json.return_value = payload
    return resp


@pytest.fixture
def logged_in(config_dir):
    save_session(Session(token="test-token", username="jane"))
    return config_dir


@pytest.fixture
def api(logged_in):
    """A PlatformClient whose HTTP session is a mock."""
    client = PlatformClient(base_url="https://api.test/")
    client._session = MagicMock()
    return client


class TestTypes:
    """Tests for Platform API models."""

    def test_session_defaults(self):
        session = Session(token="t")
        assert session.token_type == "Bearer"
        assert session.username is None

    def test_session_requires_token(self):
        with pytest.raises(ValidationError):
            Session()

    def test_metadata_uses_camel_case_on_the_wire(self, metadata):
        assert metadata.model_dump(by_alias=True) == {
            "username": "jane",
            "experienceName": "@jane/my-app",
            "bundleIdentifier": "com.example.myapp",
            "platform": "ios",
        }

    def test_metadata_is_frozen(self, metadata):
        with pytest.raises(ValidationError):
            metadata.username = "someone-else"

    def test_credentials_wire_format_drops_missing_fields(self):
        creds = IOSCredentials(cert_p12="Y2VydA==", cert_password="")
        assert creds.to_wire() == {"certP12": "Y2VydA==", "certPassword": ""}

    def test_credentials_parse_from_wire(self):
        creds = IOSCredentials.model_validate(
            {"appleId": "jane@example.com", "teamId": "T", "pushP12": "cHVzaA=="}
        )
        assert creds.apple_id == "jane@example.com"
        assert creds.team_id == "T"
        assert creds.cert_p12 is None

    def test_build_response_active(self):
        assert BuildResponse(id="b1", status="pending").is_active
        assert BuildResponse(id="b1", status="in-progress").is_active
        assert not BuildResponse(id="b1", status="finished").is_active

    def test_build_response_invalid_status(self):
        with pytest.raises(ValidationError):
            BuildResponse(id="b1", status="exploded")


class TestAuthModule:
    """Tests for session storage."""

    def test_save_and_get_session(self, config_dir):
        save_session(Session(token="save-test-token", username="jane"))

        loaded = get_session()
        assert loaded is not None
        assert loaded.token == "save-test-token"
        assert loaded.username == "jane"

    def test_get_session_not_exists(self, config_dir):
        assert get_session() is None

    def test_get_session_corrupt_file(self, config_dir):
        config_dir.mkdir(parents=True)
        (config_dir / "credentials.json").write_text("{not json")
        assert get_session() is None

    def test_clear_session(self, config_dir):
        assert clear_session() is False
        save_session(Session(token="auth-test"))
        assert clear_session() is True
        assert get_session() is None

    def test_require_session(self, config_dir):
        with pytest.raises(CommandError, match="appcourier login") as exc_info:
            require_session()
        assert exc_info.value.code == NOT_AUTHENTICATED

        save_session(Session(token="auth-test"))
        assert require_session().token == "auth-test"

    def test_remember_username_keeps_token(self, config_dir):
        save_session(Session(token="auth-test"))

        remember_username("jane")

        session = get_session()
        assert session.token == "auth-test"
        assert session.username == "jane"

    def test_session_file_permissions_are_reset(self, config_dir):
        config_dir.mkdir(parents=True)
        path = config_dir / "credentials.json"
        path.write_text("{}")
        path.chmod(0o644)

        save_session(Session(token="perm-test"))

        assert path.stat().st_mode & 0o777 == 0o600

    def test_session_file_permissions(self, config_dir):
        save_session(Session(token="perm-test"))
        mode = (config_dir / "credentials.json").stat().st_mode & 0o777
        assert mode == 0o600


class TestClientRequests:
    """Tests for PlatformClient request handling."""

    def test_requires_session(self, config_dir):
        client = PlatformClient(base_url="https://api.test")
        with pytest.raises(PlatformAPIError) as exc_info:
            client.list_builds("@jane/my-app")
        assert exc_info.value.status_code == 401

    def test_sends_auth_header_and_v1_prefix(self, api):
        api._session.request.return_value = _response(payload={"builds": []})

        api.list_builds("@jane/my-app", platform="ios")

        method, url = api._session.request.call_args.args
        kwargs = api._session.request.call_args.kwargs
        assert method == "GET"
        assert url == "https://api.test/v1/builds"
        assert kwargs["headers"]["Authorization"] == "Bearer test-token"
        assert kwargs["params"] == {
            "experienceName": "@jane/my-app",
            "limit": "10",
            "platform": "ios",
        }

    def test_error_response_raises(self, api):
        api._session.request.return_value = _response(
            500, {"detail": "boom"}, reason="Internal Server Error"
        )
        with pytest.raises(PlatformAPIError) as exc_info:
            api.list_builds("@jane/my-app")
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "boom"

    def test_connection_error(self, api):
        api._session.request.side_effect = requests.exceptions.ConnectionError()
        with pytest.raises(PlatformAPIError) as exc_info:
            api.list_builds("@jane/my-app")
        assert exc_info.value.status_code == 0

    def test_timeout(self, api):
        api._session.request.side_effect = requests.exceptions.Timeout()
        with pytest.raises(PlatformAPIError) as exc_info:
            api.list_builds("@jane/my-app")
        assert exc_info.value.message == "Request timed out"


class TestClientCredentials:
    """Tests for the credential endpoints."""

    def test_fetch_credentials(self, api, metadata):
        api._session.request.return_value = _response(
            payload={"credentials": {"appleId": "jane@example.com", "certP12": "Y2VydA=="}}
        )

        creds = api.fetch_credentials(metadata)

        assert creds == IOSCredentials(apple_id="jane@example.com", cert_p12="Y2VydA==")
        body = api._session.request.call_args.kwargs["json"]
        assert body["metadata"]["bundleIdentifier"] == "com.example.myapp"

    def test_fetch_credentials_none_stored(self, api, metadata):
        api._session.request.return_value = _response(payload={"credentials": None})
        assert api.fetch_credentials(metadata) is None

    def test_validate_accepted(self, api, metadata):
        api._session.request.return_value = _response(payload={"valid": True})

        result = api.validate_credentials(
            "ios", "cert", IOSCredentials(cert_p12="Y2VydA=="), metadata
        )

        assert result == Accepted(valid=True)
        body = api._session.request.call_args.kwargs["json"]
        assert body["type"] == "cert"
        assert body["credentials"] == {"certP12": "Y2VydA=="}

    def test_validate_stored_sends_no_credentials(self, api, metadata):
        api._session.request.return_value = _response(payload={"valid": True})

        api.validate_credentials("ios", "appleId", None, metadata)

        assert api._session.request.call_args.kwargs["json"]["credentials"] is None

    def test_classified_rejection(self, api, metadata):
        api._session.request.return_value = _response(
            422,
            {"error_code": "INVALID_APPLE_ID", "message": "Wrong password."},
            reason="Unprocessable Entity",
        )

        result = api.validate_credentials("ios", "appleId", None, metadata)

        assert result == Rejected(code="INVALID_APPLE_ID", message="Wrong password.")

    def test_error_without_code_is_not_classified(self, api, metadata):
        api._session.request.return_value = _response(
            422, {"detail": "bad input"}, reason="Unprocessable Entity"
        )
        with pytest.raises(PlatformAPIError):
            api.validate_credentials("ios", "appleId", None, metadata)

    def test_server_error_with_code_is_not_classified(self, api, metadata):
        api._session.request.return_value = _response(
            500, {"error_code": "INTERNAL", "message": "oops"}
        )
        with pytest.raises(PlatformAPIError):
            api.generate_certificates(metadata)

    def test_generate_push_certificates_reports_validity(self, api, metadata):
        api._session.request.return_value = _response(payload={"valid": False})
        assert api.generate_push_certificates(metadata) == Accepted(valid=False)

    def test_ensure_app_id_empty_body(self, api, metadata):
        api._session.request.return_value = _response(payload=None)
        assert api.ensure_app_id(metadata) == Accepted()

    def test_non_object_body_is_a_server_error(self, api, metadata):
        api._session.request.return_value = _response(payload=["valid"])
        with pytest.raises(PlatformAPIError, match="Unexpected response"):
            api.validate_credentials("ios", "cert", None, metadata)

    def test_fetch_credentials_non_object_body(self, api, metadata):
        api._session.request.return_value = _response(payload=[{"appleId": "x"}])
        with pytest.raises(PlatformAPIError, match="Unexpected response"):
            api.fetch_credentials(metadata)


class TestClientPublishAndBuild:
    """Tests for publish and build endpoints."""

    def test_publish_uploads_archive(self, api, tmp_path):
        archive = tmp_path / "project.tar.gz"
        archive.write_bytes(b"archive")
        api._session.request.return_value = _response(
            payload={"ids": ["exp-1"], "url": "https://exp.test/@jane/my-app"}
        )

        published = api.publish(
            "@jane/my-app", PublishManifest(name="my-app", slug="my-app"), str(archive)
        )

        assert published.experience_ids == ["exp-1"]
        kwargs = api._session.request.call_args.kwargs
        assert "Content-Type" not in kwargs["headers"]
        assert kwargs["data"]["name"] == "@jane/my-app"
        assert "file" in kwargs["files"]

    def test_submit_build(self, api):
        api._session.request.return_value = _response(
            payload={"id": "build-1", "platform": "ios", "status": "pending"}
        )

        build = api.submit_build(["exp-1"], "ios")

        assert build.id == "build-1"
        assert api._session.request.call_args.kwargs["json"] == {
            "experienceIds": ["exp-1"],
            "platform": "ios",
        }

    def test_list_builds(self, api):
        api._session.request.return_value = _response(
            payload={"builds": [{"id": "build-1", "status": "in-progress"}]}
        )

        builds = api.list_builds("@jane/my-app", platform="ios", limit=5)

        assert [b.id for b in builds] == ["build-1"]
        assert builds[0].is_active
        assert api._session.request.call_args.kwargs["params"] == {
            "experienceName": "@jane/my-app",
            "limit": "5",
            "platform": "ios",
        }

    def test_list_builds_non_object_body(self, api):
        api._session.request.return_value = _response(payload=[{"id": "build-1"}])
        with pytest.raises(PlatformAPIError, match="Unexpected response"):
            api.list_builds("@jane/my-app")

    def test_unexpected_build_payload(self, api):
        api._session.request.return_value = _response(payload={"nope": True})
        with pytest.raises(PlatformAPIError) as exc_info:
            api.submit_build(["exp-1"], "ios")
        assert "Unexpected response format" in exc_info.value.message


class TestPackaging:
    """Tests for project packaging."""

    def test_package_project(self, project_dir):
        (project_dir / "node_modules" / "react").mkdir(parents=True)
        (project_dir / "node_modules" / "react" / "index.js").write_text("")
        (project_dir / ".env").write_text("SECRET=1")
        (project_dir / "assets" / "raw").mkdir(parents=True)
        (project_dir / "assets" / "raw" / "big.psd").write_text("x")
        (project_dir / "assets" / "icon.png").write_text("png")
        with open(project_dir / "appcourier.yaml", "a") as f:
            f.write("ignore:\n  - assets/raw\n")

        config = load_project_config(project_dir)
        package_path, manifest = package_project(project_dir, config)
        try:
            with tarfile.open(package_path) as tar:
                names = set(tar.getnames())
        finally:
            package_path.unlink()

        assert names == {"App.js", "appcourier.yaml", "assets/icon.png"}
        assert manifest.slug == "my-app"
        assert manifest.bundle_identifier == "com.example.myapp"
        assert len(manifest.checksum) == 64
        assert manifest.size_bytes > 0

    def test_should_exclude(self, tmp_path):
        assert should_exclude(tmp_path / ".git" / "HEAD", tmp_path)
        assert should_exclude(tmp_path / "ios" / "Pods" / "x", tmp_path)
        assert not should_exclude(tmp_path / "src" / "App.js", tmp_path)
        assert should_exclude(tmp_path / "docs" / "a.md", tmp_path, {"docs/"})
        assert not should_exclude(tmp_path / "docsite" / "a.md", tmp_path, {"docs"})


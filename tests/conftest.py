"""Shared fixtures for appcourier tests."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from appcourier.cli.credentials.prompts import Question
from appcourier.cli.platform.client import PlatformClient
from appcourier.cli.platform.types import Accepted, CredentialMetadata


class ScriptedPrompter:
    """Prompter that replays answers in order and records every question."""

    def __init__(self, *answers):
        self._answers = list(answers)
        self.asked: list[Question] = []

    def ask(self, question: Question):
        self.asked.append(question)
        if not self._answers:
            raise AssertionError(f"Unexpected prompt: {question.message!r}")
        return self._answers.pop(0)

    @property
    def asked_names(self) -> list[str]:
        return [q.name for q in self.asked]

    @property
    def exhausted(self) -> bool:
        return not self._answers


@pytest.fixture
def runner():
    """Provide a CLI runner."""
    return CliRunner()


@pytest.fixture
def metadata():
    return CredentialMetadata(
        username="jane",
        experience_name="@jane/my-app",
        bundle_identifier="com.example.myapp",
    )


@pytest.fixture
def client():
    """A PlatformClient mock where every credential call succeeds."""
    mock = MagicMock(spec=PlatformClient)
    mock.fetch_credentials.return_value = None
    mock.validate_credentials.return_value = Accepted()
    mock.generate_certificates.return_value = Accepted()
    mock.generate_push_certificates.return_value = Accepted(valid=True)
    mock.ensure_app_id.return_value = Accepted()
    return mock


@pytest.fixture
def config_dir(tmp_path):
    """Point the session file and process registry at a temporary directory."""
    base = tmp_path / ".appcourier"
    with (
        patch("appcourier.cli.platform.config.CREDENTIALS_FILE", base / "credentials.json"),
        patch(
            "appcourier.cli.platform.config.PROCESS_REGISTRY_FILE",
            base / "processes.json",
        ),
    ):
        yield base


@pytest.fixture
def p12_file(tmp_path):
    path = tmp_path / "dist.p12"
    path.write_bytes(b"\x30\x82fake-p12")
    return path


@pytest.fixture
def project_dir(tmp_path):
    """A project with a complete appcourier.yaml."""
    project = tmp_path / "my-app"
    project.mkdir()
    (project / "appcourier.yaml").write_text(
        "name: my-app\n"
        "ios:\n"
        "  bundle_identifier: com.example.myapp\n"
        "packager:\n"
        "  command: python -m http.server\n"
        "  port: 19000\n"
    )
    (project / "App.js").write_text("export default function App() {}\n")
    return project


@pytest.fixture
def scripted():
    """Factory for ScriptedPrompter instances."""
    return ScriptedPrompter

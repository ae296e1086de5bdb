"""Tests for the prompting helpers."""

import os

import click
import pytest

from appcourier.cli.credentials.prompts import (
    Choice,
    Prompter,
    Question,
    QuestionaryPrompter,
    ask_all,
    existing_file,
    required,
    resolve_path,
)


class TestAskAll:
    """Tests for ask_all."""

    def test_answers_keyed_by_name(self, scripted):
        prompter = scripted("jane", "secret")
        answers = ask_all(
            prompter,
            [
                Question(name="user", message="User?"),
                Question(name="password", message="Password?", kind="password"),
            ],
        )
        assert answers == {"user": "jane", "password": "secret"}

    def test_reasks_until_valid(self, scripted, capsys):
        prompter = scripted("", "", "jane")
        answers = ask_all(
            prompter, [Question(name="user", message="User?", validate=required)]
        )
        assert answers == {"user": "jane"}
        assert prompter.asked_names == ["user", "user", "user"]
        assert "This field is required." in capsys.readouterr().err

    def test_filter_runs_before_validate(self, scripted):
        seen = []

        def validate(value):
            seen.append(value)
            return True

        ask_all(
            scripted("  Jane "),
            [
                Question(
                    name="user",
                    message="User?",
                    filter=lambda v: v.strip().lower(),
                    validate=validate,
                )
            ],
        )
        assert seen == ["jane"]

    def test_when_skips_question(self, scripted):
        prompter = scripted("managed")
        answers = ask_all(
            prompter,
            [
                Question(
                    name="manage",
                    message="Manage?",
                    kind="select",
                    choices=[Choice("Yes", "managed"), Choice("No", "upload")],
                ),
                Question(
                    name="path",
                    message="Path?",
                    when=lambda a: a["manage"] == "upload",
                ),
            ],
        )
        assert answers == {"manage": "managed"}
        assert prompter.asked_names == ["manage"]

    def test_cancel_aborts(self, scripted):
        with pytest.raises(click.Abort):
            ask_all(scripted(None), [Question(name="user", message="User?")])

    def test_empty_password_allowed_without_validator(self, scripted):
        answers = ask_all(
            scripted(""),
            [Question(name="pw", message="Password?", kind="password")],
        )
        assert answers == {"pw": ""}


class TestValidators:
    """Tests for validators and filters."""

    def test_required(self):
        assert required("x") is True
        assert isinstance(required(""), str)

    def test_resolve_path_expands_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_path("~/cert.p12") == str(tmp_path / "cert.p12")

    def test_resolve_path_makes_relative_absolute(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        resolved = resolve_path("certs/dist.p12")
        assert os.path.isabs(resolved)
        assert resolved == os.path.join(os.getcwd(), "certs", "dist.p12")

    def test_existing_file(self, tmp_path):
        path = tmp_path / "a.p12"
        path.write_bytes(b"x")
        assert existing_file(str(path)) is True
        assert existing_file(str(tmp_path / "missing.p12")) == "File does not exist."
        assert existing_file(str(tmp_path)) == "File does not exist."


def test_prompters_satisfy_protocol(scripted):
    assert isinstance(QuestionaryPrompter(), Prompter)
    assert isinstance(scripted(), Prompter)

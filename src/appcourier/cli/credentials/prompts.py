"""Interactive prompting behind a swappable interface.

The credential workflow only talks to a :class:`Prompter`. The terminal
implementation uses questionary; tests substitute one that replays scripted
answers.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

import click
import questionary
from questionary import Style

# Pastel prompt style
PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#b48ead"),  # soft lavender question mark
        ("question", "fg:#d8dee9 bold"),  # light grey-white question text
        ("answer", "fg:#e8915a"),  # warm orange answers
        ("pointer", "fg:#b48ead bold"),  # lavender pointer
        ("highlighted", "fg:#88c0d0 bold"),  # pastel cyan for focused item
        ("instruction", "fg:#4c566a"),  # muted grey instructions
    ]
)


@dataclass
class Choice:
    title: str
    value: str


@dataclass
class Question:
    """One prompt in an ordered list of questions.

    ``filter`` transforms the raw answer before ``validate`` sees it.
    ``validate`` returns True to accept, or False / an error message to ask
    again. ``when`` receives the answers so far and decides whether the
    question is asked at all.
    """

    name: str
    message: str
    kind: Literal["text", "password", "select"] = "text"
    choices: list[Choice] = field(default_factory=list)
    validate: Callable[[Any], bool | str] | None = None
    when: Callable[[dict[str, Any]], bool] | None = None
    filter: Callable[[Any], Any] | None = None


@runtime_checkable
class Prompter(Protocol):
    """Anything that can put a question to the operator and return the answer.

    Returns None if the operator cancelled.
    """

    def ask(self, question: Question) -> Any: ...


class QuestionaryPrompter:
    """Prompter backed by questionary on the current terminal."""

    def ask(self, question: Question) -> Any:
        if question.kind == "select":
            return questionary.select(
                question.message,
                choices=[
                    questionary.Choice(c.title, value=c.value)
                    for c in question.choices
                ],
                style=PROMPT_STYLE,
            ).ask()
        if question.kind == "password":
            return questionary.password(question.message, style=PROMPT_STYLE).ask()
        return questionary.text(question.message, style=PROMPT_STYLE).ask()


def ask_all(prompter: Prompter, questions: list[Question]) -> dict[str, Any]:
    """Ask questions in order and return the answers keyed by name.

    Invalid answers are reported and the same question is asked again until
    it passes.

    Raises:
        click.Abort: If the operator cancels a prompt.
    """
    answers: dict[str, Any] = {}
    for question in questions:
        if question.when is not None and not question.when(answers):
            continue
        while True:
            raw = prompter.ask(question)
            if raw is None:
                raise click.Abort()
            value = question.filter(raw) if question.filter else raw
            verdict = question.validate(value) if question.validate else True
            if verdict is True:
                answers[question.name] = value
                break
            message = verdict if isinstance(verdict, str) else "Invalid input."
            click.echo(message, err=True)
    return answers


# ==================== VALIDATORS & FILTERS ====================


def required(value: Any) -> bool | str:
    """Reject empty answers."""
    if value == "" or value is None:
        return "This field is required."
    return True


def resolve_path(value: str) -> str:
    """Expand ``~`` and make the path absolute."""
    return os.path.abspath(os.path.expanduser(value.strip()))


def existing_file(value: str) -> bool | str:
    if Path(value).is_file():
        return True
    return "File does not exist."

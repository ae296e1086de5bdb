"""Apple credential collection and validation."""

from .prompts import Prompter, Question, QuestionaryPrompter, ask_all
from .state import Action, CredentialKind, CredentialState, initial_state, next_action
from .workflow import CredentialWorkflow

__all__ = [
    "Action",
    "CredentialKind",
    "CredentialState",
    "CredentialWorkflow",
    "Prompter",
    "Question",
    "QuestionaryPrompter",
    "ask_all",
    "initial_state",
    "next_action",
]

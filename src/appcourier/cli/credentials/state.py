"""Per-kind credential states and the transitions between them.

Each credential kind moves through its own small state machine. Where it
starts depends only on what the service already stores and on whether the
operator asked to clear credentials; from there exactly one action applies.
"""

from enum import Enum

from ..platform.types import Accepted, CredentialResult, IOSCredentials


class CredentialKind(Enum):
    """Kinds of credential an iOS build needs, valued by their wire name."""

    APPLE_ID = "appleId"
    CERT = "cert"
    PUSH = "push"


class CredentialState(Enum):
    ABSENT = "absent"
    PRESENT_UNVALIDATED = "present_unvalidated"
    VALID = "valid"
    INVALID = "invalid"


class Action(Enum):
    """What the workflow does for a kind in a given state."""

    COLLECT = "collect"
    REVALIDATE = "revalidate"


# Field whose presence means the service already holds that kind
_PRESENCE_FIELDS = {
    CredentialKind.APPLE_ID: "apple_id",
    CredentialKind.CERT: "cert_p12",
    CredentialKind.PUSH: "push_p12",
}


def initial_state(
    existing: IOSCredentials | None, kind: CredentialKind, clear: bool
) -> CredentialState:
    """Starting state of a kind given the stored bundle and the clear flag."""
    if clear or existing is None:
        return CredentialState.ABSENT
    if getattr(existing, _PRESENCE_FIELDS[kind]):
        return CredentialState.PRESENT_UNVALIDATED
    return CredentialState.ABSENT


def next_action(state: CredentialState) -> Action:
    """The single action to take from a starting state.

    Raises:
        ValueError: For states that are already settled.
    """
    if state is CredentialState.ABSENT:
        return Action.COLLECT
    if state is CredentialState.PRESENT_UNVALIDATED:
        return Action.REVALIDATE
    raise ValueError(f"No action for settled state {state.name}")


def state_after_validation(result: CredentialResult) -> CredentialState:
    if isinstance(result, Accepted) and result.valid:
        return CredentialState.VALID
    return CredentialState.INVALID


def plan(
    existing: IOSCredentials | None, clear: bool
) -> dict[CredentialKind, Action]:
    """Action for every kind, in the order the workflow handles them."""
    return {
        kind: next_action(initial_state(existing, kind, clear))
        for kind in CredentialKind
    }

"""The login session stored in ~/.appcourier/credentials.json.

Only the API token and the account's username live here. Apple credentials
are kept by the service and never written locally.
"""

import logging
import os

from pydantic import ValidationError

from ..errors import NOT_AUTHENTICATED, CommandError
from . import config
from .types import Session

logger = logging.getLogger(__name__)


def save_session(session: Session) -> None:
    """Write the session, readable by the owner only."""
    path = config.CREDENTIALS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(session.model_dump_json())
    # O_CREAT leaves the mode of an existing file alone
    path.chmod(0o600)


def get_session() -> Session | None:
    """Load the stored session.

    Returns:
        The session, or None if nobody is logged in or the file is unreadable.
    """
    path = config.CREDENTIALS_FILE
    if not path.exists():
        return None
    try:
        return Session.model_validate_json(path.read_text())
    except (ValidationError, ValueError):
        logger.warning(f"Ignoring unreadable session file at {path}")
        return None


def require_session() -> Session:
    """The stored session, for commands that only make sense when logged in.

    Raises:
        CommandError: If nobody is logged in.
    """
    session = get_session()
    if session is None:
        raise CommandError(
            NOT_AUTHENTICATED, "Not logged in. Run 'appcourier login' first."
        )
    return session


def remember_username(username: str) -> None:
    """Cache the account's username next to the token.

    Experiences are named ``@<username>/<slug>``, so builds need it on every
    run.
    """
    session = require_session()
    session.username = username
    save_session(session)


def clear_session() -> bool:
    """Log out. Returns False if there was no session to remove."""
    path = config.CREDENTIALS_FILE
    if not path.exists():
        return False
    path.unlink()
    return True

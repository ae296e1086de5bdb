"""Anonymous usage events for the appcourier CLI.

Events go to PostHog only when the build was made with a project key
(``APPCOURIER_POSTHOG_KEY``) and the operator hasn't opted out with
``APPCOURIER_DO_NOT_TRACK`` or ``DO_NOT_TRACK``. Nothing identifying is sent:
no usernames, experience names or bundle identifiers.
"""

import logging
import os
import platform
import uuid

from .. import __version__
from .platform.config import APPCOURIER_CONFIG_DIR

logger = logging.getLogger(__name__)

POSTHOG_PUBLIC_API_KEY = os.environ.get("APPCOURIER_POSTHOG_KEY", "")
POSTHOG_HOST = "https://us.i.posthog.com"

ANONYMOUS_ID_FILE = APPCOURIER_CONFIG_DIR / "anonymous_id"


def is_enabled() -> bool:
    if not POSTHOG_PUBLIC_API_KEY:
        return False
    return not (os.getenv("APPCOURIER_DO_NOT_TRACK") or os.getenv("DO_NOT_TRACK"))


def _anonymous_id() -> str:
    """A random id for this machine, created on first use."""
    if ANONYMOUS_ID_FILE.exists():
        return ANONYMOUS_ID_FILE.read_text().strip()
    ANONYMOUS_ID_FILE.parent.mkdir(parents=True, exist_ok=True)
    anonymous_id = str(uuid.uuid4())
    ANONYMOUS_ID_FILE.write_text(anonymous_id)
    return anonymous_id


def event_properties(properties: dict | None = None) -> dict:
    """Properties sent with every event, plus the event's own."""
    return {
        "cli_version": __version__,
        "os": platform.system(),
        "python_version": platform.python_version(),
        **(properties or {}),
    }


def track(event: str, properties: dict | None = None) -> None:
    """Send a usage event, e.g. ``track("cli_build", {"platform": "ios"})``.

    Failures are logged at debug level and never reach the command.
    """
    if not is_enabled():
        return

    try:
        from posthog import Posthog

        posthog = Posthog(
            project_api_key=POSTHOG_PUBLIC_API_KEY, host=POSTHOG_HOST, sync_mode=True
        )
        posthog.capture(
            distinct_id=_anonymous_id(),
            event=event,
            properties=event_properties(properties),
        )
        posthog.shutdown()
    except Exception as e:
        logger.debug(f"Analytics event {event} not sent: {e}")

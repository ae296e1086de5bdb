"""Platform API configuration constants."""

import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PLATFORM_API_URL = os.environ.get("APPCOURIER_API_URL", "https://api.appcourier.dev")
DASHBOARD_URL = os.environ.get(
    "APPCOURIER_DASHBOARD_URL", "https://app.appcourier.dev"
)
APPCOURIER_CONFIG_DIR = Path.home() / ".appcourier"
CREDENTIALS_FILE = APPCOURIER_CONFIG_DIR / "credentials.json"
PROCESS_REGISTRY_FILE = APPCOURIER_CONFIG_DIR / "processes.json"

try:
    USER_AGENT = f"appcourier-cli/{version('appcourier')}"
except PackageNotFoundError:
    USER_AGENT = "appcourier-cli/unknown"

DEFAULT_TIMEOUT = 30  # seconds
DEVICE_POLL_INTERVAL = 5  # seconds

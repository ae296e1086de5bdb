"""Bookkeeping for local packager processes started by ``appcourier start``.

Each project keeps its own record in ``<project>/.appcourier/packager.json``;
a registry in ``~/.appcourier/processes.json`` lists every project with a
recorded packager so ``appcourier status --all`` can show them together.
"""

import json
import logging
import os
import shlex
import signal
import subprocess
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError
from .platform import config as platform_config

logger = logging.getLogger(__name__)

PROJECT_STATE_DIR = ".appcourier"
PACKAGER_FILE = "packager.json"
PACKAGER_LOG = "packager.log"


class PackagerProcess(BaseModel):
    """A packager process recorded for a project."""

    pid: int
    command: str
    project_dir: str
    port: int | None = None
    started_at: str = ""
    log_file: str = ""


def is_running(pid: int) -> bool:
    """Check whether a process with this pid is alive."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


def _state_file(project_dir: Path) -> Path:
    return Path(project_dir) / PROJECT_STATE_DIR / PACKAGER_FILE


def _load_registry() -> dict[str, dict]:
    path = platform_config.PROCESS_REGISTRY_FILE
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError:
        logger.warning(f"Ignoring unreadable process registry at {path}")
        return {}
    return data if isinstance(data, dict) else {}


def _save_registry(registry: dict[str, dict]) -> None:
    path = platform_config.PROCESS_REGISTRY_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(registry, indent=2))


def read_packager(project_dir: Path) -> PackagerProcess | None:
    """Return the packager recorded for a project, if any."""
    path = _state_file(project_dir)
    if not path.exists():
        return None
    try:
        return PackagerProcess.model_validate_json(path.read_text())
    except (ValidationError, ValueError):
        logger.warning(f"Ignoring unreadable packager record at {path}")
        return None


def _record(process: PackagerProcess) -> None:
    path = _state_file(Path(process.project_dir))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(process.model_dump_json(indent=2))

    registry = _load_registry()
    registry[process.project_dir] = process.model_dump()
    _save_registry(registry)


def _forget(project_dir: Path) -> None:
    _state_file(project_dir).unlink(missing_ok=True)
    registry = _load_registry()
    if registry.pop(str(project_dir), None) is not None:
        _save_registry(registry)


def start_packager(
    project_dir: Path, command: str | None, port: int | None = None
) -> PackagerProcess:
    """Start a packager in the background and record it.

    Returns the already-running process if one is recorded and alive.

    Raises:
        ConfigurationError: If the project has no packager command.
    """
    project_dir = Path(project_dir).resolve()
    existing = read_packager(project_dir)
    if existing and is_running(existing.pid):
        return existing

    if not command:
        raise ConfigurationError(
            "No packager command configured. Set packager.command in appcourier.yaml."
        )

    env = os.environ.copy()
    if port:
        env["PORT"] = str(port)

    log_path = project_dir / PROJECT_STATE_DIR / PACKAGER_LOG
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with open(log_path, "ab") as log:
        proc = subprocess.Popen(
            shlex.split(command),
            cwd=project_dir,
            env=env,
            stdout=log,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )

    process = PackagerProcess(
        pid=proc.pid,
        command=command,
        project_dir=str(project_dir),
        port=port,
        started_at=datetime.now(UTC).isoformat(),
        log_file=str(log_path),
    )
    _record(process)
    logger.info(f"Started packager pid {proc.pid} for {project_dir}")
    return process


def stop_packager(project_dir: Path) -> PackagerProcess | None:
    """Stop a project's packager and drop its records.

    Returns:
        The process that was recorded, or None if there was none.
    """
    project_dir = Path(project_dir).resolve()
    process = read_packager(project_dir)
    if process is None:
        return None
    if is_running(process.pid):
        try:
            os.kill(process.pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
        logger.info(f"Sent SIGTERM to packager pid {process.pid}")
    _forget(project_dir)
    return process


def list_processes() -> list[PackagerProcess]:
    """Every packager in the registry, whether or not it is still alive."""
    processes = []
    for project_dir, raw in sorted(_load_registry().items()):
        try:
            processes.append(PackagerProcess.model_validate(raw))
        except ValidationError:
            logger.warning(f"Skipping malformed registry entry for {project_dir}")
    return processes

"""Project packaging for publishing."""

from __future__ import annotations

import hashlib
import os
import tarfile
import tempfile
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import TYPE_CHECKING

from .types import PublishManifest

if TYPE_CHECKING:
    from ..project import ProjectConfig

# Directories and patterns excluded from the archive
EXCLUDE_DIRS = {
    "__pycache__",
    ".git",
    ".appcourier",
    ".expo",
    ".gradle",
    ".venv",
    "venv",
    "node_modules",
    "Pods",
    "DerivedData",
    "dist",
    "build",
}

EXCLUDE_FILE_PREFIXES = (".env",)


def should_exclude(path: Path, root: Path, user_ignores: set[str] | None = None) -> bool:
    """Check if a path should be left out of the archive."""
    rel = path.relative_to(root)
    parts = rel.parts

    for part in parts:
        if part in EXCLUDE_DIRS:
            return True

    if path.is_file() and any(path.name.startswith(p) for p in EXCLUDE_FILE_PREFIXES):
        return True

    # User ignore patterns match as relative path prefixes
    if user_ignores:
        rel_str = rel.as_posix()
        for pattern in user_ignores:
            pattern = pattern.rstrip("/")
            if rel_str == pattern or rel_str.startswith(pattern + "/"):
                return True

    return False


def package_project(
    project_path: Path, config: ProjectConfig
) -> tuple[Path, PublishManifest]:
    """Package a project directory for publishing.

    Creates a tar.gz in a temporary file. The caller owns the file and should
    delete it once uploaded.

    Args:
        project_path: Path to project root.
        config: Parsed appcourier.yaml.

    Returns:
        Tuple of (package_path, manifest).
    """
    fd, package_path_str = tempfile.mkstemp(suffix=".tar.gz")
    os.close(fd)
    package_path = Path(package_path_str)

    user_ignores = set(config.ignore)
    with tarfile.open(package_path, mode="w:gz") as tar:
        for item in sorted(project_path.rglob("*")):
            if should_exclude(item, project_path, user_ignores):
                continue
            if item.is_file():
                tar.add(item, arcname=item.relative_to(project_path).as_posix())

    try:
        cli_version = version("appcourier")
    except PackageNotFoundError:
        cli_version = "0.1.0"

    manifest = PublishManifest(
        appcourier_version=cli_version,
        name=config.name,
        slug=config.name,
        bundle_identifier=config.ios.bundle_identifier,
        created_at=datetime.now(UTC).isoformat(),
        checksum=_calculate_checksum(package_path),
        size_bytes=package_path.stat().st_size,
    )
    return package_path, manifest


def _calculate_checksum(path: Path) -> str:
    """Calculate SHA256 checksum of a file."""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()

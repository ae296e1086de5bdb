"""appcourier - build and publish standalone mobile apps from the command line.

The CLI lives in :mod:`appcourier.cli`; the credential workflow that collects
and validates Apple developer credentials lives in
:mod:`appcourier.cli.credentials`.
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]

"""
Vault Permissions — owner-only access on files and directories.

POSIX permission bits are applied where the platform has them; elsewhere
the calls are no-ops and never fail the caller.
"""
import os
import logging
from pathlib import Path
from typing import Union

from ..exceptions import ConfigError

logger = logging.getLogger("debrief.vault")

DIR_MODE = 0o700
FILE_MODE = 0o600

SUPPORTS_POSIX_MODES = os.name == "posix"


def restrict(path: Union[str, Path], mode: int) -> None:
    """Set ``mode`` on ``path``.

    Raises:
        ConfigError: If the platform supports permission bits and they
            could not be applied. Data already written stays valid.
    """
    if not SUPPORTS_POSIX_MODES:
        return
    try:
        os.chmod(path, mode)
    except OSError as err:
        raise ConfigError(
            f"Cannot set secure permissions on {path}: {err}"
        ) from err


def restrict_dir(path: Union[str, Path]) -> None:
    """Best-effort owner-only permissions on a directory the vault created."""
    try:
        restrict(path, DIR_MODE)
    except ConfigError as err:
        logger.warning("%s", err)


def ensure_dir(path: Path) -> None:
    """Create ``path`` (and parents) if missing, owner-only when created.

    Raises:
        OSError: If the directory cannot be created.
    """
    if path.is_dir():
        return
    path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    restrict_dir(path)

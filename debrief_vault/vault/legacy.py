"""
Vault Key Schemes — ordered passphrase candidates and the legacy scheme.

Older releases encrypted the secrets file under a passphrase derived
deterministically from the application name, the hostname and the
configuration directory. That passphrase is only ever tried for
decryption; a vault it opens is re-encrypted under the master key
immediately.

Security Note:
    Never log passphrase values. Only log candidate names.
"""
import socket
import logging
from pathlib import Path
from typing import Callable, Union
from dataclasses import dataclass

from ..conf import LEGACY_APP_NAME
from ..exceptions import ConfigError

logger = logging.getLogger("debrief.vault")


def derive_legacy_passphrase(
    config_dir: Union[str, Path],
    app_name: str = LEGACY_APP_NAME,
) -> str:
    """Reproduce the deprecated machine-derived passphrase.

    Args:
        config_dir: Configuration directory the old release was using.
        app_name: Fixed application identifier.

    Returns:
        ``"{app_name}-{hostname}-{config_dir}"``.

    Raises:
        ConfigError: If the hostname cannot be determined.
    """
    try:
        hostname = socket.gethostname()
    except OSError as err:
        raise ConfigError(f"Cannot get hostname: {err}") from err
    if config_dir is None:
        raise ConfigError("Cannot get config dir")
    return f"{app_name}-{hostname}-{config_dir}"


@dataclass(frozen=True)
class PassphraseCandidate:
    """A named provider of one candidate passphrase.

    ``resolve`` is called lazily, only when the candidate is tried. Exactly
    one candidate in a list is ``primary``: the scheme every write uses.
    """

    name: str
    resolve: Callable[[], str]
    primary: bool = False


def legacy_candidate(
    config_dir: Union[str, Path],
    app_name: str = LEGACY_APP_NAME,
) -> PassphraseCandidate:
    """Fallback candidate for vaults written by the deterministic scheme."""
    return PassphraseCandidate(
        name="legacy",
        resolve=lambda: derive_legacy_passphrase(config_dir, app_name),
    )

"""
Vault Master Key — resolve or create the machine-local master key.

Sources, in priority order:
    1. explicit override supplied at process start
    2. the persisted key file
    3. a freshly generated key, persisted with exclusive creation

Security Note:
    Never log key material. Only log the key file path.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ConfigError
from .config import generate_master_key
from .permissions import FILE_MODE, ensure_dir, restrict

logger = logging.getLogger("debrief.vault")


def _open_exclusive(path: Path) -> int:
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL
    if os.name == "posix":
        flags |= getattr(os, "O_NOFOLLOW", 0)
    return os.open(str(path), flags, FILE_MODE)


class MasterKeyManager:
    """Resolves the single passphrase that encrypts the vault.

    Concurrent first-run processes converge on one key: creation is
    exclusive, and the loser of the race reads back the winner's file.
    The key file is never rotated or rewritten once it exists.
    """

    def __init__(
        self,
        key_file: Union[str, Path],
        override: Optional[str] = None,
    ):
        self._key_file = Path(key_file)
        self._override = override

    @property
    def key_file(self) -> Path:
        return self._key_file

    def resolve_or_create_master_key(self) -> str:
        """Return the master key, creating and persisting it on first use.

        Returns:
            Base64-encoded master key.

        Raises:
            ConfigError: If the configuration directory or the key file
                cannot be created or read.
        """
        if self._override is not None:
            override = self._override.strip()
            if override:
                return override

        existing = self._read_key_file()
        if existing:
            return existing

        try:
            ensure_dir(self._key_file.parent)
        except OSError as err:
            raise ConfigError(f"Cannot create config dir: {err}") from err

        master_key = generate_master_key()
        try:
            self._create_key_file(master_key)
        except FileExistsError:
            # lost the creation race: the winner's key is the truth
            winner = self._read_key_file()
            if not winner:
                raise ConfigError("Master key file exists but is empty")
            logger.debug(
                "Master key already created at %s, using it", self._key_file
            )
            return winner
        except OSError as err:
            raise ConfigError(f"Cannot create master key file: {err}") from err

        restrict(self._key_file, FILE_MODE)
        logger.info("Created new master key at %s", self._key_file)
        return master_key

    def _read_key_file(self) -> Optional[str]:
        """Trimmed key file content, or None when there is no key file."""
        try:
            content = self._key_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as err:
            raise ConfigError(f"Cannot read master key: {err}") from err
        return content.strip()

    def _create_key_file(self, master_key: str) -> None:
        """Atomically create the key file, failing if it already exists.

        The key is written to a private temporary file which is then
        hard-linked onto the final name, so a racing reader never sees a
        half-written key file.

        Raises:
            FileExistsError: If the key file already exists.
        """
        parent = self._key_file.parent
        fd, tmp_path = tempfile.mkstemp(
            dir=parent, prefix=f".{self._key_file.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(master_key)
                fh.flush()
                os.fsync(fh.fileno())
            try:
                os.link(tmp_path, self._key_file)
            except FileExistsError:
                raise
            except OSError:
                # filesystems without hard links
                self._create_key_file_direct(master_key)
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

    def _create_key_file_direct(self, master_key: str) -> None:
        fd = _open_exclusive(self._key_file)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(master_key)
            fh.flush()
            os.fsync(fh.fileno())

"""
SecretStore — Encrypted key-value storage for local application secrets.

Provides the public API for the vault:
- ``store(key, value)`` — encrypt and persist a secret
- ``get(key)`` — decrypt and return a secret, or None
- ``delete(key)`` — remove a secret and persist
- ``keys()`` / ``exists(key)`` — enumerate and check secret names
- ``store_many(mapping)`` — several secrets in one load/save cycle

There is no in-memory cache: every call loads, decrypts and (when
mutating) re-encrypts and rewrites the whole secrets file, so the file
is the single source of truth.

Security Note:
    Never log plaintext or ciphertext values. Only log key names and
    operations.
"""
import os
import errno
import asyncio
import logging
import tempfile
import threading
from contextlib import contextmanager
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Optional

from ..conf import LOCK_SUFFIX
from ..exceptions import DecryptionError, VaultIOError
from .config import VaultConfig
from .crypto import (
    PassphraseCipher,
    deserialize_secrets,
    is_age_container,
    serialize_secrets,
)
from .legacy import PassphraseCandidate, legacy_candidate
from .locking import FileLock
from .master_key import MasterKeyManager
from .permissions import FILE_MODE, ensure_dir, restrict

logger = logging.getLogger("debrief.vault")

# a reader may still open the vault unlocked when the lock file cannot be created
_READ_ONLY_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.EROFS})


class SecretStore:
    """Local vault of string secrets, encrypted under the master key.

    Decryption tries the master key first, then each fallback candidate
    in order. A vault opened by a fallback is re-encrypted under the
    master key before the call returns.
    """

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        *,
        key_manager: Optional[MasterKeyManager] = None,
        cipher: Optional[PassphraseCipher] = None,
        fallbacks: Optional[Sequence[PassphraseCandidate]] = None,
    ):
        self._config = config if config is not None else VaultConfig()
        self._key_manager = key_manager or MasterKeyManager(
            self._config.master_key_file,
            override=self._config.master_key_override,
        )
        self._cipher = cipher or PassphraseCipher(
            cipher_backend=self._config.cipher_backend,
            work_factor=self._config.work_factor,
        )
        if fallbacks is None:
            fallbacks = []
            if self._config.legacy_migration:
                fallbacks.append(
                    legacy_candidate(
                        self._config.config_dir, self._config.legacy_app_name
                    )
                )
        self._primary = PassphraseCandidate(
            name="master",
            resolve=self._key_manager.resolve_or_create_master_key,
            primary=True,
        )
        self._fallbacks = list(fallbacks)
        if self._config.file_lock:
            self._lock = FileLock(
                self.secrets_file.with_name(self.secrets_file.name + LOCK_SUFFIX)
            )
        else:
            self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"<SecretStore file={self.secrets_file}>"

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def secrets_file(self) -> Path:
        return self._config.secrets_file

    @property
    def candidates(self) -> list[PassphraseCandidate]:
        """Passphrase candidates in the order they are tried."""
        return [self._primary, *self._fallbacks]

    # ------------------------------------------------------------------
    # Validation / locking
    # ------------------------------------------------------------------

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str):
            raise TypeError(
                f"Secret name must be a string, got {type(key).__name__}"
            )

    @staticmethod
    def _check_value(key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(
                f"Secret {key!r} must be a string, got {type(value).__name__}"
            )

    @contextmanager
    def _locked(self, read_only: bool = False) -> Iterator[None]:
        """Hold the store lock around one load-modify-save cycle.

        With ``read_only``, a lock file that cannot be created in a
        non-writable data directory degrades to an unlocked read.
        """
        try:
            if isinstance(self._lock, FileLock):
                ensure_dir(self.secrets_file.parent)
            self._lock.acquire()
        except OSError as err:
            if read_only and err.errno in _READ_ONLY_ERRNOS:
                logger.warning(
                    "Reading secrets file without lock: %s", err
                )
                yield
                return
            raise VaultIOError(f"Cannot lock secrets file: {err}") from err
        try:
            yield
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, str]:
        """Read and decrypt the secrets mapping.

        A missing file is an empty vault: nothing is created, and the
        master key is not forced into existence.
        """
        path = self.secrets_file
        if not path.exists():
            return {}
        try:
            encrypted = path.read_bytes()
        except OSError as err:
            raise VaultIOError(f"Cannot read secrets file: {err}") from err

        master_key = self._primary.resolve()
        try:
            plaintext = self._cipher.decrypt(encrypted, master_key)
        except DecryptionError:
            for candidate in self._fallbacks:
                passphrase = candidate.resolve()
                try:
                    plaintext = self._cipher.decrypt(encrypted, passphrase)
                except DecryptionError:
                    continue
                secrets = deserialize_secrets(plaintext)
                # migrate eagerly: never leave the vault on the old scheme
                self._write(secrets, master_key)
                logger.info(
                    "Migrated secrets file from %s key scheme to master key",
                    candidate.name,
                )
                return secrets
            # surface the master key error, not the fallback ones
            raise
        secrets = deserialize_secrets(plaintext)
        if is_age_container(encrypted):
            self._write(secrets, master_key)
            logger.info("Migrated secrets file from age format")
        return secrets

    def _save(self, secrets: Mapping[str, str]) -> None:
        self._write(secrets, self._primary.resolve())

    def _write(self, secrets: Mapping[str, str], passphrase: str) -> None:
        """Encrypt ``secrets`` and replace the secrets file with them."""
        payload = serialize_secrets(dict(secrets))
        blob = self._cipher.encrypt(payload, passphrase)
        path = self.secrets_file
        try:
            ensure_dir(path.parent)
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(blob)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as err:
            raise VaultIOError(f"Cannot write secrets file: {err}") from err
        restrict(path, FILE_MODE)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Decrypt and return a secret.

        Args:
            key: Secret name.

        Returns:
            The secret value, or None if it is not stored.

        Reads are locked like writes; when the lock file cannot be created
        because the data directory is read-only, the read goes ahead
        unlocked.

        Raises:
            DecryptionError: If the vault does not decrypt under any
                candidate passphrase.
        """
        self._check_key(key)
        if not self.secrets_file.exists():
            return None
        with self._locked(read_only=True):
            value = self._load().get(key)
        logger.debug("Vault get: key=%s found=%s", key, value is not None)
        return value

    def store(self, key: str, value: str) -> None:
        """Encrypt and persist a secret, overwriting any previous value.

        Args:
            key: Secret name.
            value: Secret value.
        """
        self._check_key(key)
        self._check_value(key, value)
        with self._locked():
            secrets = self._load()
            secrets[key] = value
            self._save(secrets)
        logger.debug("Vault store: key=%s", key)

    def delete(self, key: str) -> None:
        """Remove a secret and persist.

        The file is rewritten even when ``key`` was not stored.

        Args:
            key: Secret name to delete.
        """
        self._check_key(key)
        with self._locked():
            secrets = self._load()
            secrets.pop(key, None)
            self._save(secrets)
        logger.debug("Vault delete: key=%s", key)

    def store_many(self, values: Mapping[str, str]) -> None:
        """Persist several secrets in a single load/save cycle."""
        for key, value in values.items():
            self._check_key(key)
            self._check_value(key, value)
        with self._locked():
            secrets = self._load()
            secrets.update(values)
            self._save(secrets)
        logger.debug("Vault store_many: keys=%s", sorted(values))

    def keys(self) -> list[str]:
        """List stored secret names (never values)."""
        if not self.secrets_file.exists():
            return []
        with self._locked(read_only=True):
            return sorted(self._load())

    def exists(self, key: str) -> bool:
        """Check if a secret is stored under ``key``."""
        return self.get(key) is not None

    # collaborator-facing names
    def get_secret(self, key: str) -> Optional[str]:
        return self.get(key)

    def store_secret(self, key: str, value: str) -> None:
        self.store(key, value)

    def delete_secret(self, key: str) -> None:
        self.delete(key)

    # ------------------------------------------------------------------
    # asyncio helpers
    # ------------------------------------------------------------------

    async def aget(self, key: str) -> Optional[str]:
        """Run :meth:`get` in a worker thread."""
        return await asyncio.to_thread(self.get, key)

    async def astore(self, key: str, value: str) -> None:
        """Run :meth:`store` in a worker thread."""
        await asyncio.to_thread(self.store, key, value)

    async def adelete(self, key: str) -> None:
        """Run :meth:`delete` in a worker thread."""
        await asyncio.to_thread(self.delete, key)

"""Process-wide vault used by the application's collaborators.

Call :func:`configure` once at process start; the first CRUD call does
it implicitly from the environment otherwise.
"""
import logging
import threading
from typing import Optional

from .vault import SecretStore, VaultConfig

logger = logging.getLogger("debrief.vault")

_store: Optional[SecretStore] = None
_store_lock = threading.Lock()


def _build(config: Optional[VaultConfig]) -> SecretStore:
    global _store
    _store = SecretStore(config if config is not None else VaultConfig.from_env())
    logger.debug("Configured vault: %r", _store)
    return _store


def configure(config: Optional[VaultConfig] = None) -> SecretStore:
    """Build the process-wide store from ``config`` (or the environment)."""
    with _store_lock:
        return _build(config)


def default_store() -> SecretStore:
    """Return the process-wide store, configuring it on first use."""
    with _store_lock:
        if _store is None:
            return _build(None)
        return _store


def store_secret(key: str, value: str) -> None:
    """Encrypt and persist ``value`` under ``key`` in the process-wide vault."""
    default_store().store(key, value)


def get_secret(key: str) -> Optional[str]:
    """Return the secret stored under ``key``, or None if absent."""
    return default_store().get(key)


def delete_secret(key: str) -> None:
    """Remove ``key`` from the process-wide vault and persist."""
    default_store().delete(key)

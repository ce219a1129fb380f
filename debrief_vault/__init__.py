"""Debrief Vault.

Local, single-tenant encrypted storage for application secrets.
"""
from .version import __version__
from . import names
from .exceptions import (
    VaultError,
    ConfigError,
    DecryptionError,
    SerializationError,
    VaultIOError,
)
from .vault import SecretStore, VaultConfig, MasterKeyManager, PassphraseCipher
from .api import (
    configure,
    default_store,
    store_secret,
    get_secret,
    delete_secret,
)

__all__ = (
    "__version__",
    "names",
    "VaultError",
    "ConfigError",
    "DecryptionError",
    "SerializationError",
    "VaultIOError",
    "SecretStore",
    "VaultConfig",
    "MasterKeyManager",
    "PassphraseCipher",
    "configure",
    "default_store",
    "store_secret",
    "get_secret",
    "delete_secret",
)

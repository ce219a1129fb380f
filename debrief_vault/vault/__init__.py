"""Secret Vault — Encrypted local storage for application secrets.

Security Note (Threat Model):
    The master key lives in a file readable by the owning OS user only.
    Anyone able to read both ``master.key`` and ``secrets.enc`` (same
    user, root, or a backup of both) can recover every secret. This is an
    accepted limitation: hardware-backed key storage is out of scope.
"""

from .secret_store import SecretStore
from .master_key import MasterKeyManager
from .crypto import PassphraseCipher
from .legacy import PassphraseCandidate, derive_legacy_passphrase, legacy_candidate
from .config import VaultConfig, generate_master_key
from .permissions import restrict

__all__ = [
    "SecretStore",
    "MasterKeyManager",
    "PassphraseCipher",
    "PassphraseCandidate",
    "derive_legacy_passphrase",
    "legacy_candidate",
    "VaultConfig",
    "generate_master_key",
    "restrict",
]

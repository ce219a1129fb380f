"""
Vault Exceptions.

Every failure raised by the vault derives from :class:`VaultError` so
collaborators can catch the whole family at their boundary and translate
it into a user-facing message.
"""


class VaultError(Exception):
    """Base exception for vault operation errors."""


class ConfigError(VaultError):
    """A required directory, the master key file or file permissions
    could not be resolved, created, read or applied."""


class DecryptionError(VaultError):
    """Ciphertext did not decrypt under any candidate passphrase, or the
    container format is not recognized."""


class SerializationError(VaultError):
    """Decrypted bytes are not a UTF-8 JSON object of string values."""


class VaultIOError(VaultError, OSError):
    """Read or write failure on the secrets file not covered above."""

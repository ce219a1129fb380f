"""
Vault Crypto Core — Passphrase encryption and secrets serialization.

Container layout (every header byte is bound as AEAD associated data):
    [magic 4B "WDVT"][version 1B][method 1B][cipher 1B][log2 N 1B]
    [salt 16B][nonce 12B][encrypted_payload + tag 16B]

The blob is self-describing: scrypt salt and cost, cipher and nonce all
travel with it, so decryption needs nothing but the passphrase.

Earlier releases wrote age passphrase files (``age-encryption.org/v1``
with a single scrypt stanza). Those are still readable, never written;
see :func:`is_age_container`.

Security Note:
    Never log passphrases, plaintext or ciphertext values.
"""
import os
import struct
import logging

import orjson
import pyrage
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import DecryptionError, SerializationError
from .config import DEFAULT_WORK_FACTOR, MIN_WORK_FACTOR, MAX_WORK_FACTOR

logger = logging.getLogger("debrief.vault")

MAGIC = b"WDVT"
FORMAT_VERSION = 1
METHOD_SCRYPT = 1  # single passphrase recipient

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # 256-bit
SCRYPT_R = 8
SCRYPT_P = 1

_HEADER = struct.Struct(f"!4sBBBB{SALT_SIZE}s{NONCE_SIZE}s")
HEADER_SIZE = _HEADER.size

# cipher id <-> backend name <-> AEAD class
CIPHERS = {
    1: ("aesgcm", AESGCM),
    2: ("chacha20", ChaCha20Poly1305),
}
_CIPHER_IDS = {name: cid for cid, (name, _) in CIPHERS.items()}

AGE_MAGIC = b"age-encryption.org/v1\n"
AGE_MAC_PREFIX = b"\n--- "
AGE_PASSPHRASE_STANZA = "scrypt"


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: str, salt: bytes, work_factor: int) -> bytes:
    """Derive a 32-byte encryption key from a passphrase using scrypt.

    Args:
        passphrase: Passphrase string.
        salt: Random per-blob salt.
        work_factor: log2 of the scrypt CPU/memory cost N.

    Returns:
        32-byte derived key.
    """
    kdf = Scrypt(
        salt=salt,
        length=KEY_LENGTH,
        n=2 ** work_factor,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(passphrase.encode("utf-8"))


# ---------------------------------------------------------------------------
# age passphrase files
# ---------------------------------------------------------------------------

def is_age_container(data: bytes) -> bool:
    """True when ``data`` is a binary age file rather than a vault container."""
    return data.startswith(AGE_MAGIC)


def age_stanza_types(data: bytes) -> list[str]:
    """Recipient stanza types listed in an age header.

    Raises:
        DecryptionError: If the header is truncated or malformed.
    """
    end = data.find(AGE_MAC_PREFIX)
    if end < 0:
        raise DecryptionError("Secrets file has a truncated age header")
    try:
        lines = data[len(AGE_MAGIC):end].decode("ascii").split("\n")
    except UnicodeDecodeError as err:
        raise DecryptionError("Secrets file has a malformed age header") from err
    types = [
        line[3:].split(" ", 1)[0] for line in lines if line.startswith("-> ")
    ]
    if not types:
        raise DecryptionError("Secrets file has no age recipient stanza")
    return types


def decrypt_age(data: bytes, passphrase: str) -> bytes:
    """Decrypt an age file written under a single passphrase.

    Raises:
        DecryptionError: If the file uses any other recipient type, the
            passphrase is wrong, or the file is tampered.
    """
    if age_stanza_types(data) != [AGE_PASSPHRASE_STANZA]:
        raise DecryptionError(
            "Secrets file is encrypted with unexpected method"
        )
    try:
        return pyrage.passphrase.decrypt(data, passphrase)
    except pyrage.DecryptError as err:
        raise DecryptionError(
            "Cannot decrypt age secrets: wrong passphrase or tampered data"
        ) from err


# ---------------------------------------------------------------------------
# Passphrase cipher
# ---------------------------------------------------------------------------

class PassphraseCipher:
    """Authenticated passphrase encryption of opaque byte blobs.

    ``cipher_backend`` and ``work_factor`` only affect new blobs;
    :meth:`decrypt` always honours what the blob header records.
    """

    def __init__(
        self,
        cipher_backend: str = "aesgcm",
        work_factor: int = DEFAULT_WORK_FACTOR,
    ):
        if cipher_backend not in _CIPHER_IDS:
            raise ValueError(f"Unsupported cipher backend: {cipher_backend}")
        if not MIN_WORK_FACTOR <= work_factor <= MAX_WORK_FACTOR:
            raise ValueError(
                f"work_factor must be between {MIN_WORK_FACTOR} "
                f"and {MAX_WORK_FACTOR}, got {work_factor}"
            )
        self._cipher_id = _CIPHER_IDS[cipher_backend]
        self._work_factor = work_factor

    @property
    def cipher_backend(self) -> str:
        return CIPHERS[self._cipher_id][0]

    @property
    def work_factor(self) -> int:
        return self._work_factor

    def encrypt(self, plaintext: bytes, passphrase: str) -> bytes:
        """Encrypt plaintext under a passphrase.

        Args:
            plaintext: Data to encrypt.
            passphrase: Passphrase the blob will be bound to.

        Returns:
            Self-describing container bytes.
        """
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        header = _HEADER.pack(
            MAGIC,
            FORMAT_VERSION,
            METHOD_SCRYPT,
            self._cipher_id,
            self._work_factor,
            salt,
            nonce,
        )
        key = derive_key(passphrase, salt, self._work_factor)
        cipher = CIPHERS[self._cipher_id][1](key)
        return header + cipher.encrypt(nonce, plaintext, header)

    def decrypt(self, ciphertext: bytes, passphrase: str) -> bytes:
        """Decrypt a container produced by :meth:`encrypt`, or an age file.

        Args:
            ciphertext: Container bytes.
            passphrase: Candidate passphrase.

        Returns:
            Decrypted plaintext bytes.

        Raises:
            DecryptionError: If the passphrase is wrong, or the container is
                truncated, tampered or not in this format.
        """
        if is_age_container(ciphertext):
            return decrypt_age(ciphertext, passphrase)
        if len(ciphertext) < HEADER_SIZE + TAG_SIZE:
            raise DecryptionError(
                f"Secrets container is truncated: {len(ciphertext)} bytes "
                f"(minimum {HEADER_SIZE + TAG_SIZE})"
            )
        header = ciphertext[:HEADER_SIZE]
        magic, version, method, cipher_id, work_factor, salt, nonce = (
            _HEADER.unpack(header)
        )
        if magic != MAGIC:
            raise DecryptionError("Secrets file is not a vault container")
        if version != FORMAT_VERSION:
            raise DecryptionError(
                f"Unsupported vault container version {version}"
            )
        if method != METHOD_SCRYPT:
            raise DecryptionError(
                "Secrets file is encrypted with unexpected method"
            )
        if cipher_id not in CIPHERS:
            raise DecryptionError(f"Unknown cipher id {cipher_id}")
        if not MIN_WORK_FACTOR <= work_factor <= MAX_WORK_FACTOR:
            raise DecryptionError(
                f"Work factor {work_factor} outside accepted range"
            )
        key = derive_key(passphrase, salt, work_factor)
        cipher = CIPHERS[cipher_id][1](key)
        try:
            return cipher.decrypt(nonce, ciphertext[HEADER_SIZE:], header)
        except InvalidTag as err:
            raise DecryptionError(
                "Cannot decrypt secrets: wrong passphrase or tampered data"
            ) from err


# ---------------------------------------------------------------------------
# Secrets serialization
# ---------------------------------------------------------------------------

def serialize_secrets(secrets: dict[str, str]) -> bytes:
    """Serialize the secrets mapping to JSON bytes.

    Raises:
        SerializationError: If the mapping cannot be encoded.
    """
    try:
        return orjson.dumps(secrets)
    except TypeError as err:
        raise SerializationError(f"Cannot serialize secrets: {err}") from err


def deserialize_secrets(data: bytes) -> dict[str, str]:
    """Parse decrypted bytes back into the secrets mapping.

    Raises:
        SerializationError: If ``data`` is not UTF-8 JSON, or not an
            object whose values are all strings.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise SerializationError(f"Cannot parse secrets JSON: {err}") from err
    if not isinstance(parsed, dict):
        raise SerializationError(
            f"Secrets JSON must be an object, got {type(parsed).__name__}"
        )
    for key, value in parsed.items():
        if not isinstance(value, str):
            raise SerializationError(
                f"Secret {key!r} has a non-string value"
            )
    return parsed

"""Tests for the passphrase cipher container and secrets serialization."""
import pytest
import pyrage

from debrief_vault.exceptions import DecryptionError, SerializationError
from debrief_vault.vault.crypto import (
    HEADER_SIZE,
    TAG_SIZE,
    PassphraseCipher,
    age_stanza_types,
    is_age_container,
    deserialize_secrets,
    serialize_secrets,
)

from .conftest import TEST_WORK_FACTOR


@pytest.fixture
def cipher():
    return PassphraseCipher(work_factor=TEST_WORK_FACTOR)


def flip(blob: bytes, index: int) -> bytes:
    tampered = bytearray(blob)
    tampered[index] ^= 0xFF
    return bytes(tampered)


class TestPassphraseCipher:
    def test_roundtrip(self, cipher):
        blob = cipher.encrypt(b"hello world", "passphrase")
        assert cipher.decrypt(blob, "passphrase") == b"hello world"

    def test_empty_plaintext(self, cipher):
        blob = cipher.encrypt(b"", "passphrase")
        assert len(blob) == HEADER_SIZE + TAG_SIZE
        assert cipher.decrypt(blob, "passphrase") == b""

    def test_ciphertext_hides_plaintext(self, cipher):
        blob = cipher.encrypt(b"plaintext-password", "passphrase")
        assert b"plaintext-password" not in blob

    def test_fresh_salt_and_nonce_each_time(self, cipher):
        b1 = cipher.encrypt(b"data", "passphrase")
        b2 = cipher.encrypt(b"data", "passphrase")
        assert b1[:HEADER_SIZE] != b2[:HEADER_SIZE]
        assert b1 != b2

    def test_wrong_passphrase_fails(self, cipher):
        blob = cipher.encrypt(b"secret", "right")
        with pytest.raises(DecryptionError, match="wrong passphrase"):
            cipher.decrypt(blob, "wrong")

    def test_chacha20_roundtrip(self):
        cipher = PassphraseCipher("chacha20", work_factor=TEST_WORK_FACTOR)
        blob = cipher.encrypt(b"secret", "passphrase")
        assert blob[6] == 2
        assert cipher.decrypt(blob, "passphrase") == b"secret"

    def test_decrypt_follows_header_not_instance(self):
        writer = PassphraseCipher("chacha20", work_factor=TEST_WORK_FACTOR + 1)
        reader = PassphraseCipher("aesgcm", work_factor=TEST_WORK_FACTOR)
        blob = writer.encrypt(b"secret", "passphrase")
        assert reader.decrypt(blob, "passphrase") == b"secret"

    def test_header_layout(self, cipher):
        blob = cipher.encrypt(b"x", "passphrase")
        assert blob[:4] == b"WDVT"
        assert blob[4] == 1
        assert blob[5] == 1
        assert blob[6] == 1
        assert blob[7] == TEST_WORK_FACTOR


class TestTamperDetection:
    @pytest.mark.parametrize("index", [0, 4, 5, 6, 7, 8, 30, -1, -TAG_SIZE - 1])
    def test_single_byte_flip_is_rejected(self, cipher, index):
        blob = cipher.encrypt(b'{"jira_api_token": "abc123"}', "passphrase")
        with pytest.raises(DecryptionError):
            cipher.decrypt(flip(blob, index), "passphrase")

    def test_truncated(self, cipher):
        blob = cipher.encrypt(b"secret", "passphrase")
        with pytest.raises(DecryptionError, match="truncated"):
            cipher.decrypt(blob[:HEADER_SIZE + TAG_SIZE - 1], "passphrase")

    def test_truncated_tag(self, cipher):
        blob = cipher.encrypt(b"secret", "passphrase")
        with pytest.raises(DecryptionError):
            cipher.decrypt(blob[:-1], "passphrase")

    def test_not_a_container(self, cipher):
        with pytest.raises(DecryptionError, match="not a vault container"):
            cipher.decrypt(b"PK\x03\x04" + b"\x00" * 64, "passphrase")

    def test_unexpected_method(self, cipher):
        blob = bytearray(cipher.encrypt(b"secret", "passphrase"))
        blob[5] = 2
        with pytest.raises(DecryptionError, match="unexpected method"):
            cipher.decrypt(bytes(blob), "passphrase")

    def test_unsupported_version(self, cipher):
        blob = bytearray(cipher.encrypt(b"secret", "passphrase"))
        blob[4] = 9
        with pytest.raises(DecryptionError, match="version"):
            cipher.decrypt(bytes(blob), "passphrase")

    def test_unknown_cipher(self, cipher):
        blob = bytearray(cipher.encrypt(b"secret", "passphrase"))
        blob[6] = 7
        with pytest.raises(DecryptionError, match="cipher"):
            cipher.decrypt(bytes(blob), "passphrase")

    def test_excessive_work_factor(self, cipher):
        blob = bytearray(cipher.encrypt(b"secret", "passphrase"))
        blob[7] = 40
        with pytest.raises(DecryptionError, match="Work factor"):
            cipher.decrypt(bytes(blob), "passphrase")


@pytest.fixture(scope="module")
def age_blob():
    """A passphrase age file as earlier releases wrote it."""
    return pyrage.passphrase.encrypt(b'{"key":"value"}', "passphrase")


class TestAgeFiles:
    def test_detected(self, age_blob, cipher):
        assert is_age_container(age_blob)
        assert not is_age_container(cipher.encrypt(b"x", "passphrase"))
        assert age_stanza_types(age_blob) == ["scrypt"]

    def test_decrypt(self, age_blob, cipher):
        assert cipher.decrypt(age_blob, "passphrase") == b'{"key":"value"}'

    def test_wrong_passphrase(self, age_blob, cipher):
        with pytest.raises(DecryptionError, match="wrong passphrase"):
            cipher.decrypt(age_blob, "other")

    def test_tampered_payload(self, age_blob, cipher):
        with pytest.raises(DecryptionError):
            cipher.decrypt(flip(age_blob, -1), "passphrase")

    def test_recipient_file_is_rejected(self, cipher):
        identity = pyrage.x25519.Identity.generate()
        blob = pyrage.encrypt(b"secret", [identity.to_public()])
        assert age_stanza_types(blob) == ["X25519"]
        with pytest.raises(DecryptionError, match="unexpected method"):
            cipher.decrypt(blob, "passphrase")

    def test_truncated_header(self, cipher):
        blob = b"age-encryption.org/v1\n-> scrypt c2FsdA 10\n"
        with pytest.raises(DecryptionError, match="truncated age header"):
            cipher.decrypt(blob, "passphrase")

    def test_header_without_stanza(self, cipher):
        blob = b"age-encryption.org/v1\n--- bWFj\n" + b"\x00" * 32
        with pytest.raises(DecryptionError, match="no age recipient"):
            cipher.decrypt(blob, "passphrase")


class TestCipherConfiguration:
    def test_unsupported_backend(self):
        with pytest.raises(ValueError):
            PassphraseCipher("des")

    @pytest.mark.parametrize("work_factor", [1, 9, 21])
    def test_work_factor_bounds(self, work_factor):
        with pytest.raises(ValueError):
            PassphraseCipher(work_factor=work_factor)

    def test_properties(self):
        cipher = PassphraseCipher("chacha20", work_factor=12)
        assert cipher.cipher_backend == "chacha20"
        assert cipher.work_factor == 12


class TestSerialization:
    def test_roundtrip(self):
        secrets = {"jira_api_token": "abc123", "smtp_password": "päss"}
        assert deserialize_secrets(serialize_secrets(secrets)) == secrets

    def test_empty_mapping(self):
        assert deserialize_secrets(serialize_secrets({})) == {}

    def test_invalid_utf8(self):
        with pytest.raises(SerializationError):
            deserialize_secrets(b"\xff\xfe{}")

    def test_invalid_json(self):
        with pytest.raises(SerializationError):
            deserialize_secrets(b"{not json")

    def test_not_an_object(self):
        with pytest.raises(SerializationError, match="object"):
            deserialize_secrets(b'["a", "b"]')

    def test_non_string_value(self):
        with pytest.raises(SerializationError, match="non-string"):
            deserialize_secrets(b'{"count": 3}')

    def test_unserializable_value(self):
        with pytest.raises(SerializationError):
            serialize_secrets({"key": object()})

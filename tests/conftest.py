"""Shared fixtures for the vault tests."""
import pytest

from debrief_vault import api
from debrief_vault.conf import (
    ENV_MASTER_KEY,
    ENV_CONFIG_DIR,
    ENV_DATA_DIR,
    ENV_CIPHER_BACKEND,
    ENV_WORK_FACTOR,
)
from debrief_vault.vault import SecretStore, VaultConfig

# scrypt log2(N) used throughout the tests, cheap on purpose
TEST_WORK_FACTOR = 10


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host configuration out of the tests."""
    for name in (
        ENV_MASTER_KEY,
        ENV_CONFIG_DIR,
        ENV_DATA_DIR,
        ENV_CIPHER_BACKEND,
        ENV_WORK_FACTOR,
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(api, "_store", None)


@pytest.fixture
def fixed_hostname(monkeypatch):
    """Pin the hostname used by the legacy passphrase."""
    monkeypatch.setattr(
        "debrief_vault.vault.legacy.socket.gethostname", lambda: "test-host"
    )
    return "test-host"


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "config"


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def vault_config(config_dir, data_dir):
    """VaultConfig rooted in a temporary directory."""
    return VaultConfig(
        config_dir=config_dir,
        data_dir=data_dir,
        work_factor=TEST_WORK_FACTOR,
    )


@pytest.fixture
def store(vault_config, fixed_hostname):
    """A fresh SecretStore with no key file and no secrets file."""
    return SecretStore(vault_config)

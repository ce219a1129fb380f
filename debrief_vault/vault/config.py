"""
Vault Configuration — Key source and validated settings.

The process environment is read exactly once, by :meth:`VaultConfig.from_env`,
at process start. The resulting object is handed to the store, so key
resolution depends only on explicit configuration:
    WORKDAY_DEBRIEF_MASTER_KEY = <base64-encoded 32-byte key>  (optional override)
    WORKDAY_DEBRIEF_CONFIG_DIR / WORKDAY_DEBRIEF_DATA_DIR = <path>  (optional)

Security Note:
    Never log key material. The override is excluded from ``repr``.
"""
import os
import base64
import secrets
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..conf import (
    LEGACY_APP_NAME,
    MASTER_KEY_FILE,
    SECRETS_FILE,
    ENV_MASTER_KEY,
    ENV_CONFIG_DIR,
    ENV_DATA_DIR,
    ENV_CIPHER_BACKEND,
    ENV_WORK_FACTOR,
    default_config_dir,
    default_data_dir,
)

logger = logging.getLogger("debrief.vault")

MASTER_KEY_BYTES = 32  # 256 bits

SUPPORTED_BACKENDS = ("aesgcm", "chacha20")
MIN_WORK_FACTOR = 10
MAX_WORK_FACTOR = 20
DEFAULT_WORK_FACTOR = 16


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    Also a utility for operators who want to pin the key through the
    environment override.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(MASTER_KEY_BYTES)).decode("ascii")


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    config_dir: Path = Field(default_factory=default_config_dir)
    data_dir: Path = Field(default_factory=default_data_dir)
    master_key_override: Optional[str] = Field(default=None, repr=False)
    cipher_backend: str = Field(default="aesgcm")
    work_factor: int = Field(
        default=DEFAULT_WORK_FACTOR, ge=MIN_WORK_FACTOR, le=MAX_WORK_FACTOR
    )
    legacy_migration: bool = True
    legacy_app_name: str = LEGACY_APP_NAME
    file_lock: bool = True

    model_config = {"frozen": True}

    @field_validator("master_key_override")
    @classmethod
    def normalize_override(cls, v: Optional[str]) -> Optional[str]:
        """Trim the override; a blank value means no override."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @property
    def master_key_file(self) -> Path:
        return self.config_dir / MASTER_KEY_FILE

    @property
    def secrets_file(self) -> Path:
        return self.data_dir / SECRETS_FILE

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Populated VaultConfig instance.
        """
        env = os.environ if environ is None else environ
        values = {"master_key_override": env.get(ENV_MASTER_KEY)}
        if env.get(ENV_CONFIG_DIR):
            values["config_dir"] = Path(env[ENV_CONFIG_DIR]).expanduser()
        if env.get(ENV_DATA_DIR):
            values["data_dir"] = Path(env[ENV_DATA_DIR]).expanduser()
        if env.get(ENV_CIPHER_BACKEND):
            values["cipher_backend"] = env[ENV_CIPHER_BACKEND]
        if env.get(ENV_WORK_FACTOR):
            values["work_factor"] = int(env[ENV_WORK_FACTOR])
        config = cls(**values)
        logger.debug(
            "Vault config: config_dir=%s data_dir=%s override=%s",
            config.config_dir,
            config.data_dir,
            config.master_key_override is not None,
        )
        return config

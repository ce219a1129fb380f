"""Debrief Vault process defaults.

File names, environment variable names and platform directories shared
by the vault modules.
"""
from pathlib import Path
from platformdirs import user_config_dir, user_data_dir

APP_NAME = "WorkdayDebrief"

# Fixed identifier baked into passphrases derived by older releases.
LEGACY_APP_NAME = "WorkdayDebrief"

MASTER_KEY_FILE = "master.key"
SECRETS_FILE = "secrets.enc"
LOCK_SUFFIX = ".lock"

ENV_MASTER_KEY = "WORKDAY_DEBRIEF_MASTER_KEY"
ENV_CONFIG_DIR = "WORKDAY_DEBRIEF_CONFIG_DIR"
ENV_DATA_DIR = "WORKDAY_DEBRIEF_DATA_DIR"
ENV_CIPHER_BACKEND = "WORKDAY_DEBRIEF_CIPHER_BACKEND"
ENV_WORK_FACTOR = "WORKDAY_DEBRIEF_WORK_FACTOR"


def default_config_dir() -> Path:
    """Platform configuration directory, home of the master key."""
    return Path(user_config_dir(APP_NAME, appauthor=False))


def default_data_dir() -> Path:
    """Platform application-data directory, home of the secrets file."""
    return Path(user_data_dir(APP_NAME, appauthor=False))

"""
Configuration for the role group sync, read from the environment (.env supported)
"""

import os
import logging
from dataclasses import dataclass
from typing import List

from errors import ConfigurationError


logger = logging.getLogger(__name__)

REQUIRED_VARS = [
    'AZURE_TENANT_ID',
    'AZURE_CLIENT_ID',
    'AZURE_CLIENT_SECRET',
]

DEFAULT_GROUP_PREFIX = "Entra-Role-Holders-"

# Graph accepts at most 20 members@odata.bind references per PATCH
MAX_ADD_BATCH_SIZE = 20
MAX_PAGE_SIZE = 999


@dataclass(frozen=True)
class SyncConfig:
    tenant_id: str
    client_id: str
    client_secret: str
    group_prefix: str = DEFAULT_GROUP_PREFIX
    dry_run: bool = False
    add_batch_size: int = MAX_ADD_BATCH_SIZE
    page_size: int = MAX_PAGE_SIZE
    log_level: str = "INFO"

    @property
    def privileged_group(self) -> str:
        return f"{self.group_prefix}privileged"

    @property
    def nonprivileged_group(self) -> str:
        return f"{self.group_prefix}nonprivileged"

    @property
    def all_group(self) -> str:
        return f"{self.group_prefix}all"


def missing_variables() -> List[str]:
    """Return the required variables that are unset or empty."""
    return [var for var in REQUIRED_VARS if not os.getenv(var)]


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _env_int(name: str, default: int, maximum: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")

    if value < 1 or value > maximum:
        raise ConfigurationError(f"{name} must be between 1 and {maximum}, got {value}")
    return value


def load_config() -> SyncConfig:
    """Build the sync configuration from environment variables."""
    missing = missing_variables()
    if missing:
        raise ConfigurationError(f"Missing required configuration variables: {', '.join(missing)}")

    group_prefix = os.getenv("SYNC_GROUP_PREFIX", DEFAULT_GROUP_PREFIX)
    if not group_prefix.strip():
        raise ConfigurationError("SYNC_GROUP_PREFIX must not be blank")

    config = SyncConfig(
        tenant_id=os.getenv("AZURE_TENANT_ID"),
        client_id=os.getenv("AZURE_CLIENT_ID"),
        client_secret=os.getenv("AZURE_CLIENT_SECRET"),
        group_prefix=group_prefix,
        dry_run=_env_flag("SYNC_DRY_RUN"),
        add_batch_size=_env_int("SYNC_ADD_BATCH_SIZE", MAX_ADD_BATCH_SIZE, MAX_ADD_BATCH_SIZE),
        page_size=_env_int("SYNC_PAGE_SIZE", MAX_PAGE_SIZE, MAX_PAGE_SIZE),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    logger.debug(f"Loaded configuration with group prefix '{config.group_prefix}'")
    return config

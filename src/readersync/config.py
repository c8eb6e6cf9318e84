"""readersync settings, loaded from the environment and ``.env``.

Nested sections map to ``SECTION__FIELD`` variables. ``get_settings()``
returns one validated instance per process. Tests build
``Settings(_env_file=None, ...)`` so the local ``.env`` is ignored.

The sync core never calls ``get_settings()`` itself: the CLI (or any other
host) builds the settings once and hands ``settings.sync`` to the scheduler.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/readersync/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_DEFAULT_STATE_DIR = Path.home() / ".config" / "readersync"


class ChecksumMethod(StrEnum):
    """How a document's identity digest is computed."""

    BINARY = "binary"
    FILENAME = "filename"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------
class ServerConfig(BaseModel):
    """Remote sync server and stored credentials."""

    url: str = "http://localhost:3000"
    username: str | None = None
    userkey: SecretStr = SecretStr("")
    timeout_seconds: float = 10.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.userkey.get_secret_value())


class SyncConfig(BaseModel):
    """Scheduler behaviour for one reading session."""

    auto_sync: bool = False
    sync_annotations: bool = True
    pages_before_update: int | None = None
    debounce_seconds: float = 3.0
    resume_delay_seconds: float = 1.0
    network_delay_seconds: float = 0.5
    operation_timeout_seconds: float = 30.0

    @field_validator("pages_before_update")
    @classmethod
    def zero_disables_periodic_sync(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            return None
        return value


class DocumentConfig(BaseModel):
    """Document matching configuration."""

    checksum_method: ChecksumMethod = ChecksumMethod.BINARY


class AppConfig(BaseModel):
    """Local state file and log location."""

    state_file: Path = _DEFAULT_STATE_DIR / "state.json"
    log_dir: Path = Path("logs")
    device_model: str = "readersync"


class DevConfig(BaseModel):
    """Development and testing toggles."""

    transport_mock: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``SERVER__URL``, ``SERVER__USERKEY``, ``SYNC__AUTO_SYNC``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    server: ServerConfig = ServerConfig()
    sync: SyncConfig = SyncConfig()
    document: DocumentConfig = DocumentConfig()
    app: AppConfig = AppConfig()
    dev: DevConfig = DevConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.debug("Settings: no .env file found, using env vars and defaults")

    return settings

"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and ARBWATCH_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class WatchConfig(BaseSettings):
    """arbwatch configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ARBWATCH_LOG_LEVEL=DEBUG
        export ARBWATCH_STORE_PATH=/data/pushes.db
        export ARBWATCH_NOTIFY_QUEUE_PATH=/data/notify.db

    Or via .env file::

        ARBWATCH_ENVIRONMENT=production
        ARBWATCH_LOG_ENCODING=latin-1
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ARBWATCH_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    store_path: Path = Path(".arbwatch/pushes.db")

    # Notifications — None keeps the queue in memory
    notify_queue_path: Path | None = None
    notify_max_queue: int = 1024

    # Synthetic tree for locally-chewed test runs
    local_tree_id: str = "logal"
    local_tree_name: str = "Logal"
    log_encoding: str = "utf-8"

    # Queries
    recent_push_limit: int = 10

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton — import as `from arbwatch.config import config`
config = WatchConfig()

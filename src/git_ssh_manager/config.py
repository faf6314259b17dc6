"""Configuration and settings helpers for Git SSH Manager."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GIT_SSH_MANAGER_",
        env_file=(".env",),
        extra="ignore",
    )

    environment: Literal["dev", "prod"] = "dev"
    host: str = "127.0.0.1"
    port: int = 3001
    reload: bool = False
    log_level: str = "DEBUG"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    data_dir: Path = Field(default_factory=lambda: Path.cwd() / ".git_ssh_manager")
    key_subdir: str = "ssh_keys"

    database_url: str | None = None
    db_host: str | None = None
    db_port: int = 3306
    db_username: str = "root"
    db_password: str = ""
    db_name: str = "git_ssh_manager"

    default_user_id: str = "default-user"

    github_client_id: str | None = None
    github_client_secret: str | None = None
    bitbucket_client_id: str | None = None
    bitbucket_client_secret: str | None = None
    oauth_default_redirect_uri: str = "http://localhost:3000/git"
    oauth_timeout: float = 20.0

    orchestrator_cli: str = "airflow"
    orchestrator_dag_id: str = "kedro_pipeline"
    orchestrator_base_url: str | None = None
    orchestrator_username: str | None = None
    orchestrator_password: str | None = None
    orchestrator_timeout: int = 60

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.db_host:
            credentials = quote_plus(self.db_username)
            if self.db_password:
                credentials = f"{credentials}:{quote_plus(self.db_password)}"
            return f"mysql+pymysql://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}"
        return f"sqlite:///{self.data_dir / 'git_ssh_manager.db'}"

    @property
    def key_root_dir(self) -> Path:
        return self.data_dir / self.key_subdir

    def ensure_dirs(self) -> None:
        """Create all filesystem directories required by the service."""
        for label, path in {
            "data": self.data_dir,
            "keys": self.key_root_dir,
        }.items():
            path.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured %s directory exists at %s", label, path)
        self.key_root_dir.chmod(0o700)


@lru_cache
def get_settings() -> Settings:
    """Load and cache the :class:`Settings` instance."""
    settings = Settings()
    settings.ensure_dirs()
    logger.debug("Settings loaded (environment=%s)", settings.environment)
    return settings


settings = get_settings()

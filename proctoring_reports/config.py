import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings.

    Values come from environment variables (``MONGODB_URL``,
    ``DEPLOYMENT_MODE``, ...), then a ``.env`` file, then the defaults below.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "Proctoring-Backend"
    mongodb_timeout_ms: int = 5000

    # "local" keeps artifacts on a persistent disk, "ephemeral" writes them
    # to a system temp directory that does not survive restarts
    deployment_mode: Literal["local", "ephemeral"] = "local"
    upload_dir: Path = Path("uploads")
    ephemeral_dir: Path = Path("/tmp")

    artifact_disposition: Literal["attachment", "inline"] = "attachment"
    serve_uploads: bool = False
    log_level: str = "INFO"

    @property
    def storage_dir(self) -> Path:
        if self.deployment_mode == "ephemeral":
            return self.ephemeral_dir
        return self.upload_dir


@lru_cache
def load_settings() -> Settings:
    return Settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

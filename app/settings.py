from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Keep defaults *local* and deterministic so the API runs without setup.
    - Override via env vars (`APP_DB_URL`, `APP_JWT_SECRET`, ...) in deployment.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    db_url: str | None = None
    permissions_seed_path: str | None = None
    log_level: str = "INFO"

    jwt_secret: str = "dev-jwt-secret-change-me"
    jwt_algorithm: str = "HS256"
    acting_role_header: str = "X-Acting-Role"

    seed_demo_data: bool = True

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "app.db"
        return f"sqlite:///{db_path}"

    def resolved_permissions_seed_path(self) -> Path:
        if self.permissions_seed_path:
            return Path(self.permissions_seed_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "role_permissions.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()

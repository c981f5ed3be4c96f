import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


PLACEHOLDER_SECRET = "change-me"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the environment by `load_settings`."""

    app_env: str = "development"
    database_url: str = "sqlite:///./crop_intelligence.db"
    api_prefix: str = "/api"

    jwt_secret_key: str = PLACEHOLDER_SECRET
    jwt_algorithm: str = "HS256"
    # 7 days
    jwt_expires_minutes: int = 60 * 24 * 7

    upload_dir: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    log_level: str = "INFO"
    sql_echo: bool = False

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    def validate(self) -> None:
        if self.is_production and self.jwt_secret_key == PLACEHOLDER_SECRET:
            raise RuntimeError("JWT_SECRET_KEY must be set in production.")
        if self.jwt_expires_minutes <= 0:
            raise RuntimeError("JWT_EXPIRES_MINUTES must be positive.")


def load_settings() -> Settings:
    load_dotenv()
    defaults = Settings()
    return Settings(
        app_env=os.getenv("APP_ENV", defaults.app_env),
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        api_prefix=os.getenv("API_PREFIX", defaults.api_prefix).rstrip("/"),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", defaults.jwt_secret_key),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
        jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", str(defaults.jwt_expires_minutes))),
        upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(defaults.max_upload_bytes))),
        cors_origins=_get_list(os.getenv("CORS_ORIGINS"), defaults.cors_origins),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        sql_echo=_get_bool(os.getenv("SQL_ECHO"), default=False),
    )

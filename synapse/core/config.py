import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


APP_ENV = os.getenv("APP_ENV", "development")
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./synapse.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_DAYS = _get_int(os.getenv("JWT_EXPIRES_DAYS"), 7)

BCRYPT_ROUNDS = _get_int(os.getenv("BCRYPT_ROUNDS"), 10)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_UPLOAD_BYTES = _get_int(os.getenv("MAX_UPLOAD_BYTES"), 10 * 1024 * 1024)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _get_int(os.getenv("PORT"), 5000)


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration handed to ``create_app``."""

    app_env: str = APP_ENV
    debug: bool = DEBUG
    database_url: str = DATABASE_URL
    jwt_secret_key: str = JWT_SECRET_KEY
    jwt_algorithm: str = JWT_ALGORITHM
    jwt_expires_days: int = JWT_EXPIRES_DAYS
    bcrypt_rounds: int = BCRYPT_ROUNDS
    upload_dir: str = UPLOAD_DIR
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    frontend_url: str = FRONTEND_URL


def load_settings() -> Settings:
    return Settings()


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.lower() == "production" and settings.jwt_secret_key == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")

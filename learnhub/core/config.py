"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings


# Package dir (learnhub/) and project root for templates and relative paths
PACKAGE_DIR = Path(__file__).resolve().parent.parent
BASE_DIR = PACKAGE_DIR.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "LearnHub"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./learnhub.db"
    db_pool_size: int = 20
    db_max_overflow: int = 0
    db_pool_timeout: float = 5.0  # seconds to wait for a free connection
    db_statement_timeout_ms: int = 30_000

    # Session cookie (signed token for logged-in users)
    secret_key: str = "dev-secret-changeme"
    session_cookie_name: str = "learnhub_session"
    session_cookie_max_age: int = 60 * 60 * 24 * 14  # 14 days
    cookie_secure: bool = False

    # Password hashing
    bcrypt_rounds: int = 12

    # Admin area (HTTP Basic, not tied to any user account)
    admin_user: str = "admin"
    admin_pass: str = "changeme"

    # Uploads
    submissions_dir: str = "submissions"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    allowed_extensions: list[str] = ["pdf", "doc", "docx", "txt", "jpg", "jpeg", "png"]

    # Signup/login throttling
    auth_rate_limit: int = 5
    auth_rate_window_seconds: int = 15 * 60

    # Legacy flat-file store consumed by `learnhub-admin migrate`
    legacy_data_file: str = "data.json"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()

import logging
import logging.handlers
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql://mycircle:mycircle@db:5432/mycircle"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: float = 30.0
    db_pool_recycle: int = 1800

    # Auth (tokens are issued after the Google OAuth callback)
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Content moderation
    anthropic_api_key: str = ""
    moderation_model: str = "claude-haiku-4-5-20251001"
    moderation_timeout_seconds: float = 10.0
    moderation_cache_ttl: int = 86400
    redis_url: str = ""

    # HTTP
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    cors_allow_credentials: bool = True
    trusted_hosts: str = "*"

    # Rate limits (slowapi syntax)
    rate_limit_enabled: bool = True
    rate_limit_contact: str = "20/minute"
    rate_limit_posts: str = "10/minute"
    rate_limit_messages: str = "60/minute"

    notification_list_limit: int = 50

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10 MB
    log_backup_count: int = 5

    model_config = {"env_file": ".env"}

    @property
    def effective_database_url(self) -> str:
        """SQLAlchemy no longer accepts the legacy ``postgres://`` scheme."""
        if self.database_url.startswith("postgres://"):
            return "postgresql://" + self.database_url[len("postgres://") :]
        return self.database_url

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def trusted_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()] or ["*"]


settings = Settings()


def setup_logging() -> None:
    """Configure application-wide logging with rotating file handlers.

    Creates three handlers:
    - Console: INFO+ with brief format (for docker compose logs)
    - app.log: DEBUG+ with detailed format, rotated at 10 MB x 5 backups
    - error.log: ERROR+ only, rotated at 10 MB x 5 backups
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(console)

    detail_fmt = logging.Formatter(
        "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app_handler = logging.handlers.RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    app_handler.setLevel(logging.DEBUG)
    app_handler.setFormatter(detail_fmt)
    root.addHandler(app_handler)

    err_handler = logging.handlers.RotatingFileHandler(
        log_dir / "error.log",
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    err_handler.setLevel(logging.ERROR)
    err_handler.setFormatter(detail_fmt)
    root.addHandler(err_handler)

    # Quiet noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, dir=%s, max=%s MB x %d backups",
        settings.log_level, log_dir, settings.log_max_bytes // 1_048_576, settings.log_backup_count,
    )

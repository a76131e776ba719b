from pydantic import BaseModel
import os
import logging
from typing import List


class Settings(BaseModel):
    # Environment: local, dev, staging, prod
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Persistence
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
    # "sql" (SQLAlchemy-backed) or "memory" (process-local, for tests and demos)
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "sql").lower()
    SEED_CATALOG: bool = os.getenv("SEED_CATALOG", "false").lower() == "true"

    # Demo sessions
    DEMO_SESSION_MINUTES: int = int(os.getenv("DEMO_SESSION_MINUTES", "10"))
    DEMO_DAILY_CAP: int = int(os.getenv("DEMO_DAILY_CAP", "2"))  # per IP + app per calendar day
    DEMO_CONCURRENT_CAP: int = int(os.getenv("DEMO_CONCURRENT_CAP", "2"))  # active, unexpired per IP + app
    DEMO_QUOTA_TIMEZONE: str = os.getenv("DEMO_QUOTA_TIMEZONE", "UTC")
    DEMO_ISSUE_LIMIT_PER_DAY: int = int(os.getenv("DEMO_ISSUE_LIMIT_PER_DAY", "10"))  # issuance calls per IP per 24h
    DEMO_CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("DEMO_CLEANUP_INTERVAL_SECONDS", "300"))

    # Demo proxy
    DEMO_PROXY_PREFIX: str = "/demo-proxy"
    DEMO_PROXY_TIMEOUT_SECONDS: float = float(os.getenv("DEMO_PROXY_TIMEOUT_SECONDS", "30"))
    DEMO_PROXY_USER_AGENT: str = os.getenv("DEMO_PROXY_USER_AGENT", "StorefrontDemoProxy/1.0")

    # General API limits (per IP)
    API_RATE_LIMIT: int = int(os.getenv("API_RATE_LIMIT", "100"))
    API_RATE_WINDOW_SECONDS: int = int(os.getenv("API_RATE_WINDOW_SECONDS", "900"))
    CONTACT_RATE_LIMIT: int = int(os.getenv("CONTACT_RATE_LIMIT", "5"))
    CONTACT_RATE_WINDOW_SECONDS: int = int(os.getenv("CONTACT_RATE_WINDOW_SECONDS", "900"))

    # Stripe configuration
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")

    # Outbound mail (contact notifications)
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    CONTACT_NOTIFY_EMAIL: str = os.getenv("CONTACT_NOTIFY_EMAIL", os.getenv("SMTP_USER", ""))

    # Reverse proxies in front of the app that append to X-Forwarded-For
    TRUSTED_PROXY_HOPS: int = int(os.getenv("TRUSTED_PROXY_HOPS", "1"))

    # CORS (comma-separated)
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "")

    @property
    def is_production(self) -> bool:
        """Same rule as core.env.is_production_env, applied to this config."""
        return self.ENV.lower() in {"prod", "production"}

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def smtp_enabled(self) -> bool:
        """True only if host, user and password are all set."""
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()


def validate_config(config: Settings = None):
    """Validate configuration at startup. Raises ValueError if invalid."""
    logger = logging.getLogger(__name__)
    config = config or settings

    if config.STORAGE_BACKEND not in {"sql", "memory"}:
        error_msg = f"STORAGE_BACKEND must be 'sql' or 'memory', got {config.STORAGE_BACKEND!r}"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if config.DEMO_DAILY_CAP < 1 or config.DEMO_CONCURRENT_CAP < 1:
        error_msg = "DEMO_DAILY_CAP and DEMO_CONCURRENT_CAP must be at least 1"
        logger.error(error_msg)
        raise ValueError(error_msg)

    try:
        from zoneinfo import ZoneInfo
        ZoneInfo(config.DEMO_QUOTA_TIMEZONE)
    except Exception as e:
        error_msg = f"DEMO_QUOTA_TIMEZONE is not a valid IANA timezone: {config.DEMO_QUOTA_TIMEZONE} ({e})"
        logger.error(error_msg)
        raise ValueError(error_msg)

    # Validate Stripe webhook secret whenever Stripe is live
    if config.stripe_enabled and config.is_production and not config.STRIPE_WEBHOOK_SECRET:
        error_msg = "STRIPE_SECRET_KEY is set but STRIPE_WEBHOOK_SECRET is missing in production"
        logger.error(error_msg)
        raise ValueError(error_msg)

    # Production safety gates
    if config.is_production:
        if config.STORAGE_BACKEND == "memory":
            error_msg = "STORAGE_BACKEND=memory is not allowed in production"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if config.DATABASE_URL.startswith("sqlite"):
            error_msg = (
                "CRITICAL: SQLite database is not supported in production. "
                "Please use PostgreSQL."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.info("Production safety gates validated")

    logger.info("Configuration validation complete")
    logger.info(f"Environment: {config.ENV}")
    logger.info(f"Storage backend: {config.STORAGE_BACKEND}")
    logger.info(f"Stripe configured: {config.stripe_enabled}")
    logger.info(f"SMTP configured: {config.smtp_enabled}")

# storefront/utils/settings.py
import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _flag(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, read once at start-up and handed to constructors.
    """

    database_url: str = "sqlite:///./storefront.db"
    celery_broker_url: str = "redis://redis:6379/1"
    celery_result_backend: str = "redis://redis:6379/2"
    db_echo: bool = False
    db_connect_attempts: int = 5
    # usage_count is not incremented at checkout unless this is switched on
    count_coupon_usage: bool = False
    log_level: str = "INFO"
    # shared with the payment gateway; the webhook is refused while this is empty
    payment_webhook_secret: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            celery_broker_url=os.getenv("CELERY_BROKER_URL", redis_url),
            celery_result_backend=os.getenv("CELERY_RESULT_BACKEND", cls.celery_result_backend),
            db_echo=_flag(os.getenv("DB_ECHO")),
            db_connect_attempts=int(os.getenv("DB_CONNECT_ATTEMPTS", cls.db_connect_attempts)),
            count_coupon_usage=_flag(os.getenv("COUNT_COUPON_USAGE")),
            log_level="DEBUG" if os.getenv("DEBUG") else os.getenv("LOG_LEVEL", cls.log_level).upper(),
            payment_webhook_secret=os.getenv("PAYMENT_WEBHOOK_SECRET", ""),
        )

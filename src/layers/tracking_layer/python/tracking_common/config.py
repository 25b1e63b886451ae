import os
import sys
from pathlib import Path
from typing import Literal, Optional

from loguru import logger
from pydantic import BaseModel, Field

_LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


class Settings(BaseModel):
    store_backend: Literal["json", "dynamodb"] = Field(default="json")
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / "data")
    orders_file: Optional[Path] = None
    reviews_file: Optional[Path] = None
    table_name: str = Field(default="OrderTracking")
    aws_region: Optional[str] = None
    webhook_secret: Optional[str] = None
    log_level: str = Field(default="INFO")

    @property
    def orders_path(self) -> Path:
        return self.orders_file or self.data_dir / "orders.json"

    @property
    def reviews_path(self) -> Path:
        return self.reviews_file or self.data_dir / "reviews.json"


def get_log_level() -> str:
    env = (os.getenv("ENV") or os.getenv("ENVIRONMENT") or "production").lower()
    return os.getenv("LOG_LEVEL", _LEVEL_BY_ENV.get(env, "INFO")).upper()


def load_settings() -> Settings:
    """Reads the function configuration from the environment."""
    values = {
        "store_backend": os.getenv("STORE_BACKEND"),
        "data_dir": os.getenv("DATA_DIR"),
        "orders_file": os.getenv("ORDERS_FILE"),
        "reviews_file": os.getenv("REVIEWS_FILE"),
        "table_name": os.getenv("TABLE_NAME"),
        "aws_region": os.getenv("AWS_REGION"),
        "webhook_secret": os.getenv("WEBHOOK_SECRET") or None,
        "log_level": get_log_level(),
    }
    return Settings(**{k: v for k, v in values.items() if v is not None})


def setup_logging(level: Optional[str] = None) -> None:
    """Routes loguru output to stderr, where Lambda picks it up for CloudWatch."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or get_log_level(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function} | {message} | {extra}",
        backtrace=False,
    )

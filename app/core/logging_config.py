# app/core/logging_config.py
import logging

from app.core.config import settings

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for the worker process."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)

# app/core/startup.py
import logging

from fastapi import FastAPI

from app.core.logging_config import configure_logging
from app.services.classification_services import get_default_embedding_client

logger = logging.getLogger(__name__)


async def startup_event(app: FastAPI):
    """
    Initialize resources on application startup.
    """
    configure_logging()
    try:
        get_default_embedding_client().load()
        logger.info("Embedding model loaded successfully.")
    except Exception as e:
        logger.error(f"Failed to startup: {e}")
        raise

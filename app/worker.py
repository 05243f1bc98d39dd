# app/worker.py
import asyncio
import sys

from app.core.logging_config import configure_logging
from app.data.database import engine
from app.models.classification_models import PipelineResult
from app.services.classification_services import run_classification_pipeline


async def run_once() -> PipelineResult:
    try:
        return await run_classification_pipeline()
    finally:
        await engine.dispose()


def main() -> int:
    """Run a single classification pass, for cron style schedulers."""
    configure_logging()
    result = asyncio.run(run_once())
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())

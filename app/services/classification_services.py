# app/services/classification_services.py
import logging
from functools import lru_cache
from typing import Callable, Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    ClassificationPipelineError,
    QueryError,
    StoreConnectionError,
)
from app.models.classification_models import PipelineResult, PipelineStage
from app.services.database.message_database_services import select_candidate_messages
from app.services.database.score_database_services import persist_embeddings, upsert_scores
from app.services.database.similarity_database_services import (
    compute_best_matches,
    get_category_pairs,
)
from app.services.embedding.embedding_services import (
    EmbeddingClient,
    SentenceTransformerEmbeddingClient,
    embed_batch,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_default_embedding_client() -> SentenceTransformerEmbeddingClient:
    return SentenceTransformerEmbeddingClient()


def classify_error(stage: PipelineStage, error: Exception) -> Exception:
    """Maps a raw failure to the pipeline error kind it represents."""
    if isinstance(error, ClassificationPipelineError):
        return error
    if stage == PipelineStage.CONNECTING and isinstance(error, (SQLAlchemyError, OSError)):
        # asyncpg auth and unknown-database errors arrive as a plain DBAPIError
        return StoreConnectionError(str(error))
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return StoreConnectionError(str(error))
    if isinstance(error, SQLAlchemyError):
        return QueryError(str(error))
    return error


def _mark_failed(result: PipelineResult, error: Exception) -> None:
    result.failed_stage = result.stage
    result.stage = PipelineStage.FAILED
    result.status = "failed"
    result.error = error.__class__.__name__


def _log_stage_failure(result: PipelineResult, error: Exception) -> None:
    logger.error(
        f"Classification pass failed in stage '{result.failed_stage.value}' "
        f"with {error.__class__.__name__}: {error} "
        f"(selected={result.selected}, embedded={result.embedded}, "
        f"categories={result.categories}, scores_written={result.scores_written})"
    )


async def run_classification_pipeline(
    session_factory: Optional[Callable[[], AsyncSession]] = None,
    embedding_client: Optional[EmbeddingClient] = None,
    settings: Optional[Settings] = None,
) -> PipelineResult:
    """
    Runs one classification pass over the pending messages.

    Selects recently seen messages without an embedding, embeds them in one
    batch, stores the embeddings, scores every message against every
    topic/industry pair in a single query and upserts the scores.

    A failing stage stops the pass; stages already committed stay committed.
    The session is closed on every exit path.

    Returns:
        A PipelineResult describing how far the pass got.
    """
    if session_factory is None:
        from app.data.database import AsyncSessionLocal
        session_factory = AsyncSessionLocal
    settings = settings or default_settings

    result = PipelineResult()
    result.stage = PipelineStage.CONNECTING
    try:
        async with session_factory() as db:
            try:
                await _run_stages(db, result, embedding_client, settings)
            except Exception as e:
                error = classify_error(result.stage, e)
                _mark_failed(result, error)
                _log_stage_failure(result, error)
    except Exception as e:
        # opening or closing the session itself failed
        error = classify_error(PipelineStage.CONNECTING, e)
        if result.status != "failed":
            _mark_failed(result, error)
        logger.error(f"Database session could not be opened or closed: {error.__class__.__name__}: {error}")
        return result

    if result.status != "failed":
        result.stage = PipelineStage.CLOSED
    logger.info(
        f"Classification pass {result.status}: selected={result.selected}, embedded={result.embedded}, "
        f"categories={result.categories}, scores_written={result.scores_written}, skipped={len(result.skipped)}"
    )
    return result


async def _run_stages(
    db: AsyncSession,
    result: PipelineResult,
    embedding_client: Optional[EmbeddingClient],
    settings: Settings,
) -> None:
    await db.connection()

    result.stage = PipelineStage.SELECTING
    messages = await select_candidate_messages(
        db, limit=settings.MESSAGE_BATCH_LIMIT, recency_hours=settings.MESSAGE_RECENCY_HOURS
    )
    result.selected = len(messages)
    if not messages:
        logger.info("No messages pending classification.")
        return
    # end the read-only transaction before the embedding call
    await db.commit()

    result.stage = PipelineStage.EMBEDDING
    client = embedding_client or get_default_embedding_client()
    vectors = await embed_batch(
        client,
        [message.content for message in messages],
        dimension=settings.EMBEDDING_DIMENSION,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
    )
    written = await persist_embeddings(db, messages, vectors)
    result.embedded = written.written
    result.skipped.extend(written.skipped)
    result.violations.extend(written.violations)

    result.stage = PipelineStage.SCORING
    categories = await get_category_pairs(db)
    result.categories = len(categories)
    message_ids = [message.id for message in messages if message.id not in written.skipped]
    scores = await compute_best_matches(db, message_ids, categories)

    result.stage = PipelineStage.WRITING
    upserted = await upsert_scores(db, scores)
    result.scores_written = upserted.written
    result.skipped.extend(message_id for message_id in upserted.skipped if message_id not in result.skipped)
    result.violations.extend(upserted.violations)

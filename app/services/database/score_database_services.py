# app/services/database/score_database_services.py
import logging
from typing import Dict, Optional, Sequence, Tuple

from sqlalchemy import Integer, cast, column, func, update, values
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DataIntegrityViolation
from app.models.classification_models import CandidateMessage, SimilarityScore, WriteResult
from app.models.database_models.message_score import MessageScore
from app.models.database_models.unique_message import UniqueMessage

logger = logging.getLogger(__name__)

SCORE_CONFLICT_KEYS = ["message_id", "topic", "industry"]


def resolve_score_conflict(existing_main: Optional[float], incoming_similarity: float) -> Tuple[float, float]:
    """
    Conflict rule for an existing score row, as (similarity, main).

    similarity always takes the incoming value; main only does when it was null.
    """
    main = incoming_similarity if existing_main is None else existing_main
    return incoming_similarity, main


def score_conflict_updates(excluded) -> Dict[str, object]:
    """SQL form of resolve_score_conflict, evaluated by the store per conflicting key."""
    return {
        "similarity": excluded.similarity,
        "main": func.coalesce(MessageScore.__table__.c.main, excluded.similarity),
    }


def build_score_upsert(scores: Sequence[SimilarityScore]):
    stmt = insert(MessageScore).values(
        [
            {
                "message_id": score.message_id,
                "topic": score.topic,
                "industry": score.industry,
                "similarity": score.similarity,
                "main": score.similarity,
            }
            for score in scores
        ]
    )
    return stmt.on_conflict_do_update(
        index_elements=SCORE_CONFLICT_KEYS,
        set_=score_conflict_updates(stmt.excluded),
    )


def build_embedding_update(messages: Sequence[CandidateMessage], vectors: Sequence[Sequence[float]]):
    """
    One UPDATE ... FROM (VALUES ...) for the whole batch.

    VALUES parameters carry no column type in Postgres, so both sides are cast.
    """
    vector_type = UniqueMessage.__table__.c.embedding.type
    batch = values(
        column("id", Integer),
        column("embedding", vector_type),
        name="batch_embeddings",
    ).data([(message.id, list(vector)) for message, vector in zip(messages, vectors)])

    return (
        update(UniqueMessage)
        .where(
            UniqueMessage.id == cast(batch.c.id, Integer),
            UniqueMessage.embedding.is_(None),
        )
        .values(embedding=cast(batch.c.embedding, vector_type))
        .execution_options(synchronize_session=False)
    )


def _integrity_violation(error: IntegrityError, item_id: int, action: str) -> DataIntegrityViolation:
    return DataIntegrityViolation(f"{action} rejected for {item_id}: {error.orig}", item_id=item_id)


async def _persist_embeddings_one_by_one(
    db: AsyncSession, messages: Sequence[CandidateMessage], vectors: Sequence[Sequence[float]]
) -> WriteResult:
    outcome = WriteResult()
    for message, vector in zip(messages, vectors):
        try:
            async with db.begin_nested():
                try:
                    result = await db.execute(build_embedding_update([message], [vector]))
                except IntegrityError as e:
                    raise _integrity_violation(e, message.id, "Embedding update") from e
        except DataIntegrityViolation as violation:
            logger.warning(f"Skipping message {message.id}: {violation}")
            outcome.skipped.append(message.id)
            outcome.violations.append(str(violation))
            continue

        if result.rowcount:
            outcome.written += 1
        else:
            logger.info(f"Message {message.id} already has an embedding, leaving it unchanged.")

    await db.commit()
    return outcome


async def persist_embeddings(
    db: AsyncSession, messages: Sequence[CandidateMessage], vectors: Sequence[Sequence[float]]
) -> WriteResult:
    """
    Stores freshly computed embeddings for the whole batch in one statement.

    A message that already has an embedding is left untouched. If the batch
    hits an unexpected constraint it is replayed one message per savepoint, so
    only the offending messages are skipped.
    """
    if len(messages) != len(vectors):
        raise ValueError(f"Got {len(vectors)} vectors for {len(messages)} messages.")
    if not messages:
        return WriteResult()

    try:
        result = await db.execute(build_embedding_update(messages, vectors))
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Batched embedding update of {len(messages)} rows rejected ({e.orig.__class__.__name__}), retrying per message.")
        return await _persist_embeddings_one_by_one(db, messages, vectors)

    written = result.rowcount if result.rowcount and result.rowcount > 0 else 0
    if written < len(messages):
        logger.info(f"{len(messages) - written} of {len(messages)} messages already had an embedding, left unchanged.")
    return WriteResult(written=written)


async def _upsert_scores_one_by_one(db: AsyncSession, scores: Sequence[SimilarityScore]) -> WriteResult:
    outcome = WriteResult()
    for score in scores:
        try:
            async with db.begin_nested():
                try:
                    await db.execute(build_score_upsert([score]))
                except IntegrityError as e:
                    raise _integrity_violation(e, score.message_id, "Score upsert") from e
        except DataIntegrityViolation as violation:
            logger.warning(f"Skipping score ({score.message_id}, {score.topic}, {score.industry}): {violation}")
            if score.message_id not in outcome.skipped:
                outcome.skipped.append(score.message_id)
            outcome.violations.append(str(violation))
            continue
        outcome.written += 1
    await db.commit()
    return outcome


async def upsert_scores(db: AsyncSession, scores: Sequence[SimilarityScore]) -> WriteResult:
    """
    Upserts every score of the batch in one statement.

    If the batch hits an unexpected constraint, it is replayed row by row so
    only the offending rows are dropped.
    """
    if not scores:
        return WriteResult()

    try:
        await db.execute(build_score_upsert(scores))
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Batched score upsert of {len(scores)} rows rejected ({e.orig.__class__.__name__}), retrying per row.")
        return await _upsert_scores_one_by_one(db, scores)

    return WriteResult(written=len(scores))

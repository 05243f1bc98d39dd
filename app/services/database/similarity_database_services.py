# app/services/database/similarity_database_services.py
import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select, true, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.classification_models import CategoryPair, SimilarityScore
from app.models.database_models.synth_data import SynthData
from app.models.database_models.unique_message import UniqueMessage

logger = logging.getLogger(__name__)


async def get_category_pairs(db: AsyncSession) -> List[CategoryPair]:
    """Returns every distinct topic/industry pair that has at least one reference embedding."""
    result = await db.execute(
        select(SynthData.topic, SynthData.industry)
        .distinct()
        .where(SynthData.embedding.is_not(None))
        .order_by(SynthData.topic, SynthData.industry)
    )
    return [CategoryPair(topic=row.topic, industry=row.industry) for row in result.all()]


def build_best_match_query(message_ids: Sequence[int], categories: Optional[Sequence[CategoryPair]] = None):
    """
    Builds a single query ranking every (message, reference) pair of the batch.

    Rows are partitioned per message and topic/industry pair, ordered by cosine
    distance and then reference id, so equal distances resolve to the lowest
    reference id. Only the first row of each partition is kept.
    """
    distance = UniqueMessage.embedding.cosine_distance(SynthData.embedding)

    ranked = (
        select(
            UniqueMessage.id.label("message_id"),
            SynthData.topic.label("topic"),
            SynthData.industry.label("industry"),
            SynthData.id.label("reference_id"),
            (1 - distance).label("similarity"),
            func.row_number()
            .over(
                partition_by=(UniqueMessage.id, SynthData.topic, SynthData.industry),
                order_by=(distance.asc(), SynthData.id.asc()),
            )
            .label("match_rank"),
        )
        .select_from(UniqueMessage)
        .join(SynthData, true())
        .where(
            UniqueMessage.id.in_(list(message_ids)),
            UniqueMessage.embedding.is_not(None),
            SynthData.embedding.is_not(None),
        )
    )
    if categories is not None:
        ranked = ranked.where(
            tuple_(SynthData.topic, SynthData.industry).in_(
                [(category.topic, category.industry) for category in categories]
            )
        )
    ranked = ranked.subquery("ranked_matches")

    return (
        select(
            ranked.c.message_id,
            ranked.c.topic,
            ranked.c.industry,
            ranked.c.reference_id,
            ranked.c.similarity,
        )
        .where(ranked.c.match_rank == 1)
        .order_by(ranked.c.message_id, ranked.c.topic, ranked.c.industry)
    )


async def compute_best_matches(
    db: AsyncSession,
    message_ids: Sequence[int],
    categories: Optional[Sequence[CategoryPair]] = None,
) -> List[SimilarityScore]:
    """
    Finds, for each message of the batch, its closest reference item in every category.

    Args:
        db: The database session.
        message_ids: Ids of messages whose embeddings are already stored.
        categories: Restricts scoring to these pairs. None scores every pair present.

    Returns:
        One SimilarityScore per (message, topic, industry). Categories without
        reference embeddings produce no rows.
    """
    if not message_ids or (categories is not None and not categories):
        return []

    result = await db.execute(build_best_match_query(message_ids, categories))
    scores = [
        SimilarityScore(
            message_id=row.message_id,
            topic=row.topic,
            industry=row.industry,
            similarity=float(row.similarity),
            reference_id=row.reference_id,
        )
        for row in result.all()
    ]
    logger.debug(f"Computed {len(scores)} best matches for {len(message_ids)} messages.")
    return scores

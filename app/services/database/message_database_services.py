# app/services/database/message_database_services.py
from datetime import timedelta
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.classification_models import CandidateMessage
from app.models.database_models.message_feed import MessageFeed
from app.models.database_models.unique_message import UniqueMessage


def build_candidate_query(limit: int = 100, recency_hours: int = 24):
    """
    Builds the selection of messages waiting for an embedding.

    Only the message columns are projected: adding the feed timestamp to the
    select list would make every sighting its own distinct row.
    """
    cutoff = func.now() - timedelta(hours=recency_hours)
    return (
        select(UniqueMessage.id, UniqueMessage.content)
        .distinct()
        .join(MessageFeed, MessageFeed.message_id == UniqueMessage.id)
        .where(
            UniqueMessage.embedding.is_(None),
            MessageFeed.timestamp >= cutoff,
            func.btrim(UniqueMessage.content) != "",
        )
        .order_by(UniqueMessage.id)
        .limit(limit)
    )


async def select_candidate_messages(
    db: AsyncSession, limit: int = 100, recency_hours: int = 24
) -> List[CandidateMessage]:
    """
    Returns the distinct messages that still need an embedding and were seen recently.

    Args:
        db: The database session.
        limit: Maximum number of messages to return.
        recency_hours: Only messages with a feed entry newer than this are eligible.

    Returns:
        A list of CandidateMessage objects ordered by id, empty when nothing is pending.
    """
    result = await db.execute(build_candidate_query(limit=limit, recency_hours=recency_hours))
    return [CandidateMessage(id=row.id, content=row.content) for row in result.all()]

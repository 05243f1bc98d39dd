# app/models/database_models/message_score.py
from sqlalchemy import Column, ForeignKey, Identity, Integer, REAL, Text, UniqueConstraint

from app.data.database import Base

class MessageScore(Base):
    __tablename__ = "message_scores"
    __table_args__ = (
        UniqueConstraint("message_id", "topic", "industry", name="message_scores_message_id_topic_industry_key"),
    )

    id = Column(Integer, Identity(always=True), primary_key=True)
    topic = Column(Text, nullable=False)
    industry = Column(Text, nullable=False)
    main = Column(REAL, nullable=True)
    similarity = Column(REAL, nullable=True)
    message_id = Column(Integer, ForeignKey("unique_messages.id", name="fk_message_id"), nullable=False)

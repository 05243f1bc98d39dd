# app/models/database_models/message_feed.py
from sqlalchemy import Column, DateTime, ForeignKey, Identity, Integer, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.data.database import Base

class MessageFeed(Base):
    __tablename__ = "message_feed"
    __table_args__ = (
        UniqueConstraint("timestamp", "platform_name", "platform_message_id"),
    )

    id = Column(Integer, Identity(always=True), primary_key=True)
    timestamp = Column(DateTime(timezone=True), primary_key=True, nullable=False, server_default=func.now())
    message_id = Column(Integer, ForeignKey("unique_messages.id", name="fk_message_id"), nullable=False)
    platform_name = Column(Text, nullable=False)
    platform_message_id = Column(Text, nullable=False)

# app/models/database_models/unique_message.py
from sqlalchemy import Column, Identity, Integer, Text

from pgvector.sqlalchemy import Vector

from app.core.config import settings
from app.data.database import Base

class UniqueMessage(Base):
    __tablename__ = "unique_messages"

    id = Column(Integer, Identity(always=True), primary_key=True)
    content = Column(Text, nullable=False, unique=True)
    embedding = Column(Vector(settings.EMBEDDING_DIMENSION), nullable=True)

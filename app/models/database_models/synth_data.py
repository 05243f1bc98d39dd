# app/models/database_models/synth_data.py
from sqlalchemy import Column, Identity, Integer, Text

from pgvector.sqlalchemy import Vector

from app.core.config import settings
from app.data.database import Base


class SynthData(Base):
    """Pre-labelled reference example for one topic/industry pair."""
    __tablename__ = "synth_data_prod"

    id = Column(Integer, Identity(always=True), primary_key=True)
    topic = Column(Text, nullable=False)
    industry = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(settings.EMBEDDING_DIMENSION), nullable=False)

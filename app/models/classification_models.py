# app/models/classification_models.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class CandidateMessage(BaseModel):
    id: int
    content: str


class CategoryPair(BaseModel):
    topic: str
    industry: str


class SimilarityScore(BaseModel):
    message_id: int
    topic: str
    industry: str
    similarity: float
    reference_id: Optional[int] = None  # traceability only, not persisted


class WriteResult(BaseModel):
    written: int = 0
    skipped: list[int] = []
    violations: list[str] = []


class PipelineStage(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SELECTING = "selecting"
    EMBEDDING = "embedding"
    SCORING = "scoring"
    WRITING = "writing"
    CLOSED = "closed"
    FAILED = "failed"


class PipelineResult(BaseModel):
    status: str = "success"
    stage: PipelineStage = PipelineStage.IDLE
    failed_stage: Optional[PipelineStage] = None
    selected: int = 0
    embedded: int = 0
    categories: int = 0
    scores_written: int = 0
    skipped: list[int] = []
    violations: list[str] = []
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


class AnalysisType(str, Enum):
    IMAGE = "imageAnalyses"
    VOICE = "voiceDiagnoses"
    SYMPTOM = "symptomChecks"
    MENTAL_HEALTH = "mentalHealthAssessments"
    DIET = "dietaryAnalyses"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisDocument(SQLModel, table=True):
    """One saved analysis in the "analyses" collection. Rows are inserted once and never updated."""

    __tablename__ = "analyses"
    # Insertion order; breaks timestamp ties last-inserted-first.
    seq: int | None = Field(default=None, primary_key=True)
    record_id: str = Field(unique=True, index=True)
    user_id: str = Field(index=True)
    analysis_type: str  # AnalysisType value
    # Aware UTC on write; SQLite hands it back naive, the store re-attaches UTC on read.
    timestamp: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    result: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

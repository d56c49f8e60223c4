"""Pydantic schemas for progress summaries."""
from pydantic import BaseModel, Field


class ProgressSummarySchema(BaseModel):
    entries: int
    total_attempts: int = Field(serialization_alias="totalAttempts")
    correct: int
    submissions: int = 0

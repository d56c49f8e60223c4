"""Pydantic schemas for submissions."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubmissionOutSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(serialization_alias="userId")
    title: str
    type: str
    filename: str
    stored_filename: str = Field(serialization_alias="storedFilename")
    filepath: str
    notes: str | None = None
    status: str
    submitted_at: datetime | None = Field(default=None, serialization_alias="submittedAt")


class SubmissionUpdateSchema(BaseModel):
    title: str | None = None
    status: str | None = None
    notes: str | None = None

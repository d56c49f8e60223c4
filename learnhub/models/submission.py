"""Submission model: metadata of one uploaded file; the file itself lives on disk."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from learnhub.db.session import Base


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(64), nullable=False, default="assignment")  # assignment | homework | project | ...
    filename = Column(String(255), nullable=False)  # original name as uploaded
    stored_filename = Column(String(255), unique=True, nullable=False)
    filepath = Column(String(1024), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="pending")  # pending | reviewed | graded | ...
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="submissions")

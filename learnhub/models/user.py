"""User model: login identity (username + email) and bcrypt password hash."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from learnhub.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # unloaded children are removed by ON DELETE CASCADE in the database
    submissions = relationship(
        "Submission", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    progress = relationship(
        "Progress", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

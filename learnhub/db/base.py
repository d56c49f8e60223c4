"""SQLAlchemy declarative base and model imports for Alembic."""
from learnhub.db.session import Base

# Import all models so Alembic can see them
from learnhub.models.progress import Progress  # noqa: F401
from learnhub.models.submission import Submission  # noqa: F401
from learnhub.models.user import User  # noqa: F401

__all__ = ["Base", "User", "Submission", "Progress"]

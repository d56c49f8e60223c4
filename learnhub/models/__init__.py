from learnhub.models.user import User
from learnhub.models.submission import Submission
from learnhub.models.progress import Progress

__all__ = ["User", "Submission", "Progress"]

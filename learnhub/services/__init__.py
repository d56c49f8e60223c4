from learnhub.services.passwords import validate_password
from learnhub.services.stats import summarize_progress

__all__ = ["summarize_progress", "validate_password"]

"""Password strength policy, shared by signup and the live strength check."""
import re

MIN_LENGTH = 8
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

# (pattern, message) in the order they are checked; only the first failure is reported
_RULES = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter."),
    (re.compile(r"[0-9]"), "Password must contain at least one number."),
    (re.compile("[" + re.escape(SPECIAL_CHARS) + "]"),
     "Password must contain at least one special character (!@#$%^&*...)."),
]


def validate_password(password: str) -> str | None:
    """Return None if the password is acceptable, else the first failing reason."""
    if len(password) < MIN_LENGTH:
        return f"Password must be at least {MIN_LENGTH} characters long."
    for pattern, message in _RULES:
        if not pattern.search(password):
            return message
    return None

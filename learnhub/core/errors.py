"""Error taxonomy shared by services, routers and the admin CLI."""


class LearnHubError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(LearnHubError):
    """Malformed input; reported immediately, never reaches storage."""


class DuplicateIdentity(LearnHubError):
    """Username or email already taken. Signup turns it into an ALREADY_EXISTS result."""


class InvalidCredentials(LearnHubError):
    """Login failed; the same message whether or not the user exists."""

    def __init__(self, message: str = "Invalid credentials."):
        super().__init__(message)


class Unauthenticated(LearnHubError):
    """Missing or invalid session on a protected operation."""

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message)


class LoginRedirect(Unauthenticated):
    """Unauthenticated page load; answered with a redirect to the login page."""


class PersistenceError(LearnHubError):
    """Constraint violation or connectivity failure at the store."""


class Timeout(PersistenceError):
    """Connection pool exhausted or statement took too long."""


class MigrationError(LearnHubError):
    """Legacy migration cannot proceed (source unreadable, backup not written)."""

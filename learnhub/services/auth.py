"""Signup and login against the credential store.

``register`` never raises on a username/email collision: it returns an
``ALREADY_EXISTS`` result that callers turn into the same redirect for either
kind of clash, so the endpoint cannot be used to probe which accounts exist.
``authenticate`` raises one ``InvalidCredentials`` for both unknown users and
wrong passwords, and spends a hash verification in both cases.
"""
import enum
import logging
import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from learnhub.core.context import AppContext
from learnhub.core.errors import DuplicateIdentity, InvalidCredentials, ValidationError
from learnhub.core.security import dummy_verify, hash_password, verify_password
from learnhub.models.user import User
from learnhub.services import users
from learnhub.services.passwords import validate_password

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,20}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt hard limit: 72 bytes (UTF-8)
BCRYPT_MAX_BYTES = 72


class RegistrationStatus(str, enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass
class RegistrationResult:
    status: RegistrationStatus
    user: User | None = None

    @property
    def created(self) -> bool:
        return self.status is RegistrationStatus.CREATED


def check_password_rules(password: str) -> None:
    """Raise ValidationError unless the password passes policy and fits in bcrypt."""
    reason = validate_password(password)
    if reason:
        raise ValidationError(reason)
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long.")


def validate_signup(username: str, email: str, password: str) -> None:
    if not username or not email or not password:
        raise ValidationError("Please fill all required fields.")
    if not USERNAME_RE.match(username):
        raise ValidationError(
            "Username must be 3-20 characters and contain only letters, numbers, and underscores."
        )
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format.")
    check_password_rules(password)


def register(ctx: AppContext, db: Session, username: str, email: str, raw_password: str) -> RegistrationResult:
    username = (username or "").strip()
    email = (email or "").strip()
    raw_password = raw_password or ""

    validate_signup(username, email, raw_password)

    # checked before hashing; the caller gets no hint which field collided
    if users.find_existing_identity(db, username, email) is not None:
        logger.info("Signup for an existing identity; sending client to login")
        return RegistrationResult(status=RegistrationStatus.ALREADY_EXISTS)

    hashed = hash_password(ctx.pwd_context, raw_password)
    try:
        user = users.create_user(db, username, email, hashed)
    except DuplicateIdentity:
        # lost a race with a concurrent signup for the same identity
        logger.info("Signup for an existing identity; sending client to login")
        return RegistrationResult(status=RegistrationStatus.ALREADY_EXISTS)
    logger.info("Registered user id=%s", user.id)
    return RegistrationResult(status=RegistrationStatus.CREATED, user=user)


def authenticate(ctx: AppContext, db: Session, identifier: str, raw_password: str) -> User:
    identifier = (identifier or "").strip()
    raw_password = raw_password or ""
    if not identifier or not raw_password:
        raise ValidationError("Missing credentials.")

    user = users.get_user_by_identifier(db, identifier)
    if user is None:
        dummy_verify(ctx.pwd_context)
        logger.info("Rejected login")
        raise InvalidCredentials()
    if not verify_password(ctx.pwd_context, raw_password, user.password_hash):
        logger.info("Rejected login")
        raise InvalidCredentials()

    logger.info("User id=%s logged in", user.id)
    return user


def set_password(ctx: AppContext, db: Session, username: str, raw_password: str) -> User:
    """Replace a user's password hash (admin CLI)."""
    check_password_rules(raw_password)
    user = users.get_user_by_username(db, username)
    if user is None:
        raise ValidationError(f"No user named {username!r}.")
    updated = users.update_user(db, user.id, password_hash=hash_password(ctx.pwd_context, raw_password))
    logger.info("Password reset for user id=%s", user.id)
    return updated

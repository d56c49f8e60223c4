"""Credential store: all reads and writes of the users table."""
import logging

from sqlalchemy import exc, func, or_, select
from sqlalchemy.orm import Session

from learnhub.core.errors import DuplicateIdentity
from learnhub.db.session import translate_db_errors
from learnhub.models.progress import Progress
from learnhub.models.submission import Submission
from learnhub.models.user import User

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    with translate_db_errors(db, "list users"):
        result = db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return list(result.scalars().all())


def get_user(db: Session, user_id: int) -> User | None:
    with translate_db_errors(db, "get user"):
        return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    with translate_db_errors(db, "get user by username"):
        return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def get_user_by_email(db: Session, email: str) -> User | None:
    with translate_db_errors(db, "get user by email"):
        return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def get_user_by_identifier(db: Session, identifier: str) -> User | None:
    """Match a single login string against username or email."""
    with translate_db_errors(db, "get user by identifier"):
        result = db.execute(
            select(User).where(or_(User.username == identifier, User.email == identifier)).limit(1)
        )
        return result.scalar_one_or_none()


def find_existing_identity(db: Session, username: str, email: str) -> User | None:
    """Any user holding this username or this email (one query, no hint which matched)."""
    with translate_db_errors(db, "check identity"):
        result = db.execute(
            select(User).where(or_(User.username == username, User.email == email)).limit(1)
        )
        return result.scalar_one_or_none()


def _is_identity_clash(error: exc.IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: users.username"
    # postgresql: duplicate key value violates unique constraint "ix_users_email"
    text = str(error.orig).lower()
    return "username" in text or "email" in text


def create_user(db: Session, username: str, email: str, password_hash: str) -> User:
    """Insert a user. A concurrent insert that took the same username/email raises DuplicateIdentity."""
    with translate_db_errors(db, "create user"):
        user = User(username=username, email=email, password_hash=password_hash)
        db.add(user)
        try:
            db.commit()
        except exc.IntegrityError as e:
            if not _is_identity_clash(e):
                raise
            db.rollback()
            logger.info("Username or email taken by a concurrent insert")
            raise DuplicateIdentity("Username or email already in use.") from e
        db.refresh(user)
    logger.info("Created user id=%s", user.id)
    return user


def update_user(
    db: Session,
    user_id: int,
    username: str | None = None,
    email: str | None = None,
    password_hash: str | None = None,
) -> User | None:
    """Partial update. Returns None when nothing was supplied or the user does not exist."""
    changes = {
        key: value
        for key, value in (("username", username), ("email", email), ("password_hash", password_hash))
        if value
    }
    if not changes:
        return None

    with translate_db_errors(db, "update user"):
        user = db.get(User, user_id)
        if user is None:
            return None

        clash = []
        if "username" in changes:
            clash.append(User.username == changes["username"])
        if "email" in changes:
            clash.append(User.email == changes["email"])
        if clash:
            taken = db.execute(
                select(User.id).where(or_(*clash), User.id != user_id).limit(1)
            ).scalar_one_or_none()
            if taken is not None:
                raise DuplicateIdentity("Username or email already in use.")

        for key, value in changes.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> bool:
    """Delete a user; submissions and progress go with it (ON DELETE CASCADE)."""
    with translate_db_errors(db, "delete user"):
        user = db.get(User, user_id)
        if user is None:
            return False
        db.delete(user)
        db.commit()
    logger.info("Deleted user id=%s", user_id)
    return True


def get_user_stats(db: Session, user_id: int) -> dict:
    with translate_db_errors(db, "user stats"):
        exists = db.get(User, user_id) is not None
        submission_count = db.execute(
            select(func.count(Submission.id)).where(Submission.user_id == user_id)
        ).scalar_one()
        progress_count = db.execute(
            select(func.count(Progress.id)).where(Progress.user_id == user_id)
        ).scalar_one()
    return {
        "user_exists": exists,
        "submission_count": submission_count,
        "progress_count": progress_count,
    }

"""Submission repository. Metadata only: files are written and removed by services/uploads.py."""
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from learnhub.db.session import translate_db_errors
from learnhub.models.submission import Submission
from learnhub.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "assignment"
DEFAULT_STATUS = "pending"

# marks "notes not supplied" so an explicit None can clear them
UNSET = object()


@dataclass
class SubmissionData:
    title: str
    filename: str
    stored_filename: str
    filepath: str
    type: str = DEFAULT_TYPE
    notes: str | None = None
    status: str = DEFAULT_STATUS


def create_submission(db: Session, user_id: int, data: SubmissionData) -> Submission:
    with translate_db_errors(db, "create submission"):
        submission = Submission(
            user_id=user_id,
            title=data.title,
            type=data.type or DEFAULT_TYPE,
            filename=data.filename,
            stored_filename=data.stored_filename,
            filepath=data.filepath,
            notes=data.notes or None,
            status=data.status or DEFAULT_STATUS,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
    logger.info("Stored submission id=%s for user id=%s", submission.id, user_id)
    return submission


def list_submissions_for_user(db: Session, user_id: int) -> list[Submission]:
    with translate_db_errors(db, "list submissions"):
        result = db.execute(
            select(Submission)
            .where(Submission.user_id == user_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        )
        return list(result.scalars().all())


def list_all_submissions(db: Session) -> list[dict]:
    """Every submission with its owner's username/email, newest first (admin)."""
    with translate_db_errors(db, "list all submissions"):
        result = db.execute(
            select(Submission, User.username, User.email)
            .join(User, Submission.user_id == User.id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        )
        return [
            {"submission": submission, "username": username, "email": email}
            for submission, username, email in result.all()
        ]


def get_submission(db: Session, submission_id: int) -> Submission | None:
    with translate_db_errors(db, "get submission"):
        return db.get(Submission, submission_id)


def get_submission_by_stored_filename(db: Session, stored_filename: str) -> Submission | None:
    with translate_db_errors(db, "get submission by stored filename"):
        result = db.execute(select(Submission).where(Submission.stored_filename == stored_filename))
        return result.scalar_one_or_none()


def update_submission(
    db: Session,
    submission_id: int,
    title: str | None = None,
    status: str | None = None,
    notes=UNSET,
) -> Submission | None:
    """Partial update of title/status/notes. None when nothing supplied or no such row."""
    changes = {}
    if title:
        changes["title"] = title
    if status:
        changes["status"] = status
    if notes is not UNSET:
        changes["notes"] = notes
    if not changes:
        return None

    with translate_db_errors(db, "update submission"):
        submission = db.get(Submission, submission_id)
        if submission is None:
            return None
        for key, value in changes.items():
            setattr(submission, key, value)
        db.commit()
        db.refresh(submission)
    logger.info("Updated submission id=%s: %s", submission_id, ", ".join(sorted(changes)))
    return submission


def delete_submission(db: Session, submission_id: int) -> bool:
    with translate_db_errors(db, "delete submission"):
        submission = db.get(Submission, submission_id)
        if submission is None:
            return False
        db.delete(submission)
        db.commit()
    logger.info("Deleted submission id=%s", submission_id)
    return True

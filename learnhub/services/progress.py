"""Progress repository: stores practice batches verbatim and hands them back unchanged."""
import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from learnhub.core.errors import ValidationError
from learnhub.db.session import translate_db_errors
from learnhub.models.progress import Progress
from learnhub.models.user import User

logger = logging.getLogger(__name__)

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]


@dataclass
class ProgressEntry:
    id: int
    user_id: int
    data: dict[str, JSONValue]
    created_at: datetime | None
    username: str | None = None
    email: str | None = None


def dump_payload(payload: dict[str, Any]) -> str:
    """Canonical JSON text; equal payloads always serialize to equal strings."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def load_payload(raw: str) -> dict[str, Any]:
    return json.loads(raw) if raw else {}


def _entry(row: Progress, username: str | None = None, email: str | None = None) -> ProgressEntry:
    return ProgressEntry(
        id=row.id,
        user_id=row.user_id,
        data=load_payload(row.data),
        created_at=row.created_at,
        username=username,
        email=email,
    )


def create_progress(db: Session, user_id: int, payload: dict[str, JSONValue]) -> ProgressEntry:
    if not isinstance(payload, dict):
        raise ValidationError("Progress payload must be a JSON object.")
    try:
        raw = dump_payload(payload)
    except (TypeError, ValueError) as e:
        raise ValidationError("Progress payload is not JSON serializable.") from e

    with translate_db_errors(db, "create progress"):
        row = Progress(user_id=user_id, data=raw)
        db.add(row)
        db.commit()
        db.refresh(row)
    logger.info("Stored progress id=%s for user id=%s", row.id, user_id)
    return _entry(row)


def list_progress_for_user(db: Session, user_id: int) -> list[ProgressEntry]:
    with translate_db_errors(db, "list progress"):
        result = db.execute(
            select(Progress)
            .where(Progress.user_id == user_id)
            .order_by(Progress.created_at.desc(), Progress.id.desc())
        )
        rows = result.scalars().all()
    return [_entry(row) for row in rows]


def list_all_progress(db: Session) -> list[ProgressEntry]:
    """Every entry with its owner's username/email, newest first (admin)."""
    with translate_db_errors(db, "list all progress"):
        result = db.execute(
            select(Progress, User.username, User.email)
            .join(User, Progress.user_id == User.id)
            .order_by(Progress.created_at.desc(), Progress.id.desc())
        )
        rows = result.all()
    return [_entry(row, username, email) for row, username, email in rows]


def payload_counts(db: Session, user_id: int) -> Counter:
    """How many entries this user holds per canonical payload text."""
    with translate_db_errors(db, "count progress payloads"):
        result = db.execute(select(Progress.data).where(Progress.user_id == user_id))
        return Counter(result.scalars().all())

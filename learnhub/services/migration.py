"""One-shot import of the legacy JSON data file into the database.

Safe to re-run: users are matched on username/email, submissions on their
stored filename and progress items on (owner, payload). Progress matching
counts duplicates, so two identical items in the file become two entries.
A record that fails is logged and skipped; only an unreadable source or a
failed backup stops the run.
"""
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from learnhub.core.context import AppContext
from learnhub.core.errors import LearnHubError, MigrationError, ValidationError
from learnhub.services import progress as progress_repo
from learnhub.services import submissions as submission_repo
from learnhub.services import users as user_repo

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"

# malformed legacy records surface as one of these
_RECORD_ERRORS = (LearnHubError, KeyError, TypeError, ValueError, AttributeError)


@dataclass
class CategoryCount:
    migrated: int = 0
    total: int = 0


@dataclass
class MigrationReport:
    source: str
    users: CategoryCount = field(default_factory=CategoryCount)
    submissions: CategoryCount = field(default_factory=CategoryCount)
    progress: CategoryCount = field(default_factory=CategoryCount)
    backup: str | None = None

    def summary_lines(self) -> list[str]:
        return [
            f"- Users: {self.users.migrated}/{self.users.total}",
            f"- Submissions: {self.submissions.migrated}/{self.submissions.total}",
            f"- Progress entries: {self.progress.migrated}/{self.progress.total}",
        ]


def load_legacy_data(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw or "{}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MigrationError(f"Cannot read legacy data file {path}: {e}") from e
    if not isinstance(data, dict):
        raise MigrationError(f"Legacy data file {path} does not contain a JSON object.")
    return data


def backup_source(path: Path) -> Path:
    backup = path.with_name(path.name + BACKUP_SUFFIX)
    try:
        shutil.copyfile(path, backup)
    except OSError as e:
        raise MigrationError(f"Could not write backup {backup}: {e}") from e
    return backup


def _required(record: dict, key: str) -> Any:
    value = record.get(key)
    if value in (None, ""):
        raise ValidationError(f"missing {key!r}")
    return value


class _OwnerResolver:
    """Maps legacy numeric user ids to current user ids."""

    def __init__(self, db: Session):
        self.db = db
        self.by_legacy_id: dict[str, int] = {}

    def remember(self, legacy_id: Any, user_id: int) -> None:
        if legacy_id is not None:
            self.by_legacy_id[str(legacy_id)] = user_id

    def resolve(self, legacy_id: Any) -> int | None:
        if legacy_id is None:
            return None
        if str(legacy_id) in self.by_legacy_id:
            return self.by_legacy_id[str(legacy_id)]
        # rows imported by an older tool may have kept their ids
        try:
            user = user_repo.get_user(self.db, int(legacy_id))
        except (TypeError, ValueError):
            return None
        return user.id if user else None


def _migrate_users(db: Session, records: list, owners: _OwnerResolver, count: CategoryCount) -> None:
    for record in records:
        count.total += 1
        name = record.get("username") if isinstance(record, dict) else None
        try:
            username = _required(record, "username")
            email = _required(record, "email")
            existing = user_repo.get_user_by_username(db, username) or user_repo.get_user_by_email(db, email)
            if existing:
                owners.remember(record.get("id"), existing.id)
                logger.info("User %s already exists, skipping", username)
                continue
            user = user_repo.create_user(db, username, email, _required(record, "passwordHash"))
            owners.remember(record.get("id"), user.id)
            count.migrated += 1
            logger.info("Migrated user: %s", username)
        except _RECORD_ERRORS as e:
            db.rollback()
            logger.error("Error migrating user %s: %s", name, e)


def _migrate_submissions(db: Session, records: list, owners: _OwnerResolver, count: CategoryCount) -> None:
    for record in records:
        count.total += 1
        legacy_id = record.get("id") if isinstance(record, dict) else None
        try:
            owner_id = owners.resolve(record.get("userId"))
            if owner_id is None:
                logger.info("User ID %s not found, skipping submission %s", record.get("userId"), legacy_id)
                continue
            stored_filename = _required(record, "storedFilename")
            if submission_repo.get_submission_by_stored_filename(db, stored_filename):
                logger.info("Submission %s already migrated, skipping", legacy_id)
                continue
            data = submission_repo.SubmissionData(
                title=_required(record, "title"),
                filename=_required(record, "filename"),
                stored_filename=stored_filename,
                filepath=_required(record, "filepath"),
                type=record.get("type") or submission_repo.DEFAULT_TYPE,
                notes=record.get("notes"),
                status=record.get("status") or submission_repo.DEFAULT_STATUS,
            )
            submission_repo.create_submission(db, owner_id, data)
            count.migrated += 1
            logger.info("Migrated submission: %s", data.title)
        except _RECORD_ERRORS as e:
            db.rollback()
            logger.error("Error migrating submission %s: %s", legacy_id, e)


def _migrate_progress(db: Session, by_user: dict, owners: _OwnerResolver, count: CategoryCount) -> None:
    for legacy_user_id, entries in by_user.items():
        entries = entries if isinstance(entries, list) else [entries]
        count.total += len(entries)
        owner_id = owners.resolve(legacy_user_id)
        if owner_id is None:
            logger.info("User ID %s not found, skipping %d progress entries", legacy_user_id, len(entries))
            continue
        # entries already stored before this run; each one absorbs one identical legacy item
        try:
            existing = progress_repo.payload_counts(db, owner_id)
        except LearnHubError as e:
            logger.error("Error reading progress of user %s, skipping: %s", legacy_user_id, e)
            continue
        migrated = 0
        for entry in entries:
            try:
                key = progress_repo.dump_payload(entry) if isinstance(entry, dict) else None
                if key is not None and existing[key] > 0:
                    existing[key] -= 1
                    continue
                progress_repo.create_progress(db, owner_id, entry)
                migrated += 1
            except _RECORD_ERRORS as e:
                db.rollback()
                logger.error("Error migrating progress for user %s: %s", legacy_user_id, e)
        count.migrated += migrated
        logger.info("Migrated %d progress entries for user %s", migrated, legacy_user_id)


def migrate_legacy_data(ctx: AppContext, source: str | Path) -> MigrationReport:
    path = Path(source)
    report = MigrationReport(source=str(path))
    logger.info("Starting migration from %s", path)

    if not path.exists():
        logger.info("No legacy data file at %s; nothing to migrate", path)
        return report

    data = load_legacy_data(path)
    users = data.get("users") or []
    submissions = data.get("submissions") or []
    progress = data.get("progress") or {}
    if not isinstance(users, list) or not isinstance(submissions, list) or not isinstance(progress, dict):
        raise MigrationError(f"Legacy data file {path} has an unexpected layout.")
    logger.info(
        "Found %d users, %d submissions, %d progress collections",
        len(users), len(submissions), len(progress),
    )

    with ctx.session_factory() as db:
        owners = _OwnerResolver(db)
        _migrate_users(db, users, owners, report.users)
        _migrate_submissions(db, submissions, owners, report.submissions)
        _migrate_progress(db, progress, owners, report.progress)

    report.backup = str(backup_source(path))
    logger.info("Migration completed; original backed up to %s", report.backup)
    for line in report.summary_lines():
        logger.info(line)
    return report

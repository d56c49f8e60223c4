"""API routes: JSON for progress sync and file submissions."""
import logging
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from learnhub.core.context import AppContext
from learnhub.core.deps import get_context, get_current_user_id_optional, require_user_api
from learnhub.core.errors import PersistenceError, ValidationError
from learnhub.db.session import get_db
from learnhub.schemas.submission import SubmissionOutSchema
from learnhub.services import progress as progress_repo
from learnhub.services import submissions as submission_repo
from learnhub.services import uploads
from learnhub.services.stats import recent_results, summarize_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


@router.post("/progress")
def save_progress(
    payload: Annotated[Any, Body()],
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(require_user_api)],
):
    """Store one synced batch of practice attempts."""
    if not isinstance(payload, dict):
        raise ValidationError("Progress payload must be a JSON object.")
    data = {"at": datetime.now(timezone.utc).isoformat(), **payload}
    progress_repo.create_progress(db, user_id, data)
    return {"saved": True}


@router.get("/progress")
def get_progress(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
):
    """Synced batches, newest first; anonymous callers get an empty list."""
    if user_id is None:
        return {"progress": []}
    entries = progress_repo.list_progress_for_user(db, user_id)
    return {
        "progress": [
            {**entry.data, "at": entry.created_at.isoformat() if entry.created_at else entry.data.get("at")}
            for entry in entries
        ]
    }


@router.get("/progress/summary")
def get_progress_summary(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(require_user_api)],
):
    """Totals for the dashboard: attempts, correct answers, submission count."""
    entries = progress_repo.list_progress_for_user(db, user_id)
    submission_count = len(submission_repo.list_submissions_for_user(db, user_id))
    summary = summarize_progress(entries, submission_count=submission_count)
    return {**summary.model_dump(by_alias=True), "recent": recent_results(entries)}


@router.post("/submit")
def submit(
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(require_user_api)],
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str, Form()] = "",
    type: Annotated[str, Form()] = submission_repo.DEFAULT_TYPE,
    notes: Annotated[str, Form()] = "",
):
    """Upload one file with its metadata."""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded.")
    title = title.strip()
    if not title:
        raise ValidationError("Title is required.")

    stored = uploads.save_upload(ctx.settings, user_id, file.filename, file.file)
    data = submission_repo.SubmissionData(
        title=title,
        filename=stored.filename,
        stored_filename=stored.stored_filename,
        filepath=stored.filepath,
        type=type.strip() or submission_repo.DEFAULT_TYPE,
        notes=notes.strip() or None,
    )
    try:
        submission = submission_repo.create_submission(db, user_id, data)
    except PersistenceError:
        # metadata write failed; don't leave the file orphaned
        uploads.remove_file(stored.filepath)
        raise
    return {"success": True, "submission": {"id": submission.id, "title": submission.title}}


@router.get("/submissions")
def list_submissions(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(require_user_api)],
):
    rows = submission_repo.list_submissions_for_user(db, user_id)
    return {
        "submissions": [
            SubmissionOutSchema.model_validate(row).model_dump(by_alias=True, mode="json") for row in rows
        ]
    }

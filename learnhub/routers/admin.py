"""Admin routes (HTTP Basic): progress/submission overviews, CSV export, submission and user management."""
import csv
import io
import json
import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from learnhub.core.config import TEMPLATES_DIR
from learnhub.core.context import AppContext
from learnhub.core.deps import get_context, require_admin
from learnhub.db.session import get_db
from learnhub.schemas.auth import UserAdminOutSchema
from learnhub.schemas.submission import SubmissionOutSchema, SubmissionUpdateSchema
from learnhub.services import progress as progress_repo
from learnhub.services import submissions as submission_repo
from learnhub.services import uploads, users
from learnhub.services.stats import count_attempts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

CSV_HEADER = ["userId", "username", "email", "at", "itemsCount", "itemsJson"]


@router.get("/progress", response_class=HTMLResponse)
def admin_progress(request: Request, db: Annotated[Session, Depends(get_db)]):
    """Progress entries grouped by user."""
    all_users = users.list_users(db)
    groups: dict[int, dict] = {}
    for entry in progress_repo.list_all_progress(db):
        group = groups.setdefault(
            entry.user_id,
            {"user_id": entry.user_id, "username": entry.username, "email": entry.email, "entries": []},
        )
        group["entries"].append(
            {
                "at": entry.created_at,
                "items_count": count_attempts([entry]),
                "details": json.dumps(entry.data, indent=2, ensure_ascii=False),
            }
        )
    return templates.TemplateResponse(
        request,
        "admin_progress.html",
        {"user_count": len(all_users), "groups": list(groups.values())},
    )


@router.get("/progress.csv")
def admin_progress_csv(db: Annotated[Session, Depends(get_db)]):
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in progress_repo.list_all_progress(db):
        items = entry.data.get("items") or []
        items = items if isinstance(items, list) else []
        writer.writerow(
            [
                entry.user_id,
                entry.username or "",
                entry.email or "",
                entry.created_at.isoformat() if entry.created_at else "",
                len(items),
                json.dumps(items, ensure_ascii=False),
            ]
        )
    return Response(
        buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="progress.csv"'},
    )


@router.get("/submissions", response_class=HTMLResponse)
def admin_submissions(request: Request, db: Annotated[Session, Depends(get_db)]):
    rows = submission_repo.list_all_submissions(db)
    return templates.TemplateResponse(request, "admin_submissions.html", {"rows": rows})


def _submission_or_404(db: Session, submission_id: int):
    submission = submission_repo.get_submission(db, submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@router.get("/submissions/{submission_id}/download")
def admin_download_submission(
    submission_id: int,
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[Session, Depends(get_db)],
):
    submission = _submission_or_404(db, submission_id)
    path = Path(submission.filepath or uploads.submissions_dir(ctx.settings) / submission.stored_filename)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path, filename=submission.filename or "submission")


@router.patch("/submissions/{submission_id}")
def admin_update_submission(
    submission_id: int,
    body: SubmissionUpdateSchema,
    db: Annotated[Session, Depends(get_db)],
):
    """Change title/status/notes; notes may be cleared with an explicit null."""
    _submission_or_404(db, submission_id)
    notes = body.notes if "notes" in body.model_fields_set else submission_repo.UNSET
    updated = submission_repo.update_submission(
        db, submission_id, title=body.title, status=body.status, notes=notes
    )
    if updated is None:
        raise HTTPException(status_code=400, detail="No fields to update")
    logger.info("Admin updated submission id=%s", submission_id)
    return SubmissionOutSchema.model_validate(updated).model_dump(by_alias=True, mode="json")


@router.delete("/submissions/{submission_id}")
def admin_delete_submission(submission_id: int, db: Annotated[Session, Depends(get_db)]):
    """Delete the row, then its file."""
    submission = _submission_or_404(db, submission_id)
    filepath = submission.filepath
    submission_repo.delete_submission(db, submission_id)
    uploads.remove_file(filepath)
    return {"deleted": True}


@router.get("/users")
def admin_users(db: Annotated[Session, Depends(get_db)]):
    result = []
    for user in users.list_users(db):
        stats = users.get_user_stats(db, user.id)
        out = UserAdminOutSchema.model_validate(user)
        out.submission_count = stats["submission_count"]
        out.progress_count = stats["progress_count"]
        result.append(out.model_dump(mode="json"))
    return {"users": result}


@router.delete("/users/{user_id}")
def admin_delete_user(user_id: int, db: Annotated[Session, Depends(get_db)]):
    """Delete a user; their submissions and progress cascade, stored files are removed."""
    if users.get_user(db, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    filepaths = [s.filepath for s in submission_repo.list_submissions_for_user(db, user_id)]
    users.delete_user(db, user_id)
    removed = sum(1 for path in filepaths if uploads.remove_file(path))
    logger.info("Admin deleted user id=%s (%d files removed)", user_id, removed)
    return {"deleted": True, "files_removed": removed}

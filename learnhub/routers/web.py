"""Web routes: landing page, student dashboard and practice page. Jinja2 templates."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from learnhub.core.config import TEMPLATES_DIR
from learnhub.core.deps import get_current_user_id_optional, require_user_page
from learnhub.db.session import get_db
from learnhub.schemas.submission import SubmissionOutSchema
from learnhub.services import progress as progress_repo
from learnhub.services import submissions as submission_repo
from learnhub.services import users
from learnhub.services.stats import recent_results, summarize_progress

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
):
    return templates.TemplateResponse(request, "home.html", {"is_guest": user_id is None})


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(require_user_page)],
):
    user = users.get_user(db, user_id)
    entries = progress_repo.list_progress_for_user(db, user_id)
    submissions = submission_repo.list_submissions_for_user(db, user_id)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "is_guest": False,
            "username": user.username,
            "summary": summarize_progress(entries, submission_count=len(submissions)),
            "submissions": [SubmissionOutSchema.model_validate(s) for s in submissions],
            "results": recent_results(entries),
        },
    )


# Checked in the browser; attempts reach the server only through POST /api/progress.
PRACTICE_QUESTIONS = [
    {"id": "7x6", "prompt": "What is 7 × 6?", "answer": "42",
     "hint": "7 × 5 = 35, plus one more 7."},
    {"id": "9x8", "prompt": "What is 9 × 8?", "answer": "72",
     "hint": "10 × 8 = 80, minus one 8."},
    {"id": "12x12", "prompt": "What is 12 × 12?", "answer": "144",
     "hint": "12 × 10 = 120, plus 12 × 2."},
]


@router.get("/practice", response_class=HTMLResponse)
def practice(
    request: Request,
    user_id: Annotated[int, Depends(require_user_page)],
):
    return templates.TemplateResponse(
        request, "practice.html", {"is_guest": False, "questions": PRACTICE_QUESTIONS}
    )

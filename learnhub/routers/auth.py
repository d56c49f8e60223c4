"""Auth routes: signup, login, logout, password strength check. Session-based auth via signed cookie."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from learnhub.core.config import TEMPLATES_DIR
from learnhub.core.context import AppContext
from learnhub.core.deps import get_context, get_current_user_id_optional
from learnhub.core.security import create_session_token
from learnhub.db.session import get_db
from learnhub.schemas.auth import LoginSchema, PasswordCheckOutSchema, PasswordCheckSchema, SignupSchema
from learnhub.services import auth as auth_service
from learnhub.services.passwords import validate_password

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def set_session_cookie(response: Response, ctx: AppContext, user_id: int) -> None:
    settings = ctx.settings
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(user_id, settings.secret_key),
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


@router.get("/signup", response_class=HTMLResponse)
def signup_get(
    request: Request,
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
):
    """Show signup form."""
    return templates.TemplateResponse(request, "signup.html", {"is_guest": user_id is None})


@router.post("/signup")
def signup_post(
    request: Request,
    body: SignupSchema,
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create account and log in. An existing username/email gets a silent redirect to login."""
    result = auth_service.register(ctx, db, body.username, body.email, body.password)
    if not result.created:
        return JSONResponse({"redirect": str(request.app.url_path_for("login_get"))})

    response = JSONResponse({"success": True, "message": "Account created."}, status_code=201)
    set_session_cookie(response, ctx, result.user.id)
    return response


@router.get("/login", response_class=HTMLResponse)
def login_get(
    request: Request,
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
):
    """Show login form."""
    return templates.TemplateResponse(request, "login.html", {"is_guest": user_id is None})


@router.post("/login")
def login_post(
    body: LoginSchema,
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[Session, Depends(get_db)],
):
    """Check username-or-email + password and set the session cookie."""
    user = auth_service.authenticate(ctx, db, body.username, body.password)
    response = JSONResponse({"success": True, "message": "Logged in."})
    set_session_cookie(response, ctx, user.id)
    return response


@router.post("/api/password-check", response_model=PasswordCheckOutSchema)
def password_check(body: PasswordCheckSchema):
    """Live strength feedback for the signup form; same rules as signup itself."""
    reason = validate_password(body.password)
    return PasswordCheckOutSchema(valid=reason is None, message=reason)


@router.api_route("/logout", methods=["GET", "POST"], response_class=RedirectResponse)
def logout(request: Request, ctx: Annotated[AppContext, Depends(get_context)]):
    """Clear session cookie and redirect to login."""
    response = RedirectResponse(request.app.url_path_for("login_get"), status_code=303)
    # path must match the one used in set_cookie()
    response.delete_cookie(ctx.settings.session_cookie_name, path="/")
    return response

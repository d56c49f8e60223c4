"""Request gates: end-user session guard and the separate admin Basic-auth gate.

The two gates share no code. A session identifies a user; the admin gate only
checks the operator credentials from settings and yields no user identity.
"""
import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from learnhub.core.context import AppContext
from learnhub.core.errors import LoginRedirect, Unauthenticated
from learnhub.core.security import verify_session_token
from learnhub.db.session import get_db
from learnhub.services import users

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


# ---------- session guard ----------

def get_current_user_id_optional(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_context)],
    db: Annotated[Session, Depends(get_db)],
) -> int | None:
    """User id from a valid session cookie whose user still exists; else None."""
    settings = ctx.settings
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    user_id = verify_session_token(token, settings.secret_key, settings.session_cookie_max_age)
    if user_id is None:
        return None
    if users.get_user(db, user_id) is None:
        return None
    return user_id


def require_user_api(
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
) -> int:
    """API calls: 401 when not logged in."""
    if user_id is None:
        raise Unauthenticated()
    return user_id


def require_user_page(
    user_id: Annotated[int | None, Depends(get_current_user_id_optional)],
) -> int:
    """Page loads: redirect to the login page when not logged in."""
    if user_id is None:
        raise LoginRedirect()
    return user_id


# ---------- admin gate ----------

admin_basic = HTTPBasic(realm="Admin Area", auto_error=False)


def require_admin(
    ctx: Annotated[AppContext, Depends(get_context)],
    credentials: Annotated[HTTPBasicCredentials | None, Depends(admin_basic)],
) -> None:
    challenge = {"WWW-Authenticate": 'Basic realm="Admin Area"'}
    if credentials is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication required", headers=challenge)

    settings = ctx.settings
    user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), settings.admin_user.encode("utf-8"))
    pass_ok = secrets.compare_digest(credentials.password.encode("utf-8"), settings.admin_pass.encode("utf-8"))
    if not (user_ok and pass_ok):
        logger.warning("Rejected admin credentials")
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials", headers=challenge)

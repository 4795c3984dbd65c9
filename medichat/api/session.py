import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from medichat.api.pages import render_index
from medichat.core.errors import AnalysisValidationError
from medichat.session import UserSession, get_session

log = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/login")
def login(request: Request, user_id: str = Form("")):
    """Activates a user ID and reflects it into the URL (?userId=...)."""
    session = UserSession()
    try:
        session.login(user_id)
    except AnalysisValidationError as e:
        return render_index(request, session, error=str(e), status_code=400)
    log.info("session login user_id=%s", session.user_id)
    return RedirectResponse(url=session.home_url(), status_code=303)


@router.post("/logout")
def logout(session: UserSession = Depends(get_session)):
    session.logout()
    return RedirectResponse(url=session.home_url(), status_code=303)

from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from medichat.api.deps import get_store
from medichat.services.history import load_history
from medichat.services.render import render_record
from medichat.services.store import RecordStore
from medichat.session import UserSession, get_session

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["pages"])


def render_index(request: Request, session: UserSession, error: str | None = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"session": session, "error": error},
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
def index(request: Request, session: UserSession = Depends(get_session)):
    return render_index(request, session)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    session: UserSession = Depends(get_session),
    store: RecordStore = Depends(get_store),
):
    view = load_history(store, session.user_id)
    now = datetime.now(timezone.utc)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "session": session,
            "records": [render_record(r, now) for r in view.records],
            "warning": view.warning,
        },
    )

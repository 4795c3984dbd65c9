from fastapi import APIRouter, Depends

from medichat.api.deps import get_store
from medichat.schemas.analyze import HistoryResponse, SaveAnalysisRequest, SaveAnalysisResponse
from medichat.services.history import load_history
from medichat.services.store import RecordStore
from medichat.session import UserSession, get_session, require_active_session

router = APIRouter(prefix="/analyses", tags=["analyses"])


@router.post("", response_model=SaveAnalysisResponse, status_code=201)
def save_analysis(
    body: SaveAnalysisRequest,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    """Appends one result to the active user's log. Store faults surface as 503."""
    record_id = store.save(session.user_id, body.analysis_type, body.result)
    return SaveAnalysisResponse(id=record_id)


@router.get("", response_model=HistoryResponse)
def list_analyses(
    session: UserSession = Depends(get_session),
    store: RecordStore = Depends(get_store),
):
    """Newest first. Anonymous callers get an empty list; a failing store gives an empty list plus a warning."""
    view = load_history(store, session.user_id)
    return HistoryResponse(user_id=session.user_id, records=view.records, warning=view.warning)

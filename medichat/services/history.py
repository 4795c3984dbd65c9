"""Dashboard read path: a failing store degrades to an empty history with a visible warning."""
import logging
from dataclasses import dataclass, field

from medichat.core.errors import StoreError
from medichat.schemas.analyze import AnalysisRecord
from medichat.services.store import RecordStore

logger = logging.getLogger(__name__)

HISTORY_UNAVAILABLE = "History unavailable: failed to load analysis history. Please try refreshing the page."


@dataclass
class HistoryView:
    records: list[AnalysisRecord] = field(default_factory=list)
    warning: str | None = None


def load_history(store: RecordStore, user_id: str | None) -> HistoryView:
    if not user_id or not user_id.strip():
        return HistoryView()
    try:
        return HistoryView(records=store.list(user_id))
    except StoreError as e:
        logger.warning("History unavailable for user %s: %s", user_id, e)
        return HistoryView(records=[], warning=HISTORY_UNAVAILABLE)

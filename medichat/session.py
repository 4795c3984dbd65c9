"""
Active user identity for a page: anonymous or active.

The identifier is a free-text label carried in the ?userId= query parameter.
It is not a credential: anyone who types another user's ID sees that history.
"""
from collections.abc import Mapping
from urllib.parse import urlencode

from fastapi import Request

from medichat.core.errors import AnalysisValidationError

USER_ID_PARAM = "userId"
USER_ID_REQUIRED = "User ID is required to perform analysis."


class UserSession:
    def __init__(self, user_id: str | None = None):
        self.user_id: str | None = None
        if user_id is not None and user_id.strip():
            self.user_id = user_id.strip()

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "UserSession":
        return cls(params.get(USER_ID_PARAM))

    @property
    def is_active(self) -> bool:
        return self.user_id is not None

    @property
    def state(self) -> str:
        return "active" if self.is_active else "anonymous"

    # Forms and the dashboard link are only usable with an active ID.
    forms_enabled = is_active
    dashboard_enabled = is_active

    def login(self, raw_user_id: str | None) -> str:
        user_id = (raw_user_id or "").strip()
        if not user_id:
            raise AnalysisValidationError("Please enter a User ID to log in.")
        self.user_id = user_id
        return user_id

    def logout(self) -> None:
        self.user_id = None

    def query_params(self) -> dict[str, str]:
        return {USER_ID_PARAM: self.user_id} if self.user_id else {}

    def url_for(self, path: str) -> str:
        query = urlencode(self.query_params())
        return f"{path}?{query}" if query else path

    def home_url(self) -> str:
        return self.url_for("/")

    def dashboard_url(self) -> str:
        return self.url_for("/dashboard")

    def __repr__(self) -> str:
        return f"UserSession(state={self.state!r}, user_id={self.user_id!r})"


def get_session(request: Request) -> UserSession:
    """Hydrates the session from the request's query string."""
    return UserSession.from_query(request.query_params)


def require_active_session(request: Request) -> UserSession:
    session = get_session(request)
    if not session.is_active:
        raise AnalysisValidationError(USER_ID_REQUIRED)
    return session

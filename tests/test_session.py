"""Active user identity: transitions and URL reflection."""
import pytest

from medichat.core.errors import AnalysisValidationError
from medichat.session import UserSession


def test_anonymous_by_default():
    s = UserSession()
    assert s.state == "anonymous"
    assert not s.forms_enabled
    assert not s.dashboard_enabled
    assert s.query_params() == {}
    assert s.home_url() == "/"
    assert s.dashboard_url() == "/dashboard"


def test_login_trims_and_activates():
    s = UserSession()
    assert s.login("  alice  ") == "alice"
    assert s.state == "active"
    assert s.forms_enabled and s.dashboard_enabled
    assert s.home_url() == "/?userId=alice"
    assert s.dashboard_url() == "/dashboard?userId=alice"


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_login_rejects_blank(raw):
    s = UserSession("bob")
    with pytest.raises(AnalysisValidationError):
        s.login(raw)
    assert s.user_id == "bob"


def test_logout():
    s = UserSession("alice")
    s.logout()
    assert s.state == "anonymous"
    assert s.home_url() == "/"


def test_user_id_is_url_encoded():
    s = UserSession("a b&c")
    assert s.query_params() == {"userId": "a b&c"}
    assert s.dashboard_url() == "/dashboard?userId=a+b%26c"


def test_from_query():
    assert UserSession.from_query({"userId": " carol "}).user_id == "carol"
    assert UserSession.from_query({"userId": "  "}).state == "anonymous"
    assert UserSession.from_query({}).state == "anonymous"


def test_login_redirects_with_user_id(client):
    r = client.post("/session/login", data={"user_id": " dana "}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/?userId=dana"


def test_login_blank_shows_error(client):
    r = client.post("/session/login", data={"user_id": "  "})
    assert r.status_code == 400
    assert "Please enter a User ID to log in." in r.text


def test_logout_redirects_home(client):
    r = client.post("/session/logout?userId=dana", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_index_forms_disabled_when_anonymous(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Enter a User ID to use the analysis forms" in r.text
    assert "/dashboard?userId=" not in r.text


def test_index_reflects_active_user(client):
    r = client.get("/?userId=erin")
    assert r.status_code == 200
    assert "Logged in as <strong>erin</strong>" in r.text
    assert "/dashboard?userId=erin" in r.text
    assert "/analyze/symptoms?userId=erin" in r.text

"""Rate limiting: client IP key, proxy aware, and the 429 response on the analyze endpoints."""
from starlette.requests import Request

from medichat.core.config import settings
from medichat.core.rate_limit import _get_client_ip, analyze_limit


def _request(headers: dict[str, str], client=("10.0.0.5", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


def test_forwarded_for_first_hop_wins():
    assert _get_client_ip(_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})) == "203.0.113.7"


def test_falls_back_to_peer_address():
    assert _get_client_ip(_request({})) == "10.0.0.5"


def test_no_client_info():
    assert _get_client_ip(_request({}, client=None)) == "127.0.0.1"


def test_analyze_over_limit_returns_429(client, fake_openai, user_id, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
    fake_openai.payload = {"urgency": "Low"}
    headers = {"X-Forwarded-For": "198.51.100.23"}
    url = f"/analyze/symptoms?userId={user_id}"
    body = {"symptoms": "Mild sore throat since yesterday"}
    for _ in range(2):
        assert client.post(url, json=body, headers=headers).status_code == 200
    r = client.post(url, json=body, headers=headers)
    assert r.status_code == 429
    j = r.json()
    assert j["status_code"] == 429
    assert j["error"] == "Too many requests. Please wait a minute and try again."
    assert j["request_id"] == r.headers["X-Request-ID"]
    assert len(fake_openai.calls) == 2


def test_limit_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_per_minute", 7)
    assert analyze_limit() == "7/minute"

"""Busy flag per (user, form)."""
import pytest

from medichat.services.inflight import InFlightGuard, RequestInFlight


def test_second_hold_on_same_form_is_refused():
    guard = InFlightGuard()
    with guard.hold("alice", "symptomChecks"):
        assert guard.is_busy("alice", "symptomChecks")
        with pytest.raises(RequestInFlight):
            with guard.hold("alice", "symptomChecks"):
                pass
    assert not guard.is_busy("alice", "symptomChecks")


def test_other_forms_and_users_are_independent():
    guard = InFlightGuard()
    with guard.hold("alice", "symptomChecks"):
        with guard.hold("alice", "dietaryAnalyses"):
            pass
        with guard.hold("bob", "symptomChecks"):
            pass


def test_released_after_error():
    guard = InFlightGuard()
    with pytest.raises(ValueError):
        with guard.hold("alice", "imageAnalyses"):
            raise ValueError("boom")
    assert not guard.is_busy("alice", "imageAnalyses")

"""setup_logging: level from settings or an explicit argument."""
import logging

from medichat.core.config import settings
from medichat.logging import setup_logging


def test_level_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "log_level", "warning")
    try:
        setup_logging()
        assert logging.getLogger("medichat").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
    finally:
        setup_logging(logging.INFO)


def test_explicit_level_wins(monkeypatch):
    monkeypatch.setattr(settings, "log_level", "ERROR")
    setup_logging(logging.DEBUG)
    try:
        assert logging.getLogger("medichat").level == logging.DEBUG
    finally:
        setup_logging(logging.INFO)

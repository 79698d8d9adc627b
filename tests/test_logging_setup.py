"""
Tests for logging configuration.
"""

import logging

from surveyflow.logging_setup import configure_logging


def test_configures_console_handler(monkeypatch):
    """An unconfigured root logger gets one stdout handler."""
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    original_level = root.level
    try:
        configure_logging("DEBUG")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(original_level)


def test_no_op_when_already_configured(monkeypatch):
    """Existing handlers are left alone."""
    root = logging.getLogger()
    existing = logging.NullHandler()
    monkeypatch.setattr(root, "handlers", [existing])
    configure_logging()
    assert root.handlers == [existing]

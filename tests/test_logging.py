"""Tests for logging helpers"""
from storecart.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging


def test_get_logger_is_cached():
    assert get_logger("storecart.test") is get_logger("storecart.test")


def test_sanitize_id_escapes_newlines():
    assert sanitize_id_for_logging("rad-1\nFAKE ENTRY") == "rad-1\\nFAKE ENTRY"
    assert sanitize_id_for_logging(None) == "N/A"


def test_sanitize_string_truncates():
    assert sanitize_string_for_logging("x" * 60, max_length=10) == "x" * 10 + "..."

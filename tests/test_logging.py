"""Tests for logging helpers"""
import logging

from storefront.logging import get_logger, sanitize_id_for_logging


def test_sanitize_id_truncates():
    """Test long ids are cut to 8 chars"""
    assert sanitize_id_for_logging("prod-123456789") == "prod-123"


def test_sanitize_id_escapes_control_chars():
    """Test newlines cannot forge log lines"""
    assert sanitize_id_for_logging("a\nb") == "a\\nb"


def test_sanitize_empty_id():
    """Test empty ids log as N/A"""
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging("") == "N/A"


def test_get_logger_is_cached():
    """Test the same logger is returned per name"""
    logger = get_logger("storefront.test")
    assert logger is get_logger("storefront.test")
    assert isinstance(logger, logging.Logger)

"""Tests for environment-driven settings."""

import logging

from diskextract.Config import DEFAULT_BUFFER_SIZE, DEFAULT_MAX_WORKERS, load_settings
from diskextract.LogConfig import configure_logging


def test_defaults_when_environment_is_empty() -> None:
    settings = load_settings({})
    assert settings.buffer_size == DEFAULT_BUFFER_SIZE
    assert settings.max_workers == DEFAULT_MAX_WORKERS
    assert settings.temp_prefix == "diskextract"
    assert settings.log_level == "INFO"


def test_values_are_read_from_environment() -> None:
    settings = load_settings({
        "DISKEXTRACT_BUFFER_SIZE": "4096",
        "DISKEXTRACT_MAX_WORKERS": "2",
        "DISKEXTRACT_TEMP_PREFIX": "unpack-",
        "DISKEXTRACT_LOG_LEVEL": "debug",
    })
    assert settings.buffer_size == 4096
    assert settings.max_workers == 2
    assert settings.temp_prefix == "unpack-"
    assert settings.log_level == "DEBUG"


def test_invalid_numbers_fall_back_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="diskextract.Config"):
        settings = load_settings({"DISKEXTRACT_BUFFER_SIZE": "lots", "DISKEXTRACT_MAX_WORKERS": "0"})
    assert settings.buffer_size == DEFAULT_BUFFER_SIZE
    assert settings.max_workers == DEFAULT_MAX_WORKERS
    assert "DISKEXTRACT_BUFFER_SIZE" in caplog.text
    assert "DISKEXTRACT_MAX_WORKERS" in caplog.text


def test_configure_logging_falls_back_to_info() -> None:
    logger = configure_logging("chatty")
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    logger = configure_logging("debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1

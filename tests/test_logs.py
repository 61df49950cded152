import logging

import structlog

from app.logs import configure_logging, get_logger


def test_get_logger_does_not_configure_logging() -> None:
    structlog.reset_defaults()
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)
    try:
        get_logger("tests").debug("quiet")
        assert not structlog.is_configured()
        assert sentinel in root.handlers
    finally:
        root.removeHandler(sentinel)


def test_configure_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("DEBUG", json_output=True)
        configure_logging("WARNING", json_output=True)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert structlog.is_configured()
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        structlog.reset_defaults()

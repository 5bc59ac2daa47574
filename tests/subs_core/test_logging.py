import logging

from rich.logging import RichHandler

from optisubs.core.logging import configure_logging


def test_single_handler_and_level(monkeypatch):
    monkeypatch.setenv("SUBS_LOG_LEVEL", "debug")
    logger = configure_logging()
    configure_logging()
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert configure_logging("WARNING").level == logging.WARNING

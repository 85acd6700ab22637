import logging

import pytest

from robotviewer.logging_config import NOISY_LOGGERS, PACKAGE_LOGGER, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_loggers():
    package = logging.getLogger(PACKAGE_LOGGER)
    saved_level = package.level
    saved_handlers = list(package.handlers)
    saved_noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    for handler in list(package.handlers):
        package.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        package.addHandler(handler)
    package.setLevel(saved_level)
    for name, level in saved_noisy.items():
        logging.getLogger(name).setLevel(level)


def test_level_names_are_resolved():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" WARNING ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("loud") == logging.INFO


def test_repeated_setup_replaces_handlers():
    setup_logging("INFO")
    logger = setup_logging("WARNING")

    assert logger.name == PACKAGE_LOGGER
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.WARNING


def test_log_file_receives_thread_name(tmp_path):
    log_file = tmp_path / "viewer.log"
    logger = setup_logging("INFO", log_file=str(log_file))

    logging.getLogger("robotviewer.controller.loader").info("robot mounted")
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "robot mounted" in text
    assert "[MainThread]" in text


def test_import_libraries_are_quieted_unless_debugging():
    setup_logging("INFO")
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING

    setup_logging("DEBUG")
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG

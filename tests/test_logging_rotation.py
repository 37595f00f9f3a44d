import logging
from logging.handlers import RotatingFileHandler

import pytest

from api_client import logging_setup
from api_client.infrastructure import log_utils

LOGGER_TAG = "TEST"


@pytest.fixture
def temp_logger(tmp_path):
    log_path = tmp_path / "apiclient.log"
    logging_setup.configure_logging(log_path=log_path, force=True)
    adapter = logging_setup.get_logger(LOGGER_TAG)
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    try:
        yield adapter, base_logger, log_path
    finally:
        logging_setup.reset_logging()


def test_rotating_handler_defaults(temp_logger):
    adapter, base_logger, log_path = temp_logger
    rotating_handlers = [h for h in base_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert rotating_handlers, "Expected at least one rotating handler"
    handler = rotating_handlers[0]
    assert handler.maxBytes == logging_setup.DEFAULT_MAX_BYTES
    assert handler.backupCount == logging_setup.DEFAULT_BACKUP_COUNT
    assert handler.baseFilename == str(log_path)


def test_rotating_handler_rollover(tmp_path):
    log_path = tmp_path / "apiclient.log"
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    logging_setup.configure_logging(
        log_path=log_path,
        force=True,
        max_bytes=512,
        backup_count=2,
    )
    adapter = logging_setup.get_logger(LOGGER_TAG)
    try:
        payload = "x" * 256
        for _ in range(10):
            adapter.info(payload)
        for handler in base_logger.handlers:
            handler.flush()
        rolled = log_path.with_name("apiclient.log.1")
        assert log_path.exists()
        assert rolled.exists(), "Expected first rotated log file to exist"
    finally:
        logging_setup.reset_logging()


def test_log_message_tags_records(temp_logger):
    _, base_logger, log_path = temp_logger

    log_utils.log_message("credential store ready", "INFO", tag="STORE")
    log_utils.log_message("unknown level test", "WARN", tag="CONF")
    for handler in base_logger.handlers:
        handler.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "[INFO] [STORE] credential store ready" in text
    assert "[WARNING] [CONF] unknown level test" in text


@pytest.mark.parametrize(
    "module_name, tag",
    [
        ("api_client.infrastructure.config_locator", "CONF"),
        ("api_client.infrastructure.credential_store", "STORE"),
        ("api_client.infrastructure.xml_attribute_document", "STORE"),
        ("api_client.application.credentials", "CRED"),
        ("something.else", "GEN"),
    ],
)
def test_tag_for_module(module_name, tag):
    assert logging_setup.get_tag_for_module(module_name) == tag


def test_repeat_configure_keeps_handlers_and_adjusts_level(temp_logger):
    _, base_logger, _ = temp_logger
    handlers_before = list(base_logger.handlers)

    logging_setup.configure_logging(level="error")

    assert base_logger.handlers == handlers_before
    assert base_logger.level == logging.ERROR


def test_get_logger_defaults_to_general_tag(temp_logger):
    _, base_logger, log_path = temp_logger

    logging_setup.get_logger().info("untagged record")
    for handler in base_logger.handlers:
        handler.flush()

    assert "[INFO] [GEN] untagged record" in log_path.read_text(encoding="utf-8")

"""
Unit Tests: logging setup
"""

import json
import logging

import pytest

from mdm_management.log import JSONFormatter, RedactingFilter, configure_logging


def make_record(msg, *args):
    return logging.LogRecord("mdm_management.test", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.unit
class TestRedactingFilter:

    def test_masks_secret_in_args(self):
        record = make_record("signing with %s", "AS_secret_value")
        RedactingFilter(["AS_secret_value"]).filter(record)
        assert record.getMessage() == "signing with ***"

    def test_leaves_clean_messages_alone(self):
        record = make_record("fetched %d devices", 3)
        assert RedactingFilter(["AS_secret_value"]).filter(record)
        assert record.args == (3,)

    def test_ignores_empty_secrets(self):
        record = make_record("nothing to hide")
        RedactingFilter(["", None]).filter(record)
        assert record.getMessage() == "nothing to hide"


@pytest.mark.unit
def test_json_formatter():
    line = JSONFormatter().format(make_record("hello %s", "world"))
    data = json.loads(line)
    assert data["message"] == "hello world"
    assert data["level"] == "INFO"


@pytest.mark.unit
def test_configure_logging_replaces_handlers():
    configure_logging("DEBUG", "text")
    logger = configure_logging("WARNING", "json", secrets=["x"])
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)

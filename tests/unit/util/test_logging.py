"""Unit tests for process logging setup."""

import logging

import pytest

from crux.config import Settings
from crux.util.logging import log_level, setup_logging


@pytest.mark.parametrize(
    "environment,debug,expected",
    [
        ("development", False, logging.INFO),
        ("test", False, logging.INFO),
        ("production", False, logging.WARNING),
        ("staging", False, logging.WARNING),
        ("production", True, logging.DEBUG),
    ],
)
def test_log_level(environment, debug, expected):
    assert log_level(Settings(environment=environment, debug=debug)) == expected


def test_setup_quiets_http_loggers():
    setup_logging(Settings(environment="development"))

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("crux").level == logging.INFO

import io
import logging

import pytest

from statement_recon import logging_setup
from statement_recon.logging_setup import configure_logging, get_logger, resolve_level


@pytest.fixture
def pkg_logger(monkeypatch):
    pkg = logging.getLogger("statement_recon")
    saved = (list(pkg.handlers), pkg.level, pkg.propagate)
    for h in saved[0]:
        pkg.removeHandler(h)
    monkeypatch.setattr(logging_setup, "_handler", None)
    yield pkg
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
    for h in saved[0]:
        pkg.addHandler(h)
    pkg.setLevel(saved[1])
    pkg.propagate = saved[2]


@pytest.mark.parametrize(
    "level, expected",
    [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" 15 ", 15),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(level, expected):
    assert resolve_level(level) == expected


def test_resolve_level_reads_env(monkeypatch):
    monkeypatch.setenv("STATEMENT_RECON_LOG_LEVEL", "ERROR")
    assert resolve_level(None) == logging.ERROR
    monkeypatch.delenv("STATEMENT_RECON_LOG_LEVEL")
    assert resolve_level(None) == logging.INFO


def test_unconfigured_package_logger_is_silent(pkg_logger):
    log = get_logger("statement_recon.session")
    assert log.name == "statement_recon.session"
    assert any(isinstance(h, logging.NullHandler) for h in pkg_logger.handlers)


def test_short_names_resolve_inside_package(pkg_logger):
    assert get_logger("funders") is logging.getLogger("statement_recon.funders")
    assert get_logger("statement_recon") is pkg_logger


def test_configure_once_then_force_replaces(pkg_logger):
    first = io.StringIO()
    handler = configure_logging("DEBUG", stream=first)
    assert configure_logging("ERROR", stream=io.StringIO()) is handler

    get_logger("reconcile").debug("override cleared")
    assert "DEBUG" in first.getvalue()
    assert "statement_recon.reconcile: override cleared" in first.getvalue()

    second = io.StringIO()
    replaced = configure_logging("WARNING", stream=second, force=True)
    assert replaced is not handler
    assert pkg_logger.handlers == [replaced]
    get_logger("reconcile").info("hidden")
    assert second.getvalue() == ""
    assert pkg_logger.propagate is False

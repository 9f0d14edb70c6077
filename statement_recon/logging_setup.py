"""Logging for ``statement_recon``.

Library modules log through children of the ``statement_recon`` logger and
never attach handlers; until a host calls :func:`configure_logging` the package
logger carries only a ``NullHandler`` so reviews run silently inside other
applications. The CLI configures it once per process, taking the level from
``--log-level`` or ``STATEMENT_RECON_LOG_LEVEL``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_recon"
LEVEL_ENV = "STATEMENT_RECON_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Map ``level`` (int, digits or a level name) to a ``logging`` level.

    ``None`` defers to ``STATEMENT_RECON_LOG_LEVEL``; unknown names mean INFO.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    stream: IO[str] | None = None,
    fmt: str = DEFAULT_FORMAT,
    force: bool = False,
) -> logging.Handler:
    """Attach the package's single stream handler and return it.

    Later calls are no-ops returning the existing handler unless ``force`` is
    set, in which case the handler is replaced.
    """

    global _handler
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        if not force:
            return _handler
        pkg.removeHandler(_handler)

    for h in list(pkg.handlers):
        if isinstance(h, logging.NullHandler):
            pkg.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt))
    pkg.setLevel(resolved)
    pkg.addHandler(handler)
    pkg.propagate = False
    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` inside the package tree.

    ``"session"`` and ``"statement_recon.session"`` name the same logger.
    """

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return pkg.getChild(name)

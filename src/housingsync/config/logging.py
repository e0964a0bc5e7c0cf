"""Logging setup for the review CLI."""

from __future__ import annotations

import logging

# chatty at INFO: one line per HTTP request, one per migration context
_NOISY_LOGGERS = ("httpx", "alembic.runtime.migration")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger with a terse format for terminal output.

    Library loggers listed in ``_NOISY_LOGGERS`` stay at WARNING unless ``level``
    asks for DEBUG. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

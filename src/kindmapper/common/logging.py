"""Shared logging helpers for kindmapper."""

from __future__ import annotations

import logging

NOISY_LOGGERS = ("sqlalchemy.engine", "google.auth", "urllib3")


def configure_logging(
    *, level: int = logging.INFO, force: bool = False, sql_echo: bool = False
) -> None:
    """Initialise the root logger for CLI use.

    Client library loggers are held at WARNING so INFO output stays terse;
    ``sql_echo`` lets the SQLAlchemy engine log its statements. Pass
    ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

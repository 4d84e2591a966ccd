"""Mini README: Log set-up shared by the ledger, the store and the exports.

Structure:
    * LOG_FORMAT / DATE_FORMAT - layout of every record.
    * QUIET_LOGGERS - third-party loggers held at WARNING.
    * configure_root_logger - install the ledger handler, or retune its level.
    * get_logger - module logger that triggers the one-off set-up.

Records read ``[time] [LEVEL] furnledger.store.dashboard_store - message``.
Per-request lines from ``httpx`` are held back to warnings. Levels may be
given as names (``FURNLEDGER_LOG_LEVEL``) or numbers.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("httpx", "httpcore")

_HANDLER: Optional[logging.Handler] = None


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Attach the ledger handler on first use; later calls only change the level."""

    global _HANDLER
    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level(level))
    if _HANDLER is not None:
        return

    _HANDLER = logging.StreamHandler()
    _HANDLER.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(_HANDLER)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the logger for ``name``, setting up the ledger handler if needed."""

    if _HANDLER is None:
        configure_root_logger()
    return logging.getLogger(name)

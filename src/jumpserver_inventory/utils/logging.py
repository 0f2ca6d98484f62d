"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional

_LOGGING_CONFIGURED = False

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def get_logger(name: Optional[str] = None, *, verbose: bool = False) -> logging.Logger:
    """Return a logger, configuring the root handler on first use.

    ``verbose`` lowers the root level to DEBUG so exchange traffic becomes visible.
    """
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format=LOG_FORMAT,
        )
        # paramiko is chatty at INFO (banner, auth method negotiation)
        logging.getLogger("paramiko").setLevel(logging.WARNING)
        _LOGGING_CONFIGURED = True
    elif verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    return logging.getLogger(name)

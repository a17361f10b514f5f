"""Logging setup shared by the app factory and scripts.

Usage:
    from .common.logging import configure_logging

    configure_logging("INFO")
    log = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", *, fmt: str = DEFAULT_FORMAT, force: bool = False) -> None:
    """Configure root logging once; ``force`` replaces existing handlers."""
    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(_to_level(level))
        return
    logging.basicConfig(level=_to_level(level), format=fmt, force=force)


def _to_level(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO

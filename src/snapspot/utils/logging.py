from __future__ import annotations

import logging

from rich.logging import RichHandler

PACKAGE_LOGGER = "snapspot"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or a child of it for *name*."""

    if not name or name == PACKAGE_LOGGER:
        return logging.getLogger(PACKAGE_LOGGER)
    if name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def configure_logging(
    level: int | str = logging.INFO,
    *,
    rich_output: bool = True,
    handler_name: str = "snapspot-console",
) -> logging.Logger:
    """Attach a console handler to the package logger once.

    Only entry points call this; library modules just log through their
    module-level loggers.
    """

    logger = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        if getattr(handler, "name", None) == handler_name:
            handler.setLevel(level)
            return logger
    if rich_output:
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler.setLevel(level)
    handler.name = handler_name
    logger.addHandler(handler)
    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging", "get_logger"]

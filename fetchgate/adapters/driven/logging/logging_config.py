"""Console logging setup for applications embedding fetchgate."""

import logging

__all__ = ["configure_logs", "LIBRARY_LOGGER"]

LIBRARY_LOGGER = "fetchgate"

_HANDLER_NAME = "fetchgate-console"


def configure_logs(level: int = logging.INFO, library_level: int = logging.DEBUG) -> logging.Handler:
    """Configure console logging for an application using fetchgate.

    Sets up:
    - Root logger at ``level``.
    - Transport loggers (aiohttp, asyncio) at WARNING level.
    - fetchgate loggers at ``library_level``; pass WARNING to silence the
      per-request and per-tick debug lines.
    - One console handler on the root logger, with timestamp, level,
      module and line number.

    Calling it again only updates the levels; the console handler is
    installed once.

    Returns:
        The console handler.
    """
    root = logging.getLogger()
    root.setLevel(level)

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        log_format = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
        date_format = "%d/%m/%y %H:%M:%S"
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(log_format, date_format))
        root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(LIBRARY_LOGGER).setLevel(library_level)
    return handler

"""
Logging setup.

All application loggers live under the ``splitapp`` namespace.
"""

import logging

from splitapp.app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Attach a stream handler to the ``splitapp`` logger once."""
    root = logging.getLogger("splitapp")
    root.setLevel(settings.log_level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

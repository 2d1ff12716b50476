from __future__ import annotations

import logging

from coverdesk.core.config import Settings
from coverdesk.core.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {settings.log_level}")

    root = logging.getLogger("coverdesk")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

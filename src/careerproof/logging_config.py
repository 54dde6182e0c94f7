from __future__ import annotations

import logging

from careerproof.config import get_settings

_LOG_CONFIGURED = False

# Third-party loggers that are chatty at INFO during a compilation run.
_QUIET_LOGGERS = ("httpx", "openai", "urllib3")


def configure_logging(level: str | None = None) -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _LOG_CONFIGURED = True

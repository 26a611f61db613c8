from __future__ import annotations

import logging

AUDIT_LOGGER_NAME = "app.security.audit"


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set levels for our package loggers.

    Notes:
    - Uvicorn already configures handlers; this only sets levels for `app.*`.
    - Set `APP_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    - Security events (rejected overrides, denied checks) go to
      `app.security.audit` and are kept at WARNING even when the app is quieter.
    """

    normalized = level.upper()
    logging.getLogger("app").setLevel(normalized)
    logging.getLogger("app").propagate = True

    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    if audit.getEffectiveLevel() > logging.WARNING:
        audit.setLevel(logging.WARNING)

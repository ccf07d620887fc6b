"""Logging setup — called once at process start by the CLI or host app."""

from __future__ import annotations

import logging

from codexia.config.models import RuntimeSettings

#: Root logger of the package; every module logs under it.
PACKAGE_LOGGER = "codexia"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: RuntimeSettings) -> logging.Logger:
    """Attach the debug file handler to the ``codexia`` logger.

    With ``debug_log`` off only a ``NullHandler`` is installed, so nothing
    is written.  Calling it again replaces the handler installed by the
    previous call.
    """
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(pkg_logger.handlers):
        if getattr(existing, "_codexia_managed", False):
            pkg_logger.removeHandler(existing)
            existing.close()

    handler: logging.Handler
    if settings.debug_log:
        settings.log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(settings.log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FORMAT))
        pkg_logger.setLevel(logging.DEBUG)
    else:
        handler = logging.NullHandler()
    handler._codexia_managed = True  # type: ignore[attr-defined]
    pkg_logger.addHandler(handler)
    return pkg_logger

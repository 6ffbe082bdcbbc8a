"""Process-wide logging setup."""

import logging

from .settings import AppSettings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def config_configure_logging(settings: AppSettings) -> None:
    """Configure root logging from runtime settings.

    Args:
        settings: Validated runtime settings.
    """

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("folio_returns").setLevel(settings.log_level)


__all__ = ["LOG_FORMAT", "config_configure_logging"]

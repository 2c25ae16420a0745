import logging
import sys

from pulse.core.config import Settings


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the root handler once and scope verbosity to the ``pulse`` package."""
    root = logging.getLogger()
    root.setLevel(logging.WARNING)

    if not any(getattr(handler, "_pulse_handler", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(settings.log_format))
        handler._pulse_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    package_logger = logging.getLogger("pulse")
    package_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    package_logger.info("Logging is set up (level=%s)", settings.log_level.upper())
    return package_logger

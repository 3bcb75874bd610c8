import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging(level: str | None = None) -> None:
    logger = logging.getLogger()
    logger.setLevel(level or settings.log_level)

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (avoid filling SD card)
    if settings.log_file:
        fh = RotatingFileHandler(
            settings.log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy transport logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("paho").setLevel(logging.WARNING)


class AccessoryLogger(logging.LoggerAdapter):
    """Prefixes messages with the accessory name; ``debug`` messages are
    promoted to INFO when the accessory has ``debug`` enabled."""

    def __init__(self, logger: logging.Logger, name: str, verbose: bool = False) -> None:
        super().__init__(logger, {"accessory": name})
        self.verbose = verbose

    def process(self, msg, kwargs):
        return f"[{self.extra['accessory']}] {msg}", kwargs

    def debug(self, msg, *args, **kwargs) -> None:
        if self.verbose:
            self.info(msg, *args, **kwargs)
        else:
            super().debug(msg, *args, **kwargs)

# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


def _env_level() -> int:
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _build_handlers() -> List[logging.Handler]:
    # Results go to stdout, so the console handler uses stderr unless told otherwise
    stream = sys.stdout if _env_flag("LOG_TO_STDOUT", False) else sys.stderr
    handlers: List[logging.Handler] = [logging.StreamHandler(stream)]

    if _env_flag("LOG_TO_FILE", True):
        log_file = os.getenv("LOG_FILE", "/data/storefront.log")
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    log_file,
                    maxBytes=int(os.getenv("LOG_MAX_BYTES", str(1024 * 1024))),
                    backupCount=int(os.getenv("LOG_BACKUPS", "3")),
                )
            )
        except OSError as e:
            print(f"storefront: file logging disabled ({e})", file=sys.stderr)

    return handlers


def setup_logging():
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(_env_level())

    # Leave handlers installed by a host application (or pytest) alone
    if not root.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in _build_handlers():
            handler.setFormatter(formatter)
            root.addHandler(handler)

    _configured = True


def set_level(level: str) -> None:
    """Override LOG_LEVEL at runtime, e.g. from a --verbose flag."""
    setup_logging()
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)

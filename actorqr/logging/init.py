from __future__ import annotations

import logging
import re
import sys

"""Logging initialization for the ``actorqr`` logger namespace.

Output lines look like ``LABEL message`` where LABEL is one of
INFO|WARN|ERROR|SUMMARY (DEBUG only with --debug). Module loggers obtained via
``logging.getLogger(__name__)`` propagate into the single stdout handler
installed here.

Registered secrets (the QR passphrase) and anything shaped like an encrypted
``v1.`` token are masked before a line is emitted.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "SecretMaskFilter",
    "setup_logging",
    "get_logger",
    "enable_debug",
    "register_secret",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "actorqr"
SUMMARY_LEVEL = 25  # between INFO and WARNING

MASK = "***"
_TOKEN_PATTERN = re.compile(r"\bv1\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; WARNING is shortened to WARN."""

    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


class SecretMaskFilter(logging.Filter):
    """Rewrites the rendered message with secrets and tokens replaced by ``***``."""

    def __init__(self) -> None:
        super().__init__()
        self.secrets: set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _TOKEN_PATTERN.sub(MASK, message)
        for secret in self.secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _mask_filter(logger: logging.Logger) -> SecretMaskFilter | None:
    for handler in logger.handlers:
        for f in handler.filters:
            if isinstance(f, SecretMaskFilter):
                return f
    return None


def setup_logging() -> logging.Logger:
    """Install the stdout handler on the ``actorqr`` logger; later calls return the same logger."""
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    handler.addFilter(SecretMaskFilter())
    logger.addHandler(handler)
    # root handlers would print every line twice
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def enable_debug() -> None:
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


def register_secret(value: str | None) -> None:
    """Mask ``value`` in every line emitted from now on."""
    if not value:
        return
    mask = _mask_filter(get_logger())
    if mask is not None:
        mask.secrets.add(value)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() rebuilds it (tests)."""
    global _logger
    _logger = None

"""
Logging setup for the deploy CLI

Records from every logger go to stdout and, optionally, to a file. Both
handlers carry a SecretFilter: once a private key is registered with
register_secret(), any message containing it is masked before output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Set

# Chatty below WARNING and never useful in a deployment report
NOISY_LOGGERS = ("aiohttp", "urllib3", "web3")

REDACTED = "<redacted>"


class SecretFilter(logging.Filter):
    """Mask registered secrets in formatted messages"""

    def __init__(self):
        super().__init__()
        self._secrets: Set[str] = set()

    def add(self, secret: str) -> None:
        if secret:
            self._secrets.add(secret)

    def clear(self) -> None:
        self._secrets.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        # Longest first so "0x<key>" is masked whole
        for secret in sorted(self._secrets, key=len, reverse=True):
            masked = masked.replace(secret, REDACTED)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


SECRET_FILTER = SecretFilter()


def register_secret(secret: Optional[str]) -> None:
    """Mask ``secret`` (with or without 0x) in all further log output"""
    if not secret:
        return
    secret = secret.strip()
    bare = secret[2:] if secret[:2].lower() == "0x" else secret
    SECRET_FILTER.add(bare)
    SECRET_FILTER.add("0x" + bare)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure root logging for the deploy CLI"""

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    level = getattr(logging, log_level.upper())
    logger = logging.getLogger()
    logger.setLevel(level)

    # Drop handlers left over from a previous setup
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SECRET_FILTER)
        logger.addHandler(handler)

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger

# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Levels, handlers, rotation and format live in  etc/logging.conf.  This module
resolves the log-file path, patches it into the config text and applies it
via the standard-library fileConfig loader.

Import the shared logger, or a component child of it:
    from core.logger import logger
    from core.logger import get_logger;  log = get_logger("sessions")

Secrets (passwords, private keys, passphrases, ciphertext) must never be
passed to any of these loggers.
"""

import configparser
import logging
import logging.config
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
# project root: backend/core/logger.py  →  ../../  →  sshvault/
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOG_DIR      = Path(os.environ.get("SSHVAULT_LOG_DIR", _PROJECT_ROOT / "log"))
_LOG_FILE     = _LOG_DIR / "app.log"
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"

_ROOT_NAME = "sshvault"


def _configure() -> None:
    # The rotating handler opens the file immediately, so the directory
    # has to exist first.
    _LOG_DIR.mkdir(parents=True, exist_ok=True)

    # logging.conf uses %(log_file)s as a placeholder for the real path.
    raw = _LOGGING_CONF.read_text(encoding="utf-8")
    raw = raw.replace("%(log_file)s", str(_LOG_FILE).replace("\\", "/"))

    # RawConfigParser: the format strings contain %(asctime)s etc. which
    # ConfigParser would try to interpolate and fail on.
    parser = configparser.RawConfigParser()
    parser.read_string(raw)
    logging.config.fileConfig(parser, disable_existing_loggers=False)


_configure()

# ---------------------------------------------------------------------------
# Module-level handles
# ---------------------------------------------------------------------------
logger = logging.getLogger(_ROOT_NAME)


def get_logger(component: str) -> logging.Logger:
    """Child of the application logger, e.g. ``sshvault.sessions``."""
    return logger.getChild(component)

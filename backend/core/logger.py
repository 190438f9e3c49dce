# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Levels, handlers and formats live in etc/logging.conf.  The file carries a
``%(log_file)s`` placeholder which is replaced with the resolved path of
log/app.log before the text is handed to ``logging.config.fileConfig``.

Import the ready-made logger anywhere:
    from core.logger import logger

Conventions
-----------
* auth failures (bad token, wrong role, wrong code) → WARNING
* durable state changes (registration, 2FA enabled) → INFO
* best-effort side effects that failed (ID card, mail) → ``logger.exception``
"""

import configparser
import logging
import logging.config
from pathlib import Path

# backend/core/logger.py  →  ../../  →  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOG_DIR = _PROJECT_ROOT / "log"
_LOG_FILE = _LOG_DIR / "app.log"
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"


def _configure() -> None:
    # The rotating file handler opens its file immediately
    _LOG_DIR.mkdir(exist_ok=True)

    raw = _LOGGING_CONF.read_text(encoding="utf-8").replace("%(log_file)s", _LOG_FILE.as_posix())

    # RawConfigParser: the format strings contain %(asctime)s etc. which the
    # interpolating parser would choke on.
    parser = configparser.RawConfigParser()
    parser.read_string(raw)
    logging.config.fileConfig(parser, disable_existing_loggers=False)


_configure()

logger = logging.getLogger("aaghaaz")

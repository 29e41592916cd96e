"""
Logging setup for LyricWidget.
Entry points call setup_logging() once; modules only ever call get_logger().
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.argv[0]).parent
else:
    ROOT_DIR = Path(__file__).parent

LOGS_DIR = ROOT_DIR / "logs"

CONSOLE_FORMAT = '(%(filename)s:%(lineno)d) %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# Chatty libraries and the level they are held at
QUIET_LOGGERS = {
    'urllib3': logging.WARNING,
    'spotipy': logging.WARNING,
    'hypercorn.error': logging.ERROR,
    'hypercorn.access': logging.ERROR,
}

_configured = False

def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)

def setup_logging(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    console: bool = True,
    log_file: Optional[str] = None,
    log_providers: bool = True,
    max_bytes: int = 1 * 1024 * 1024,
    backup_count: int = 10
) -> None:
    """
    Configure the root logger: a short-format stdout handler and a rotating
    file under logs/. Calling it again is a no-op.

    Args:
        console_level: Threshold for stdout
        file_level: Threshold for the log file
        console: Attach the stdout handler at all
        log_file: File name inside logs/ (default: app.log)
        log_providers: When False, the providers package only logs warnings
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept next to it
    """
    global _configured
    if _configured:
        return

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_path = LOGS_DIR / (log_file or "app.log")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers = []

    if console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(_level(console_level))
        stream.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(stream)

    rotating = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    rotating.setLevel(_level(file_level))
    rotating.setFormatter(logging.Formatter(FILE_FORMAT))
    root.addHandler(rotating)

    logging.getLogger('providers').setLevel(_level(console_level) if log_providers else logging.WARNING)
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    # Lyrics are full of non-ASCII text; cp1252 consoles would choke on it
    if sys.platform.startswith('win'):
        sys.stdout.reconfigure(encoding='utf-8')
        sys.stderr.reconfigure(encoding='utf-8')

    _configured = True
    root.info(f"Logging ready - console {console_level if console else 'off'}, file {file_level} -> {log_path}")

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

"""
Sprintly logging setup.

Everything logs under the "sprintly" logger:
- <logs>/system.log: workflow and persistence events (INFO+)
- <logs>/error.log: failures with stack traces (ERROR+)
- <logs>/corruption_dump.log: raw contents of slots that failed to parse
- stderr: warnings only, unless the CLI runs with --verbose

The log directory comes from paths.get_logs_dir() (SPRINTLY_LOGS_DIR).
"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from sprintly.paths import get_logs_dir

ROOT_LOGGER = "sprintly"

MAX_BYTES = 5 * 1024 * 1024  # 5MB
BACKUP_COUNT = 3

FILE_FORMAT = logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
CONSOLE_FORMAT = logging.Formatter("[%(levelname)s] %(message)s")

# raw slot dumps are truncated to keep the dump file readable
MAX_DUMP_CHARS = 2000


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(FILE_FORMAT)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    console_level: int = logging.WARNING,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach the Sprintly handlers.

    Args:
        log_level: level written to system.log
        console_level: level echoed to stderr (DEBUG with `sprintly -v`)
        logs_dir: override for the log directory

    Returns:
        The "sprintly" logger
    """
    target_dir = logs_dir or get_logs_dir()
    target_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)

    # the CLI and the web server may both call this in one process
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_file_handler(target_dir / "system.log", log_level))
    logger.addHandler(_file_handler(target_dir / "error.log", logging.ERROR))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(CONSOLE_FORMAT)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child of the "sprintly" logger, e.g. get_logger("storage")."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


def log_corruption(source: str, raw_text: str, error_msg: str, logs_dir: Optional[Path] = None) -> Path:
    """
    Keep a copy of an unreadable slot before it gets overwritten by defaults.

    Returns the dump file path.
    """
    target_dir = logs_dir or get_logs_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    dump_path = target_dir / "corruption_dump.log"

    excerpt = raw_text if len(raw_text) <= MAX_DUMP_CHARS else raw_text[:MAX_DUMP_CHARS] + "..."
    with open(dump_path, "a", encoding="utf-8") as f:
        f.write(f"[{datetime.now().isoformat()}] {source}: {error_msg}\n")
        f.write(f"  Raw: {excerpt}\n")
        f.write("-" * 50 + "\n")

    get_logger("storage").warning(f"Corrupt data in {source} copied to {dump_path}")
    return dump_path

"""
Logging for rfcache.

Every module logs through `get_logger(__name__)`. Records go to the console
through Rich; commands that change the database on disk (`rfcache migrate`)
also append one JSON object per record to `<command>.log` in the working
directory, so schema upgrades leave an audit trail.
"""

import logging
import sys
import json
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

AUDITED_COMMANDS = ("migrate",)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record, tagged with the CLI command that produced it.
    """
    def __init__(self, command: str) -> None:
        super().__init__()
        self.command = command

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "command":   self.command,
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _audited_command(argv: list[str]) -> Optional[str]:
    if len(argv) > 1 and argv[1] in AUDITED_COMMANDS:
        return argv[1]
    return None


def _console_handler(level: int | str) -> logging.Handler:
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setLevel(level)
    return handler


def _audit_handler(command: str, level: int | str) -> logging.Handler:
    handler = logging.FileHandler(Path.cwd() / f"{command}.log", mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter(command))
    return handler


def get_logger(name: str, level: int | str = logging.INFO) -> logging.Logger:
    """
    Return the logger for `name`, attaching handlers on first use.

    Parameters
    ----------
    name
        Logger name (typically __name__).
    level
        Log level (int or string), defaults to INFO.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    logger.addHandler(_console_handler(level))
    command = _audited_command(sys.argv)
    if command is not None:
        logger.addHandler(_audit_handler(command, level))
    return logger

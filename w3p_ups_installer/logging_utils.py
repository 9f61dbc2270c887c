from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = "/var/log/w3p-ups-installer.log"

_COLORS = {
    logging.DEBUG: "\033[0;36m",
    logging.INFO: "\033[0;32m",
    logging.WARNING: "\033[1;33m",
    logging.ERROR: "\033[0;31m",
    logging.CRITICAL: "\033[0;31m",
}
_RESET = "\033[0m"
_TAGS = {logging.WARNING: "WARN", logging.CRITICAL: "ERROR"}


class ConsoleFormatter(logging.Formatter):
    """One line per record, tagged ``[INFO]``/``[WARN]``/``[ERROR]``.

    Tracebacks never reach the console; they are written to the log file.
    """

    def __init__(self, *, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        tag = _TAGS.get(record.levelno, record.levelname)
        if self.color:
            tag = f"{_COLORS.get(record.levelno, '')}[{tag}]{_RESET}"
        else:
            tag = f"[{tag}]"
        return f"{tag} {record.getMessage()}"


def configure_logging(
    log_path: Optional[str] = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    Console output is the operator-facing stream (INFO and above, colour
    tagged when attached to a terminal). When ``log_path`` is given every
    decision is also recorded there at DEBUG.

    Notes:
    - Writing to /var/log may not be permitted. We still *attempt* to write
      there first; if it fails, we fall back to a local file in the working
      directory.
    - When neither is writable the run continues with console output only.

    Returns the actual file path being used (None when file logging is off).
    """

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_w3p_configured", False):
        return getattr(logger, "_w3p_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    if log_path:
        fmt = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler: Optional[logging.Handler] = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / "w3p-ups-installer.log")
            try:
                file_handler = logging.FileHandler(fallback)
                chosen_path = fallback
            except OSError:
                file_handler = None
        if file_handler is not None:
            file_handler.setFormatter(fmt)
            file_handler.setLevel(logging.DEBUG)
            handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(ConsoleFormatter(color=sys.stdout.isatty()))
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_w3p_configured", True)
    setattr(logger, "_w3p_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    if log_path and chosen_path is None:
        logging.getLogger(__name__).warning("Could not open a log file, logging to console only")
    return chosen_path

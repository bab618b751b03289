"""
Logging configuration for gpgpipe.

``setup_logging`` installs a file handler (``gpgpipe_data/gpgpipe.log`` by
default) and a quiet stderr console handler on the root logger. Calling it
again replaces only the handlers it installed earlier.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import IO, Optional

LOG_PATH = Path("gpgpipe_data") / "gpgpipe.log"
LOGGER_NAME = "gpgpipe"
FSYNC_ENV = "GPGPIPE_LOG_FSYNC"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"

_PASSPHRASE_RE = re.compile(r"(--passphrase\s+)('[^']*'|\"[^\"]*\"|\S+)")


class _FsyncFileHandler(logging.FileHandler):
    """File handler that fsyncs after each flush when enabled."""

    def __init__(self, filename, encoding="utf-8", *, fsync=False):
        super().__init__(filename, mode="a", encoding=encoding)
        self._fsync = bool(fsync)

    def flush(self):
        super().flush()
        if self._fsync and self.stream is not None:
            os.fsync(self.stream.fileno())


class PassphraseFilter(logging.Filter):
    """Replaces the value following ``--passphrase`` in rendered messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "--passphrase" in message:
            record.msg = _PASSPHRASE_RE.sub(r"\1******", message)
            record.args = None
        return True


def _env_flag(name: str) -> bool:
    v = os.environ.get(name)
    if v is None:
        return False
    return v not in ("0", "false", "False", "no", "NO", "")


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _install(root: logging.Logger, handler: logging.Handler, level: str, formatter: logging.Formatter) -> None:
    handler.setLevel(_level(level))
    handler.setFormatter(formatter)
    handler.addFilter(PassphraseFilter())
    handler._gpgpipe_owned = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    console_level: Optional[str] = None,
    console_stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Setup logging configuration.

    Args:
        level: Root and file handler level (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file path (default: gpgpipe_data/gpgpipe.log)
        format_string: Custom format string
        console_level: Console handler level (default: WARNING)
        console_stream: Console stream (default: sys.stderr)

    Returns:
        The package logger
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    log_path = LOG_PATH if log_file is None else Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(_level(level))
    for h in list(root.handlers):
        if getattr(h, "_gpgpipe_owned", False):
            root.removeHandler(h)
            h.close()

    _install(root, _FsyncFileHandler(log_path, fsync=_env_flag(FSYNC_ENV)), level, formatter)
    _install(root, logging.StreamHandler(console_stream or sys.stderr), console_level or "WARNING", formatter)

    return logging.getLogger(LOGGER_NAME)

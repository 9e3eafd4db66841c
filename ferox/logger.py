"""Logging set-up that prints entries above progress bars and to a debug file."""

from __future__ import annotations

import logging
import os
import time
from typing import Optional, TextIO

from tqdm import tqdm

from ferox.message import FeroxMessage

#: Level below DEBUG for very chatty output.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

#: Environment variable that, when set, overrides the verbosity-derived level.
LOG_ENV_VAR = "FEROX_LOG"

_PACKAGE_LOGGER = "ferox"

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


def level_for_verbosity(verbosity: int) -> tuple[int, int]:
    """Return ``(package_level, other_level)`` for a count of ``-v`` flags."""
    if verbosity <= 0:
        return logging.ERROR, logging.ERROR
    if verbosity == 1:
        return logging.WARNING, logging.WARNING
    if verbosity == 2:
        return logging.INFO, logging.INFO
    if verbosity == 3:
        return logging.DEBUG, logging.INFO
    return TRACE, logging.INFO


class FeroxLogHandler(logging.Handler):
    """Print records as ``FeroxMessage`` entries and copy them to a debug file."""

    def __init__(
        self,
        debug_log: str = "",
        json_output: bool = False,
        start: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.json_output = json_output
        self.start = time.monotonic() if start is None else start
        self._file: Optional[TextIO] = None
        if debug_log:
            try:
                self._file = open(debug_log, "a", encoding="utf-8")
            except OSError as exc:
                raise OSError(f"Could not open {debug_log}") from exc

    def _to_message(self, record: logging.LogRecord) -> FeroxMessage:
        return FeroxMessage(
            kind="log",
            message=record.getMessage(),
            level=_LEVEL_NAMES.get(record.levelname, record.levelname),
            time_offset=time.monotonic() - self.start,
            module=record.name,
        )

    def emit(self, record: logging.LogRecord) -> None:
        """Print the record and write it to the debug file, if any."""
        try:
            entry = self._to_message(record)
            tqdm.write(entry.as_str(), end="")
            if self._file is not None:
                text = entry.as_json() if self.json_output else entry.as_str()
                self._file.write(text)
                self._file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the debug file and detach the handler."""
        self.acquire()
        try:
            if self._file is not None:
                self._file.close()
                self._file = None
        finally:
            self.release()
        super().close()


def initialize(verbosity: int = 0, debug_log: str = "", json_output: bool = False) -> FeroxLogHandler:
    """Install a ``FeroxLogHandler`` on the root logger and set levels."""
    override = os.environ.get(LOG_ENV_VAR)
    override_level = logging.getLevelName(override.upper()) if override else None
    if isinstance(override_level, int):
        package_level = other_level = override_level
    else:
        package_level, other_level = level_for_verbosity(verbosity)

    handler = FeroxLogHandler(debug_log=debug_log, json_output=json_output)
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, FeroxLogHandler)]:
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(other_level)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(package_level)
    return handler
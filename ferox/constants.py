"""Shared constants and enumerations used across the scanner."""

from __future__ import annotations

import enum

VERSION = "0.1.0"

#: Maximum number of file descriptors that can be opened during a scan.
DEFAULT_OPEN_FILE_LIMIT = 8192

#: Default value used to determine near-duplicate web pages (equivalent to 95%).
SIMILARITY_THRESHOLD = 95

#: Wordlist used when none is given on the command line or in a config file.
DEFAULT_WORDLIST = "/usr/share/seclists/Discovery/Web-Content/raft-medium-directories.txt"

#: Milliseconds to wait between polls while a scan is paused.
SLEEP_DURATION = 500

#: The share of requests as errors it takes to be deemed too high.
HIGH_ERROR_RATIO = 0.90

#: Status codes reported by default.
DEFAULT_STATUS_CODES = (200, 204, 301, 302, 307, 308, 401, 403, 405, 500)

#: Default filename for config file settings.
DEFAULT_CONFIG_NAME = "ferox-config.toml"


class OutputLevel(enum.Enum):
    """How much the scanner prints to the terminal."""

    DEFAULT = "default"
    QUIET = "quiet"
    SILENT = "silent"

    @property
    def is_loud(self) -> bool:
        """True unless output is silenced."""
        return self is not OutputLevel.SILENT
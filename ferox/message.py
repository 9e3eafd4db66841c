"""Log entries that render as coloured text or as NDJSON."""

from __future__ import annotations

import json
from dataclasses import dataclass

_RESET = "\x1b[0m"
_DIM = "\x1b[2m"
_BLACK_FG = "\x1b[30m"

_BG_RED = "\x1b[41m"
_BG_YELLOW = "\x1b[43m"
_BG_MAGENTA = "\x1b[45m"
_BG_CYAN = "\x1b[46m"
_BG_WHITE = "\x1b[47m"

_LEVELS = {
    "ERROR": ("ERR", _BG_RED),
    "WARN": ("WRN", _BG_RED),
    "INFO": ("INF", _BG_CYAN),
    "DEBUG": ("DBG", _BG_YELLOW),
    "TRACE": ("TRC", _BG_MAGENTA),
    "WILDCARD": ("WLD", _BG_CYAN),
}
_UNKNOWN = ("UNK", _BG_WHITE)


def _dim(text: str) -> str:
    return f"{_DIM}{text}{_RESET}"


@dataclass
class FeroxMessage:
    """A single log entry."""

    kind: str = ""
    message: str = ""
    level: str = ""
    time_offset: float = 0.0
    module: str = ""

    def as_str(self) -> str:
        """Human readable, coloured form of the entry, ending in a newline."""
        name, background = _LEVELS.get(self.level, _UNKNOWN)
        label = f"{_BLACK_FG}{background}{name}{_RESET}"
        offset = _dim(f"{self.time_offset:10.3f}")
        return f"{label} {offset} {self.module} {_dim(self.message)}\n"

    def as_json(self) -> str:
        """NDJSON form of the entry, ending in a newline."""
        payload = {
            "type": self.kind,
            "message": self.message,
            "level": self.level,
            "time_offset": self.time_offset,
            "module": self.module,
        }
        try:
            return json.dumps(payload, separators=(",", ":")) + "\n"
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Could not convert {self.level}:{self.message} to JSON"
            ) from exc

    @classmethod
    def from_json(cls, text: str) -> "FeroxMessage":
        """Build an entry from its NDJSON form."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("a log entry must be a JSON object")
        return cls(
            kind=str(data.get("type", "")),
            message=str(data.get("message", "")),
            level=str(data.get("level", "")),
            time_offset=float(data.get("time_offset", 0.0)),
            module=str(data.get("module", "")),
        )
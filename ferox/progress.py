"""Progress bars for directory scans and overall totals."""

from __future__ import annotations

import enum
import sys
from typing import Optional

from tqdm import tqdm

_BAR_CHARS = "->#"


class BarType(enum.Enum):
    """Kinds of progress bar."""

    HIDDEN = "hidden"
    DEFAULT = "default"
    MESSAGE = "message"
    TOTAL = "total"
    QUIET = "quiet"


_FORMATS = {
    BarType.HIDDEN: None,
    BarType.DEFAULT: "[{bar}] - {elapsed:<4} {n_fmt:>7}/{total_fmt:7} {rate_fmt:7} {desc}",
    BarType.MESSAGE: "[{bar}] - {elapsed:<4} {n_fmt:>7}/{total_fmt:7} " + f"{'-':7}" + " {desc}",
    BarType.TOTAL: "[{bar}] - {elapsed:<4} {n_fmt:>7}/{total_fmt:7} {remaining:7} {postfix}",
    BarType.QUIET: "Scanning: {desc}",
}


def bar_format(bar_type: BarType) -> Optional[str]:
    """Template used by a bar of the given type; ``None`` for hidden bars."""
    return _FORMATS[bar_type]


def add_bar(prefix: str, length: int, bar_type: BarType) -> tqdm:
    """Create a progress bar of ``length`` steps labelled with ``prefix``."""
    template = bar_format(bar_type)
    return tqdm(
        total=length,
        desc=prefix,
        bar_format=template,
        ascii=_BAR_CHARS,
        file=sys.stdout,
        leave=True,
        disable=template is None,
    )
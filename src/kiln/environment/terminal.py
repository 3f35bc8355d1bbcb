"""ANSI styling for diagnostics printed by kiln.

Colors are used only when stderr is a TTY. ``NO_COLOR`` disables them and
``FORCE_COLOR`` forces them (https://no-color.org/).
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
}

Style = Literal["bold", "dim", "yellow", "cyan", "bright_red"]

_ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")


def _detect_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


_USE_COLORS = _detect_colors()


def supports_color() -> bool:
    """Whether diagnostics are colorized in this process."""
    return _USE_COLORS


def style(text: str, *styles: Style) -> str:
    """Wrap text in the given ANSI styles (no-op without color support)."""
    if not _USE_COLORS or not styles:
        return text
    prefix = "".join(_CODES[s] for s in styles)
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return _ANSI_RE.sub("", text)


def location(text: str) -> str:
    return style(text, "cyan")


def dim_text(text: str) -> str:
    return style(text, "dim")


def error_code(text: str) -> str:
    return style(text, "bright_red", "bold")


def format_source_line(lineno: int, content: str, *, is_error: bool = False) -> str:
    """Format one numbered source line; the error line gets a ``>`` marker.

    Example:
        >>> format_source_line(7, "Hello {$name}", is_error=True)
        '>  7 | Hello {$name}'   # without colors
    """
    marker = ">" if is_error else " "
    number = style(f"{marker}{lineno:>3}", "yellow")
    body = style(content, "bright_red") if is_error else dim_text(content)
    return f"{number} | {body}"

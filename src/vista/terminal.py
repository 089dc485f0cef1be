"""ANSI styling for template diagnostics.

Colors are applied only when stdout is a TTY, unless overridden by the
``NO_COLOR`` / ``FORCE_COLOR`` environment variables.
"""

from __future__ import annotations

import os
import re
import sys

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "bright_red": "\033[91m",
}

# Semantic role -> ANSI codes
_ROLES: dict[str, tuple[str, ...]] = {
    "error_code": ("bright_red", "bold"),
    "location": ("cyan",),
    "line_number": ("yellow",),
    "error_line": ("bright_red",),
    "dim": ("dim",),
}

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    """Return True if diagnostics will be colored."""
    return _USE_COLORS


def style(role: str, text: str) -> str:
    """Wrap *text* in the ANSI codes registered for *role*.

    Unknown roles and disabled colors return the text unchanged.
    """
    if not _USE_COLORS:
        return text
    codes = _ROLES.get(role)
    if not codes:
        return text
    prefix = "".join(_CODES[c] for c in codes)
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences from *text*."""
    return _ANSI_ESCAPE.sub("", text)


def location(text: str) -> str:
    return style("location", text)


def dim_text(text: str) -> str:
    return style("dim", text)


def format_error_header(code: str | None, message: str) -> str:
    """Prefix *message* with a styled error code when one is given."""
    if code:
        return f"{style('error_code', code)}: {message}"
    return message


def format_source_line(lineno: int, content: str, *, is_error: bool = False) -> str:
    """Format one numbered source line; the error line gets a ``>`` marker."""
    marker = ">" if is_error else " "
    number = style("line_number", f"{marker}{lineno:>3}")
    body = style("error_line", content) if is_error else style("dim", content)
    return f"{number} | {body}"

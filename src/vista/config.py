"""Process-wide settings for template encoding and diagnostics.

The external encoding is the fallback used to decode byte sources that do
not declare their own encoding. It lives in a ContextVar so tests and
request handlers can override it for a block of code:

    >>> from vista.config import external_encoding
    >>> with external_encoding("iso-8859-1"):
    ...     template.render(view)

"""

from __future__ import annotations

import codecs
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path

DEFAULT_EXTERNAL_ENCODING = "utf-8"

# Every rendered string is tagged with this encoding.
OUTPUT_ENCODING = "utf-8"

_external_encoding: ContextVar[str] = ContextVar(
    "external_encoding",
    default=DEFAULT_EXTERNAL_ENCODING,
)

_identifier_root: Path | None = None


def _normalize(encoding: str) -> str:
    # Raises LookupError for unknown codecs
    return codecs.lookup(encoding).name


def get_external_encoding() -> str:
    """Return the encoding used for byte sources without a declared encoding."""
    return _external_encoding.get()


def set_external_encoding(encoding: str) -> Token[str]:
    """Set the external encoding and return the token to reset it."""
    return _external_encoding.set(_normalize(encoding))


@contextmanager
def external_encoding(encoding: str) -> Iterator[str]:
    """Temporarily override the external encoding."""
    token = set_external_encoding(encoding)
    try:
        yield _external_encoding.get()
    finally:
        _external_encoding.reset(token)


def set_identifier_root(root: str | Path | None) -> None:
    """Set the directory template identifiers are shown relative to."""
    global _identifier_root
    _identifier_root = Path(root) if root is not None else None


def short_identifier(identifier: str) -> str:
    """Shorten *identifier* relative to the identifier root when possible."""
    if _identifier_root is None:
        return identifier
    try:
        return str(Path(identifier).relative_to(_identifier_root))
    except ValueError:
        return identifier

"""Encoding detection for template sources.

Byte sources are decoded once, before compilation, into ``str``. The
encoding is chosen in this order:

1. An in-source magic comment. Either a leading ``# encoding: NAME`` line,
   or the handler's own marker (``Handler.encoding_tag``, for example
   ``<%# encoding: NAME %>`` for ERB). The marker is removed from the body;
   a magic line's trailing newline is kept.
2. The encoding declared for the template (``Template(encoding=...)``).
3. The external encoding from ``vista.config``.

``str`` sources are already decoded; only their magic comment is stripped.
Bytes that are invalid for the chosen encoding raise TemplateEncodingError.
"""

from __future__ import annotations

import codecs
import re
from typing import Any, NamedTuple

from vista.config import get_external_encoding
from vista.exceptions import ErrorCode, TemplateEncodingError

ENCODING_FLAG = r"#.*coding[:=][ \t]*(\S+)[ \t]*"

_MAGIC_LINE = re.compile(r"\A" + ENCODING_FLAG)
_MAGIC_LINE_BYTES = re.compile(rb"\A" + ENCODING_FLAG.encode("ascii"))


class DecodedSource(NamedTuple):
    text: str
    encoding: str | None  # None when the source was already str


def _find_marker(source: Any, handler: Any) -> tuple[Any, str | None]:
    """Strip a leading encoding marker, returning (body, encoding or None)."""
    is_bytes = isinstance(source, bytes)
    patterns = [_MAGIC_LINE_BYTES if is_bytes else _MAGIC_LINE]
    tag = getattr(handler, "encoding_tag", None)
    if tag is not None:
        if is_bytes:
            patterns.append(re.compile(tag.encode("ascii")))
        else:
            patterns.append(re.compile(tag))

    for pattern in patterns:
        match = pattern.match(source)
        if match:
            name = match.group(1)
            if is_bytes:
                name = name.decode("ascii", "replace")
            return source[match.end():], name
    return source, None


def _lookup(encoding: str, name: str | None) -> str:
    try:
        return codecs.lookup(encoding).name
    except LookupError as e:
        raise TemplateEncodingError(
            f"Unknown encoding {encoding!r}",
            original_exception=e,
            template_name=name,
            code=ErrorCode.UNKNOWN_ENCODING,
        ) from e


def decode_source(
    source: str | bytes,
    *,
    declared: str | None = None,
    handler: Any = None,
    name: str | None = None,
) -> DecodedSource:
    """Return *source* as text plus the encoding it was decoded from.

    Raises:
        TemplateEncodingError: bytes are invalid for the chosen encoding,
            or the encoding name is unknown.
    """
    body, magic = _find_marker(source, handler)

    if isinstance(body, str):
        return DecodedSource(body, None)

    encoding = _lookup(magic or declared or get_external_encoding(), name)
    try:
        return DecodedSource(body.decode(encoding), encoding)
    except UnicodeDecodeError as e:
        bad = body[e.start:e.end]
        shown = body.decode(encoding, "backslashreplace")
        raise TemplateEncodingError(
            f"Template is not valid {encoding}: cannot decode "
            f"{bad.decode('latin-1').encode('unicode_escape').decode('ascii')} at byte {e.start}. "
            f"Save the template as {encoding}, or declare its encoding on the "
            f"first line with '# encoding: <name>'.\n"
            f"Source: {shown!r}",
            original_exception=e,
            template_name=name,
            code=ErrorCode.INVALID_BYTES,
        ) from e

"""Output buffer used by compiled templates.

Compiled handlers write into ``context.output_buffer``. The buffer is a
StringBuilder: ``append()`` collects escaped chunks and ``to_markup()``
joins them once at the end.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, suppress
from typing import Any

from vista.utils.html import Markup, html_escape

_MISSING = object()


class OutputBuffer:
    """Append-only buffer of rendered chunks."""

    __slots__ = ("_chunks",)

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def append(self, value: Any) -> None:
        """Append *value*, HTML-escaped unless it is Markup."""
        self._chunks.append(html_escape(value))

    def safe_append(self, value: Any) -> None:
        """Append *value* without escaping."""
        if value is not None:
            self._chunks.append(str(value))

    def to_markup(self) -> Markup:
        return Markup("".join(self._chunks))

    def __len__(self) -> int:
        return len(self._chunks)

    def __repr__(self) -> str:
        return f"<OutputBuffer chunks={len(self._chunks)}>"


@contextmanager
def swap_attribute(obj: Any, name: str, value: Any) -> Iterator[Any]:
    """Set ``obj.<name>`` to *value* for the block, then restore it.

    The previous value is restored on success and on failure. If the
    attribute did not exist before, it is removed again.
    """
    previous = getattr(obj, name, _MISSING)
    setattr(obj, name, value)
    try:
        yield value
    finally:
        if previous is _MISSING:
            with suppress(AttributeError):
                delattr(obj, name)
        else:
            setattr(obj, name, previous)


def swap_output_buffer(context: Any) -> AbstractContextManager[OutputBuffer]:
    """Give *context* a fresh OutputBuffer for the duration of the block."""
    return swap_attribute(context, "output_buffer", OutputBuffer())

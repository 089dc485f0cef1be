"""HTML escaping and the Markup output string.

``Markup`` marks text as already safe for HTML and carries the encoding
rendered output is tagged with. Escaping is a single ``str.translate()``
pass.
"""

from __future__ import annotations

from typing import Any

from vista.config import OUTPUT_ENCODING

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


class Markup(str):
    """A string that is safe to insert into HTML without escaping.

    Example:
        >>> Markup("<b>") + "<i>"
        Markup('<b>&lt;i&gt;')
        >>> Markup("hi").encoding
        'utf-8'
    """

    __slots__ = ()

    encoding = OUTPUT_ENCODING

    def __html__(self) -> Markup:
        return self

    def __add__(self, other: object) -> Markup:
        if isinstance(other, str):
            return Markup(str.__add__(self, html_escape(other)))
        return NotImplemented

    def __radd__(self, other: object) -> Markup:
        if isinstance(other, str):
            return Markup(str.__add__(html_escape(other), self))
        return NotImplemented

    def __repr__(self) -> str:
        return f"Markup({str.__repr__(self)})"


def html_escape(value: Any) -> Markup:
    """Escape *value* for HTML unless it is already Markup.

    ``None`` renders as the empty string.
    """
    if value is None:
        return Markup("")
    if hasattr(value, "__html__"):
        return Markup(value.__html__())
    return Markup(str(value).translate(_ESCAPE_TABLE))

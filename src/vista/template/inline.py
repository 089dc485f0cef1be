"""Inline templates: anonymous templates rendered from a string."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from vista.template.core import Template

if TYPE_CHECKING:
    from vista.protocols import Handler


class InlineTemplate(Template):
    """A template without a virtual path, compared by its source.

    Two inline templates with the same body are equal and hash alike, so
    a view can reuse one compiled instance for repeated ``render(inline=...)``
    calls:

        >>> InlineTemplate("sample", ERB) == InlineTemplate("sample", ERB)
        True
        >>> InlineTemplate("sample", ERB) == InlineTemplate("other", ERB)
        False
    """

    # Source as passed in; encode() rewrites ``source``
    __slots__ = ("body",)

    def __init__(self, source: str | bytes, handler: Handler, *, locals: Iterable[str] = ()):
        super().__init__(source, "inline template", handler, locals=locals)
        self.body = source

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InlineTemplate):
            return NotImplemented
        return self.body == other.body

    def __hash__(self) -> int:
        return hash(self.body)

"""Virtual path decomposition.

A virtual path is a slash-separated logical name such as ``"posts/show"``.
A leading underscore on the last segment marks a partial:
``"posts/_comment"`` is the partial ``comment`` in directory ``posts``.
Root-level paths have an empty prefix.
"""

from __future__ import annotations

import re
from typing import NamedTuple

PARTIAL_MARKER = "_"

_VARIABLE_NAME = re.compile(r"_?(\w+)(?:\.\w+)*\Z")


class VirtualPath(NamedTuple):
    """A virtual path split into directory, bare name and partial flag."""

    prefix: str
    name: str
    partial: bool

    @property
    def path(self) -> str:
        """The path without the partial marker."""
        return f"{self.prefix}/{self.name}" if self.prefix else self.name


def split_virtual_path(virtual_path: str) -> VirtualPath:
    """Split *virtual_path* into prefix, name and partial flag.

    Example:
        >>> split_virtual_path("test/_foo")
        VirtualPath(prefix='test', name='foo', partial=True)
        >>> split_virtual_path("foo_bar")
        VirtualPath(prefix='', name='foo_bar', partial=False)
    """
    prefix, _, name = virtual_path.rpartition("/")
    partial = name.startswith(PARTIAL_MARKER)
    if partial:
        name = name[len(PARTIAL_MARKER):]
    return VirtualPath(prefix, name, partial)


def render_directive(virtual_path: str) -> dict[str, str]:
    """Return the ``render()`` keyword arguments that render *virtual_path*.

    Full templates render by their virtual path; partials render by the path
    with the marker removed.

    Example:
        >>> render_directive("test/_foo_bar")
        {'partial': 'test/foo_bar'}
        >>> render_directive("foo_bar")
        {'template': 'foo_bar'}
    """
    parts = split_virtual_path(virtual_path)
    if parts.partial:
        return {"partial": parts.path}
    return {"template": virtual_path}


def variable_name(virtual_path: str) -> str | None:
    """Name of the local a partial's object is exposed under.

    ``"people/_person.html"`` gives ``"person"``.
    """
    last = virtual_path.rpartition("/")[2]
    match = _VARIABLE_NAME.match(last)
    return match.group(1) if match else None

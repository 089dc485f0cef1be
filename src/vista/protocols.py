"""Interfaces of the collaborators a Template talks to.

Templates never import a concrete view or lookup implementation; anything
that provides these methods works. ``vista.view.View`` and
``vista.lookup.LookupContext`` are the reference implementations.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vista.template import Template


class RenderFunction(Protocol):
    """Compiled template body: ``(context, locals) -> str``."""

    def __call__(self, context: Any, local_assigns: Mapping[str, Any]) -> str: ...


@runtime_checkable
class Handler(Protocol):
    """Compiles a template's source into a RenderFunction."""

    def compile(self, template: Template) -> RenderFunction: ...


@runtime_checkable
class LookupContextProtocol(Protocol):
    """Resolves ``(name, prefix, partial, locals)`` to a Template."""

    def find_template(
        self,
        name: str,
        prefix: str = "",
        partial: bool = False,
        locals: Sequence[str] = (),
    ) -> Template: ...

    def disable_cache(self) -> AbstractContextManager[None]: ...


@runtime_checkable
class RenderingContext(Protocol):
    """The object templates are rendered against (``self`` inside ERB)."""

    output_buffer: Any

    @property
    def lookup_context(self) -> LookupContextProtocol: ...

    def render(self, **directive: Any) -> str: ...


__all__ = [
    "Handler",
    "LookupContextProtocol",
    "RenderFunction",
    "RenderingContext",
]

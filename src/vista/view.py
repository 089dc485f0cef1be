"""View — a rendering context for templates.

The view is ``self`` inside a template: its attributes and methods are
reachable by bare name, it owns the ``output_buffer`` compiled templates
write into, and its ``render()`` entry point is what
``Template.rerender()`` calls.

Example:
    >>> lookup = LookupContext([DictResolver({
    ...     "posts/show.html.erb": "<h1><%= title %></h1><%== render(partial='posts/meta') %>",
    ...     "posts/_meta.html.erb": "by <%= author %>",
    ... })])
    >>> View(lookup, {"title": "Hi", "author": "Ann"}).render(template="posts/show")
    Markup('<h1>Hi</h1>by Ann')
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vista.handlers import ERB
from vista.lookup import LookupContext
from vista.protocols import Handler
from vista.template import InlineTemplate, Template
from vista.template.buffer import OutputBuffer
from vista.template.paths import variable_name
from vista.utils.html import Markup


class View:
    """Render templates found through a lookup context.

    Assigns become attributes of the view, so templates can use them by
    name. Assigns that would shadow a view method are only available
    through ``assigns``.

    Attributes:
        lookup_context: Resolves template and partial names
        assigns: Values exposed to every template
        output_buffer: Buffer of the template being rendered
    """

    def __init__(
        self,
        lookup_context: LookupContext,
        assigns: Mapping[str, Any] | None = None,
    ):
        self.lookup_context = lookup_context
        self.assigns = dict(assigns or {})
        self.output_buffer: OutputBuffer | None = None
        self._template: Template | None = None
        self._inline_templates: dict[tuple[InlineTemplate, tuple[str, ...]], InlineTemplate] = {}
        for name, value in self.assigns.items():
            if not hasattr(type(self), name):
                setattr(self, name, value)

    @property
    def template(self) -> Template | None:
        """The template currently being rendered."""
        return self._template

    def render(
        self,
        template: str | None = None,
        *,
        partial: str | None = None,
        inline: str | bytes | None = None,
        locals: Mapping[str, Any] | None = None,
        object: Any = None,
        handler: Handler | None = None,
    ) -> Markup:
        """Render a template, a partial or an inline source.

        Args:
            template: Virtual path of a full template (``"posts/show"``)
            partial: Partial path without the underscore (``"posts/comment"``)
            inline: Template source rendered without lookup
            locals: Local values for the template
            object: For partials, exposed under the partial's variable name
            handler: Handler for inline sources (ERB by default)
        """
        given = [arg for arg in (template, partial, inline) if arg is not None]
        if len(given) != 1:
            raise TypeError("render() takes exactly one of template=, partial= or inline=")

        local_assigns = dict(locals or {})

        if inline is not None:
            found = self._inline_template(inline, handler or ERB, local_assigns)
        elif partial is not None:
            prefix, _, name = partial.rpartition("/")
            if object is not None:
                local_assigns.setdefault(variable_name(name) or name, object)
            found = self.lookup_context.find_template(name, prefix, True, list(local_assigns))
        else:
            assert template is not None
            prefix, _, name = template.rpartition("/")
            found = self.lookup_context.find_template(name, prefix, False, list(local_assigns))

        return found.render(self, local_assigns)

    def _inline_template(
        self, source: str | bytes, handler: Handler, local_assigns: Mapping[str, Any]
    ) -> InlineTemplate:
        candidate = InlineTemplate(source, handler, locals=local_assigns)
        key = (candidate, tuple(sorted(local_assigns)))
        return self._inline_templates.setdefault(key, candidate)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} assigns={sorted(self.assigns)}>"

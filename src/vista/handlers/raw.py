"""Raw handler: the template body is the output."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from vista.utils.html import Markup

if TYPE_CHECKING:
    from vista.protocols import RenderFunction
    from vista.template import Template


class RawHandler:
    """Render the source verbatim, without escaping or evaluation."""

    extension = "raw"
    default_format = None

    def compile(self, template: Template) -> RenderFunction:
        body = Markup(template.source or "")

        def render(context: Any, local_assigns: Mapping[str, Any]) -> Markup:
            return body

        return render

    def __repr__(self) -> str:
        return "<RawHandler>"

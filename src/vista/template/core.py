"""Vista Template — a view template and its compile/render lifecycle.

The Template holds a source body and compiles it lazily through its
handler on the first ``render()``. Templates with a virtual path drop
their source once compiled; if a later render fails, the source is
recovered through the lookup context so the error can show a snippet.

Lifecycle:
    ```
    Template(source, identifier, handler, virtual_path=...)
        │ render(view, locals)
        ├── encode()           bytes → str, magic comment stripped
        ├── handler.compile()  → render function (cached)
        ├── source = None      only when virtual_path is set
        └── render function(view, locals) → Markup
    ```

Buffer Handling:
While the compiled function runs, ``view.output_buffer`` is a fresh
OutputBuffer and ``view._template`` is this template. Both are restored
when ``render()`` returns or raises.

Example:
    >>> from vista import ERB, Template
    >>> class View:
    ...     def hello(self):
    ...         return "Hello"
    >>> t = Template("<%= hello %>", "hello.erb", ERB, virtual_path="hello")
    >>> t.render(View())
    Markup('Hello')
    >>> t.source is None
    True

"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from vista.config import short_identifier
from vista.exceptions import (
    ErrorCode,
    TemplateError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateUsageError,
    build_source_snippet,
)
from vista.template.buffer import swap_attribute, swap_output_buffer
from vista.template.encoding import decode_source
from vista.template.paths import render_directive, split_virtual_path, variable_name
from vista.utils.html import Markup

if TYPE_CHECKING:
    from vista.protocols import Handler, RenderFunction, RenderingContext

logger = logging.getLogger(__name__)

# expire() sets updated_at here so freshness checks see the template as stale
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class Template:
    """A view template compiled on first render.

    Attributes:
        source: Template body; ``None`` after compilation when the template
            has a virtual path
        identifier: Name or file path, used in messages and tracebacks
        handler: Compiles the source into a render function
        virtual_path: Logical path such as ``"posts/_comment"`` or None
        locals: Local names the template accepts at render time
        updated_at: Last modification time
        format: Output format such as ``"html"``
        encoding: Declared encoding of a bytes source
        original_encoding: Encoding the source was decoded from
    """

    __slots__ = (
        "_encoded",
        "_render_func",
        "encoding",
        "format",
        "handler",
        "identifier",
        "locals",
        "original_encoding",
        "source",
        "updated_at",
        "virtual_path",
    )

    def __init__(
        self,
        source: str | bytes | None,
        identifier: str,
        handler: Handler,
        *,
        virtual_path: str | None = None,
        locals: Iterable[str] = (),
        updated_at: datetime | None = None,
        format: str | None = None,
        encoding: str | None = None,
    ):
        self.source = source
        self.identifier = identifier
        self.handler = handler
        self.virtual_path = virtual_path
        self.locals = list(locals)
        self.updated_at = updated_at or datetime.now(UTC)
        self.format = format or getattr(handler, "default_format", None)
        self.encoding = encoding
        self.original_encoding: str | None = None
        self._encoded = False
        self._render_func: RenderFunction | None = None

    @property
    def compiled(self) -> bool:
        """True once the handler has compiled the source."""
        return self._render_func is not None

    @property
    def variable_name(self) -> str | None:
        """Local name a partial's object is exposed under."""
        if self.virtual_path is None:
            return None
        return variable_name(self.virtual_path)

    @property
    def counter_name(self) -> str | None:
        name = self.variable_name
        return f"{name}_counter" if name else None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(
        self,
        context: Any,
        local_assigns: Mapping[str, Any] | None = None,
    ) -> Markup:
        """Render the template against *context* with the given locals.

        Args:
            context: Rendering context; ``self`` inside the template
            local_assigns: Values for the declared locals

        Returns:
            Rendered output, tagged with the output encoding

        Raises:
            TemplateRuntimeError: compiling or running the template failed
        """
        if local_assigns is None:
            local_assigns = {}

        try:
            render_func = self._compile()
        except TemplateRuntimeError:
            raise
        except Exception as e:
            raise self._render_error(context, e) from e

        try:
            with swap_attribute(context, "_template", self), swap_output_buffer(context):
                result = render_func(context, local_assigns)
        except TemplateRuntimeError as e:
            # Raised by a template rendered from inside this one
            e.sub_template_of(self.identifier)
            raise
        except Exception as e:
            raise self._render_error(context, e) from e

        return result if isinstance(result, Markup) else Markup(result)

    def encode(self) -> None:
        """Decode the source to text once, honouring magic comments.

        Raises:
            TemplateEncodingError: the source bytes are not valid in the
                detected encoding.
        """
        if self._encoded or self.source is None:
            return
        decoded = decode_source(
            self.source,
            declared=self.encoding,
            handler=self.handler,
            name=self.identifier,
        )
        self.source = decoded.text
        self.original_encoding = decoded.encoding
        self._encoded = True

    def _compile(self) -> RenderFunction:
        if self._render_func is not None:
            return self._render_func

        self.encode()
        render_func = self.handler.compile(self)
        self._render_func = render_func
        logger.debug("Compiled template %s with %r", self.identifier, self.handler)

        # Recompiling reads the template from storage again
        if self.virtual_path is not None:
            self.source = None
        return render_func

    def _render_error(self, context: Any, error: Exception) -> TemplateRuntimeError:
        """Wrap *error* with this template's identifier, line and snippet."""
        template = self
        if self.source is None and self.virtual_path is not None:
            template = self._reload_for_diagnostics(context)

        lineno = self._error_lineno(error)
        snippet = None
        source = template.source
        if isinstance(source, str) and lineno:
            snippet = build_source_snippet(source, lineno)

        message = str(error).strip() or f"{type(error).__name__} (no details available)"
        if not isinstance(error, TemplateError):
            message = f"{type(error).__name__}: {message}"

        return TemplateRuntimeError(
            message,
            original_exception=error,
            template_name=self.identifier,
            lineno=lineno,
            source_snippet=snippet,
            assigns=dict(getattr(context, "assigns", None) or {}),
            code=ErrorCode.RUNTIME_ERROR,
        )

    def _reload_for_diagnostics(self, context: Any) -> Template:
        """Re-read the discarded source through the lookup context.

        Falls back to this template when the context cannot provide a
        fresh copy; the render error is then raised without a snippet.
        """
        try:
            refreshed = self.refresh(context)
            if not isinstance(refreshed, Template):
                logger.debug(
                    "Lookup returned %r for %s, no source for error context",
                    refreshed,
                    self.identifier,
                )
                return self
            refreshed.encode()
        except Exception as refresh_error:
            logger.debug(
                "Could not reload %s for error context: %s",
                self.identifier,
                refresh_error,
            )
            return self
        return refreshed

    def _error_lineno(self, error: Exception) -> int | None:
        if isinstance(error, TemplateSyntaxError):
            return error.lineno
        code = getattr(self._render_func, "__code__", None)
        if code is None or error.__traceback__ is None:
            return None
        lineno = None
        frames = traceback.StackSummary.extract(
            traceback.walk_tb(error.__traceback__), lookup_lines=False
        )
        for frame in frames:
            if frame.filename == code.co_filename:
                lineno = frame.lineno
        return lineno

    # ------------------------------------------------------------------
    # Lookup-driven operations
    # ------------------------------------------------------------------

    def refresh(self, context: RenderingContext) -> Template:
        """Resolve this template again through the context's lookup context.

        Caching is disabled for the lookup, so the template is read from
        storage again.

        Raises:
            TemplateUsageError: the template has no virtual path.
        """
        if self.virtual_path is None:
            raise TemplateUsageError(
                f"Cannot refresh {self!r}: a template needs a virtual path "
                f"in order to be refreshed",
                code=ErrorCode.CANNOT_REFRESH,
            )
        lookup = context.lookup_context
        parts = split_virtual_path(self.virtual_path)
        logger.debug("Refreshing template %s", self.virtual_path)
        with lookup.disable_cache():
            return lookup.find_template(parts.name, parts.prefix, parts.partial, self.locals)

    def rerender(self, context: RenderingContext) -> Any:
        """Render a template like this one through ``context.render()``.

        Partials render as ``partial=<path>``; other templates as
        ``template=<virtual_path>``.

        Raises:
            TemplateUsageError: the template has no virtual path.
        """
        if self.virtual_path is None:
            raise TemplateUsageError(
                f"Cannot rerender {self!r}: a template needs a virtual path "
                f"in order to be rerendered",
                code=ErrorCode.CANNOT_RERENDER,
            )
        return context.render(**render_directive(self.virtual_path))

    def expire(self) -> None:
        """Mark the template as outdated by moving updated_at to the epoch."""
        self.updated_at = EPOCH

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {short_identifier(self.identifier)}>"

"""Exceptions for Vista templates.

Exception Hierarchy:
TemplateError (base)
├── TemplateUsageError        # refresh/rerender on a template without virtual path
├── TemplateSyntaxError       # Handler could not parse the template body
├── MissingTemplateError      # Lookup context could not resolve a template
└── TemplateRuntimeError      # Render-time failure, wraps the original exception
    └── TemplateEncodingError # Source bytes invalid for the detected encoding

Render errors always carry the original exception, the template identifier,
the line number (when known) and a snippet of the template source:

    ```
    Runtime Error: name 'titl' is not defined
      Location: posts/show.html.erb:5
       |
      4 | <article>
     >5 |   <h1><%= titl %></h1>
      6 | </article>
       |
    ```

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vista import terminal


class ErrorCode(Enum):
    """Searchable error codes for Vista template errors.

    Format: V-{CATEGORY}-{NUMBER}
    Categories: SYN (syntax), ENC (encoding), RUN (runtime),
    USE (usage), LKP (lookup)
    """

    SYNTAX_ERROR = "V-SYN-001"
    UNCLOSED_TAG = "V-SYN-002"
    UNBALANCED_BLOCK = "V-SYN-003"

    INVALID_BYTES = "V-ENC-001"
    UNKNOWN_ENCODING = "V-ENC-002"

    RUNTIME_ERROR = "V-RUN-001"

    CANNOT_REFRESH = "V-USE-001"
    CANNOT_RERENDER = "V-USE-002"

    MISSING_TEMPLATE = "V-LKP-001"

    @property
    def category(self) -> str:
        """Error category (e.g. 'runtime', 'encoding')."""
        prefix = self.value.split("-")[1]
        return {
            "SYN": "syntax",
            "ENC": "encoding",
            "RUN": "runtime",
            "USE": "usage",
            "LKP": "lookup",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Lines of template source around an error line.

    Attributes:
        lines: (line_number, content) pairs around the error.
        error_line: 1-based line number of the error.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        parts = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(
                    lineno, content, is_error=lineno == self.error_line
                )
            )
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
) -> SourceSnippet:
    """Build a SourceSnippet of *context_lines* around *error_line* (1-based)."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


def format_template_stack(stack: list[str]) -> str:
    """Format the chain of templates that included the failing one."""
    if not stack:
        return ""
    lines = [terminal.dim_text("Template stack:")]
    lines.extend(f"  • {terminal.location(name)}" for name in stack)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TemplateError(Exception):
    """Base exception for all Vista template errors.

    Attributes:
        code: Optional ErrorCode identifying the failure.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short diagnostic for terminal display."""
        return terminal.format_error_header(
            self.code.value if self.code else None, str(self)
        )


class TemplateUsageError(TemplateError, RuntimeError):
    """A template operation was called in a state where it cannot work.

    Raised by ``Template.refresh()`` and ``Template.rerender()`` when the
    template has no virtual path. This is a programming error and is never
    retried.
    """

    code: ErrorCode | None = ErrorCode.CANNOT_REFRESH

    def __init__(self, message: str, *, code: ErrorCode | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class TemplateSyntaxError(TemplateError):
    """The handler could not parse the template body."""

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
        *,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        location = self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
        header = f"Syntax Error: {self.message}\n  --> {location}"
        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                return f"{header}\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"
        return header


class MissingTemplateError(TemplateError):
    """No resolver could find the requested template."""

    code: ErrorCode | None = ErrorCode.MISSING_TEMPLATE

    def __init__(
        self,
        name: str,
        prefix: str = "",
        partial: bool = False,
        searched: Iterable[str] = (),
    ):
        self.name = name
        self.prefix = prefix
        self.partial = partial
        self.searched = list(searched)
        kind = "partial" if partial else "template"
        path = f"{prefix}/{name}" if prefix else name
        msg = f"Missing {kind} {path}"
        if self.searched:
            msg += f" in view paths: {', '.join(self.searched)}"
        super().__init__(msg)


class TemplateRuntimeError(TemplateError):
    """Render-time failure with the template context needed to report it.

    Wraps whatever the compiled template (or its handler) raised. The
    original exception is kept on ``original_exception`` and is also the
    ``__cause__`` of the raised error.

    Attributes:
        message: Error description
        original_exception: The wrapped exception, if any
        template_name: Identifier of the failing template
        lineno: Line in the template source, if known
        source_snippet: Template lines around ``lineno``
        template_stack: Identifiers of the templates that rendered this one
        assigns: Instance variables of the rendering context at failure time
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        original_exception: BaseException | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[str] | None = None,
        assigns: dict[str, Any] | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.original_exception = original_exception
        self.template_name = template_name
        self.lineno = lineno
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        self.assigns = assigns or {}
        if code is not None:
            self.code = code
        super().__init__(message)

    def sub_template_of(self, template_name: str) -> None:
        """Record that the failing template was rendered by *template_name*."""
        self.template_stack.append(template_name)

    def __str__(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {terminal.location(loc)}")
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))
        return "\n".join(parts)


class TemplateEncodingError(TemplateRuntimeError):
    """Template source bytes are not valid in the encoding chosen for them."""

    code: ErrorCode | None = ErrorCode.INVALID_BYTES

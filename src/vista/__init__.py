"""Vista — view templates with a compile/render lifecycle.

A Template holds a source body, a handler and a virtual path. It compiles
lazily on first render, drops its source once compiled (when it can be
re-read from storage), and answers refresh/rerender requests through the
view's lookup context.

Quickstart:
    >>> from vista import DictResolver, LookupContext, View
    >>> lookup = LookupContext([DictResolver({"hello.html.erb": "Hello, <%= name %>!"})])
    >>> View(lookup).render(template="hello", locals={"name": "World"})
    Markup('Hello, World!')

Architecture:
View.render() → LookupContext → Resolver → Template → Handler → Python AST → exec()

Pipeline stages:
1. **Resolver**: finds ``{prefix}/{_}{name}[.format].{ext}`` and builds a Template
2. **Template**: decodes the source, compiles it once through its handler
3. **Handler**: turns source into ``render(context, locals)`` (ERB: AST-native)
4. **View**: the rendering context, ``self`` inside templates

Encoding:
Byte sources are decoded before compilation: magic comment first, then the
template's declared encoding, then the external encoding from
``vista.config``. Rendered output is always ``Markup`` tagged ``utf-8``.

"""

from vista.config import external_encoding, get_external_encoding, set_external_encoding
from vista.exceptions import (
    ErrorCode,
    MissingTemplateError,
    SourceSnippet,
    TemplateEncodingError,
    TemplateError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateUsageError,
    build_source_snippet,
)
from vista.handlers import (
    ERB,
    RAW,
    ERBHandler,
    RawHandler,
    handler_for_extension,
    register_handler,
)
from vista.lookup import DictResolver, FileSystemResolver, LookupContext, Resolver
from vista.protocols import Handler, LookupContextProtocol, RenderingContext
from vista.template import EPOCH, InlineTemplate, OutputBuffer, Template
from vista.utils.html import Markup, html_escape
from vista.view import View

__version__ = "0.1.0"

__all__ = [
    "DictResolver",
    "EPOCH",
    "ERB",
    "ERBHandler",
    "ErrorCode",
    "FileSystemResolver",
    "Handler",
    "InlineTemplate",
    "LookupContext",
    "LookupContextProtocol",
    "Markup",
    "MissingTemplateError",
    "OutputBuffer",
    "RAW",
    "RawHandler",
    "RenderingContext",
    "Resolver",
    "SourceSnippet",
    "Template",
    "TemplateEncodingError",
    "TemplateError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TemplateUsageError",
    "View",
    "__version__",
    "build_source_snippet",
    "external_encoding",
    "get_external_encoding",
    "handler_for_extension",
    "html_escape",
    "register_handler",
    "set_external_encoding",
]

"""Template handlers and the extension registry.

A handler compiles a Template's source into a render function
``(context, locals) -> str``. Resolvers pick the handler from the
template's file extension:

    >>> from vista.handlers import handler_for_extension
    >>> handler_for_extension("erb")
    <ERBHandler>

Register your own with ``register_handler("md", MarkdownHandler())``.
Mutations replace the registry dict (copy-on-write) so readers never see
a half-updated mapping.
"""

from __future__ import annotations

from vista.handlers.erb import ERBHandler
from vista.handlers.raw import RawHandler
from vista.protocols import Handler

ERB = ERBHandler()
RAW = RawHandler()

_DEFAULT_HANDLERS: dict[str, Handler] = {"erb": ERB, "raw": RAW, "txt": RAW}

_handlers: dict[str, Handler] = dict(_DEFAULT_HANDLERS)


def register_handler(extension: str, handler: Handler) -> None:
    """Register *handler* for templates ending in ``.<extension>``."""
    if not isinstance(handler, Handler):
        raise TypeError(f"{handler!r} has no compile(template) method")
    global _handlers
    new = _handlers.copy()
    new[extension.lstrip(".")] = handler
    _handlers = new


def unregister_handler(extension: str) -> None:
    global _handlers
    new = _handlers.copy()
    new.pop(extension.lstrip("."), None)
    _handlers = new


def reset_handlers() -> None:
    """Restore the built-in handlers."""
    global _handlers
    _handlers = dict(_DEFAULT_HANDLERS)


def handler_for_extension(extension: str) -> Handler | None:
    return _handlers.get(extension.lstrip("."))


def registered_extensions() -> list[str]:
    return sorted(_handlers)


__all__ = [
    "ERB",
    "ERBHandler",
    "RAW",
    "RawHandler",
    "handler_for_extension",
    "register_handler",
    "registered_extensions",
    "reset_handlers",
    "unregister_handler",
]

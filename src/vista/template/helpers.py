"""Runtime helpers bound into compiled templates."""

from __future__ import annotations

import inspect
from typing import Any


def context_lookup(context: Any, name: str) -> Any:
    """Resolve a free template name against the rendering context.

    Bound methods are called with no arguments, so ``<%= hello %>`` renders
    the result of ``context.hello()``. Other attributes are returned as is.

    Raises:
        NameError: the context has no attribute *name*.
    """
    try:
        value = getattr(context, name)
    except AttributeError:
        raise NameError(
            f"name '{name}' is not a template local and "
            f"{type(context).__name__} has no attribute '{name}'",
            name=name,
        ) from None
    if inspect.ismethod(value):
        return value()
    return value

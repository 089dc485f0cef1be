"""Lookup context: resolves templates by name, prefix and partial flag.

    >>> lookup = LookupContext([DictResolver({"posts/show.html.erb": "..."})])
    >>> lookup.find_template("show", "posts")
    <Template posts/show.html.erb>

Found templates are cached per ``(name, prefix, partial, locals)``. A
cached template is returned only while its resolver reports it fresh;
``disable_cache()`` bypasses the cache for the duration of a block, which
is how ``Template.refresh()`` re-reads a template from storage.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager

from vista.exceptions import MissingTemplateError
from vista.lookup.resolvers import (
    DictResolver,
    FileSystemResolver,
    Resolver,
    build_path,
)
from vista.template import Template

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str, bool, tuple[str, ...]]


class LookupContext:
    """Find templates across resolvers, with a freshness-checked cache.

    Attributes:
        resolvers: Resolvers searched in order; first match wins
        formats: Accepted formats, most preferred first
        cache: False while inside ``disable_cache()``
    """

    def __init__(
        self,
        resolvers: Iterable[Resolver],
        formats: Sequence[str] = ("html",),
    ):
        self.resolvers = list(resolvers)
        self.formats = tuple(formats)
        self.cache = True
        self._templates: dict[_CacheKey, tuple[Resolver, Template]] = {}

    @contextmanager
    def disable_cache(self) -> Iterator[None]:
        """Resolve from storage, ignoring cached templates, inside the block."""
        previous = self.cache
        self.cache = False
        try:
            yield
        finally:
            self.cache = previous

    def clear_cache(self) -> None:
        self._templates.clear()

    def find_template(
        self,
        name: str,
        prefix: str = "",
        partial: bool = False,
        locals: Sequence[str] = (),
    ) -> Template:
        """Return the template for ``(name, prefix, partial)``.

        Raises:
            MissingTemplateError: no resolver has the template.
        """
        key: _CacheKey = (name, prefix, partial, tuple(sorted(locals)))
        if self.cache:
            cached = self._templates.get(key)
            if cached is not None:
                resolver, template = cached
                if not resolver.is_stale(template):
                    logger.debug("Cache hit for %s", template.identifier)
                    return template
                logger.debug("Template %s is stale, reloading", template.identifier)

        for resolver in self.resolvers:
            found = resolver.find_all(name, prefix, partial, self.formats, locals)
            if found:
                template = found[0]
                self._templates[key] = (resolver, template)
                logger.debug("Resolved %s to %s", build_path(name, prefix, partial), template.identifier)
                return template

        raise MissingTemplateError(name, prefix, partial, [repr(r) for r in self.resolvers])

    def exists(
        self,
        name: str,
        prefix: str = "",
        partial: bool = False,
        locals: Sequence[str] = (),
    ) -> bool:
        try:
            self.find_template(name, prefix, partial, locals)
        except MissingTemplateError:
            return False
        return True

    def __repr__(self) -> str:
        return f"<LookupContext resolvers={self.resolvers!r} formats={self.formats!r}>"


__all__ = [
    "DictResolver",
    "FileSystemResolver",
    "LookupContext",
    "Resolver",
    "build_path",
]

"""Template resolvers for the lookup context.

A resolver turns ``(name, prefix, partial)`` into Template instances. The
path ``"{prefix}/{_}{name}"`` is matched against stored templates named
``"{path}.{format}.{ext}"`` or ``"{path}.{ext}"``, where ``ext`` selects
the handler from the registry.

Built-in Resolvers:
- `DictResolver`: templates from an in-memory mapping (tests, embedded apps)
- `FileSystemResolver`: templates from a view directory

Freshness:
Each resolver reports the current timestamp of a template it produced.
The lookup context treats a cached template as stale once its
``updated_at`` is older than that timestamp, which is always the case
after ``Template.expire()``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import NamedTuple

from vista.handlers import handler_for_extension
from vista.protocols import Handler
from vista.template import Template
from vista.template.paths import PARTIAL_MARKER


class _Match(NamedTuple):
    key: str
    format: str | None
    handler: Handler
    rank: int


def build_path(name: str, prefix: str = "", partial: bool = False) -> str:
    """Return the virtual path for a lookup.

    Example:
        >>> build_path("comment", "posts", partial=True)
        'posts/_comment'
    """
    if partial:
        name = f"{PARTIAL_MARKER}{name}"
    return f"{prefix}/{name}" if prefix else name


def match_filename(
    filename: str, basename: str, formats: Sequence[str]
) -> tuple[str | None, Handler] | None:
    """Match ``basename[.format].ext`` and return (format, handler).

    Returns None when the name differs, the extension has no registered
    handler, or the format is not one of *formats*.
    """
    if not filename.startswith(basename + "."):
        return None
    extensions = filename[len(basename) + 1:].split(".")
    if len(extensions) > 2:
        return None
    handler = handler_for_extension(extensions[-1])
    if handler is None:
        return None
    fmt = extensions[0] if len(extensions) == 2 else None
    if fmt is not None and formats and fmt not in formats:
        return None
    return fmt, handler


class Resolver:
    """Base class: matching and Template construction shared by resolvers."""

    encoding: str | None = None

    def find_all(
        self,
        name: str,
        prefix: str = "",
        partial: bool = False,
        formats: Sequence[str] = (),
        locals: Iterable[str] = (),
    ) -> list[Template]:
        """Return all templates for the lookup, best format match first."""
        path = build_path(name, prefix, partial)
        dirname, _, basename = path.rpartition("/")
        matches = []
        for key, filename in self._candidates(dirname):
            found = match_filename(filename, basename, formats)
            if found is None:
                continue
            fmt, handler = found
            rank = formats.index(fmt) if fmt in formats else len(formats)
            matches.append(_Match(key, fmt, handler, rank))
        matches.sort(key=lambda m: (m.rank, m.key))
        return [self._build(m, path, list(locals)) for m in matches]

    def _build(self, match: _Match, path: str, local_names: list[str]) -> Template:
        return Template(
            self._read(match.key),
            match.key,
            match.handler,
            virtual_path=path,
            locals=local_names,
            updated_at=self.updated_at(match.key),
            format=match.format,
            encoding=self.encoding,
        )

    def is_stale(self, template: Template) -> bool:
        """True if storage holds a newer version than *template*."""
        current = self.updated_at(template.identifier)
        return current is None or template.updated_at < current

    def _candidates(self, dirname: str) -> Iterable[tuple[str, str]]:
        """Yield (key, filename) for every entry stored under *dirname*."""
        raise NotImplementedError

    def _read(self, key: str) -> str | bytes:
        raise NotImplementedError

    def updated_at(self, key: str) -> datetime | None:
        raise NotImplementedError


class DictResolver(Resolver):
    """Resolve templates from a mapping of file names to sources.

    Example:
        >>> resolver = DictResolver({"posts/_comment.html.erb": "<%= body %>"})
        >>> [t.virtual_path for t in resolver.find_all("comment", "posts", True)]
        ['posts/_comment']
    """

    def __init__(
        self,
        mapping: Mapping[str, str | bytes],
        *,
        updated_at: datetime | None = None,
        encoding: str | None = None,
    ):
        stamp = updated_at or datetime.now(UTC)
        self._mapping = dict(mapping)
        self._timestamps = dict.fromkeys(self._mapping, stamp)
        self.encoding = encoding

    def update(self, key: str, source: str | bytes, updated_at: datetime | None = None) -> None:
        """Store a new version of *key*, making cached copies stale."""
        self._mapping[key] = source
        self._timestamps[key] = updated_at or datetime.now(UTC)

    def _candidates(self, dirname: str) -> Iterable[tuple[str, str]]:
        for key in self._mapping:
            key_dir, _, filename = key.rpartition("/")
            if key_dir == dirname:
                yield key, filename

    def _read(self, key: str) -> str | bytes:
        return self._mapping[key]

    def updated_at(self, key: str) -> datetime | None:
        return self._timestamps.get(key)

    def __repr__(self) -> str:
        return f"<DictResolver {len(self._mapping)} templates>"


class FileSystemResolver(Resolver):
    """Resolve templates from a view directory.

    Files are read as bytes and decoded by the template, so magic comments
    and the external encoding apply. ``updated_at`` is the file mtime.
    """

    def __init__(self, path: str | Path, *, encoding: str | None = None):
        self._path = Path(path)
        self.encoding = encoding

    @property
    def path(self) -> Path:
        return self._path

    def _candidates(self, dirname: str) -> Iterable[tuple[str, str]]:
        directory = self._path / dirname if dirname else self._path
        if not directory.is_dir():
            return
        for entry in sorted(directory.iterdir()):
            if entry.is_file():
                yield str(entry), entry.name

    def _read(self, key: str) -> bytes:
        return Path(key).read_bytes()

    def updated_at(self, key: str) -> datetime | None:
        try:
            return datetime.fromtimestamp(Path(key).stat().st_mtime, UTC)
        except FileNotFoundError:
            return None

    def __repr__(self) -> str:
        return f"<FileSystemResolver {self._path}>"

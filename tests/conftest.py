"""Pytest configuration and fixtures for Vista tests."""

from contextlib import contextmanager

import pytest

from vista import ERB, DictResolver, LookupContext, Template, View
from vista import terminal
from vista.handlers import reset_handlers


class FakeLookupContext:
    """Lookup context double that records find_template calls."""

    def __init__(self, result=None):
        self.result = result
        self.calls = []
        self.cache_disabled_during_lookup = []
        self._cache = True

    @contextmanager
    def disable_cache(self):
        previous, self._cache = self._cache, False
        try:
            yield
        finally:
            self._cache = previous

    def find_template(self, name, prefix="", partial=False, locals=()):
        self.calls.append((name, prefix, partial, list(locals)))
        self.cache_disabled_during_lookup.append(not self._cache)
        return self.result


class Context:
    """Minimal rendering context: a helper method, a buffer and a lookup."""

    def __init__(self):
        self.output_buffer = "original"
        self._template = None
        self.lookup_context = FakeLookupContext()

    def hello(self):
        return "Hello"

    def partial(self):
        return Template(
            "<%= self._template.virtual_path %>",
            "partial",
            ERB,
            virtual_path="partial",
        )

    def my_buffer(self):
        return self.output_buffer

    def render(self, **directive):
        raise AssertionError(f"unexpected render({directive!r})")


def new_template(body="<%= hello %>", **details):
    details.setdefault("virtual_path", "hello")
    return Template(body, "hello template", ERB, **details)


@pytest.fixture
def context():
    """A fresh rendering context."""
    return Context()


@pytest.fixture(autouse=True)
def _restore_handlers():
    yield
    reset_handlers()


@pytest.fixture(autouse=True)
def _plain_terminal(monkeypatch):
    """Render diagnostics without ANSI codes unless a test opts in."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def templates():
    """Sources for a small in-memory view tree."""
    return {
        "posts/show.html.erb": "<h1><%= title %></h1>\n<%== render(partial='posts/comment', object=comment) %>",
        "posts/_comment.html.erb": "<p><%= comment %></p>",
        "posts/index.html.erb": "<% for post in posts: %><%= post %>,<% end %>",
        "layout.html.erb": "<body><%= content %></body>",
        "_footer.html.erb": "footer",
        "notes.txt": "plain <%= text %>",
    }


@pytest.fixture
def lookup(templates):
    """LookupContext over a DictResolver with the ``templates`` fixture."""
    return LookupContext([DictResolver(templates)])


@pytest.fixture
def view(lookup):
    """A View with a title assign."""
    return View(lookup, {"title": "Hello & welcome"})

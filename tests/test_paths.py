"""Tests for virtual path handling."""

import pytest
from hypothesis import given

from vista.lookup.resolvers import build_path
from vista.template.paths import VirtualPath, render_directive, split_virtual_path, variable_name

from .strategies import virtual_paths


class TestSplitVirtualPath:
    @pytest.mark.parametrize(
        ("virtual_path", "expected"),
        [
            ("test/foo", VirtualPath("test", "foo", False)),
            ("test/_foo", VirtualPath("test", "foo", True)),
            ("foo", VirtualPath("", "foo", False)),
            ("_foo", VirtualPath("", "foo", True)),
            ("admin/posts/_form", VirtualPath("admin/posts", "form", True)),
            ("test/foo_bar", VirtualPath("test", "foo_bar", False)),
        ],
    )
    def test_split(self, virtual_path, expected) -> None:
        assert split_virtual_path(virtual_path) == expected

    def test_only_leading_underscore_marks_partial(self) -> None:
        assert split_virtual_path("a/b_c") == VirtualPath("a", "b_c", False)
        assert split_virtual_path("_a/b").partial is False

    @given(virtual_paths)
    def test_build_path_inverts_split(self, virtual_path: str) -> None:
        parts = split_virtual_path(virtual_path)
        assert build_path(parts.name, parts.prefix, parts.partial) == virtual_path

    @given(virtual_paths)
    def test_directive_names_one_kind(self, virtual_path: str) -> None:
        directive = render_directive(virtual_path)
        assert len(directive) == 1
        (kind, path), = directive.items()
        assert kind == ("partial" if split_virtual_path(virtual_path).partial else "template")
        assert "/_" not in "/" + path


class TestVariableName:
    @pytest.mark.parametrize(
        ("virtual_path", "expected"),
        [
            ("people/_person", "person"),
            ("people/_person.html", "person"),
            ("_line_item", "line_item"),
            ("posts/show", "show"),
            ("posts/bad-name", None),
        ],
    )
    def test_variable_name(self, virtual_path, expected) -> None:
        assert variable_name(virtual_path) == expected

"""Tests for the handler registry."""

import pytest

from vista import ERB, RAW, Template
from vista.handlers import (
    handler_for_extension,
    register_handler,
    registered_extensions,
    reset_handlers,
    unregister_handler,
)


class UpperHandler:
    extension = "up"
    default_format = "text"

    def compile(self, template):
        body = template.source.upper()
        return lambda context, local_assigns: body


class TestRegistry:
    def test_defaults(self) -> None:
        assert handler_for_extension("erb") is ERB
        assert handler_for_extension(".txt") is RAW
        assert registered_extensions() == ["erb", "raw", "txt"]

    def test_register(self) -> None:
        handler = UpperHandler()
        register_handler(".up", handler)
        assert handler_for_extension("up") is handler

    def test_register_rejects_non_handlers(self) -> None:
        with pytest.raises(TypeError):
            register_handler("bad", object())

    def test_unregister_and_reset(self) -> None:
        unregister_handler("erb")
        assert handler_for_extension("erb") is None
        reset_handlers()
        assert handler_for_extension("erb") is ERB

    def test_registry_is_replaced_not_mutated(self) -> None:
        from vista import handlers

        before = handlers._handlers
        register_handler("up", UpperHandler())
        assert "up" not in before
        assert handlers._handlers is not before


class TestCustomHandler:
    def test_template_uses_handler(self, context) -> None:
        template = Template("shout", "a.up", UpperHandler())
        assert template.format == "text"
        assert template.render(context) == "SHOUT"

    def test_lookup_finds_registered_handler(self, context) -> None:
        from vista import DictResolver, LookupContext

        register_handler("up", UpperHandler())
        lookup = LookupContext([DictResolver({"loud.up": "hey"})])
        assert lookup.find_template("loud").render(context) == "HEY"

    def test_raw_handler(self, context) -> None:
        template = Template("<b><%= x %></b>", "a.raw", RAW)
        assert template.format is None
        assert template.render(context) == "<b><%= x %></b>"

"""Tests for Markup and HTML escaping."""

from hypothesis import given
from hypothesis import strategies as st

from vista import Markup, OutputBuffer, html_escape


class TestEscape:
    def test_escapes_specials(self) -> None:
        assert html_escape("<a href=\"x\">'&'</a>") == (
            "&lt;a href=&quot;x&quot;&gt;&#39;&amp;&#39;&lt;/a&gt;"
        )

    def test_none_is_empty(self) -> None:
        assert html_escape(None) == ""

    def test_markup_passes_through(self) -> None:
        assert html_escape(Markup("<b>")) == "<b>"

    def test_html_protocol(self) -> None:
        class Link:
            def __html__(self):
                return "<a>"

        assert html_escape(Link()) == "<a>"

    def test_non_strings(self) -> None:
        assert html_escape(42) == "42"

    @given(st.text())
    def test_escaped_text_has_no_markup(self, text: str) -> None:
        escaped = html_escape(text)
        assert isinstance(escaped, Markup)
        assert not set("<>\"'") & set(escaped)


class TestMarkup:
    def test_concatenation_escapes_plain_strings(self) -> None:
        assert Markup("<b>") + "<i>" == "<b>&lt;i&gt;"
        assert "<i>" + Markup("<b>") == "&lt;i&gt;<b>"
        assert isinstance("x" + Markup("y"), Markup)

    def test_encoding(self) -> None:
        assert Markup("x").encoding == "utf-8"

    def test_repr(self) -> None:
        assert repr(Markup("hi")) == "Markup('hi')"


class TestOutputBuffer:
    def test_append_escapes(self) -> None:
        buf = OutputBuffer()
        buf.append("<")
        buf.safe_append("<")
        buf.safe_append(None)
        assert buf.to_markup() == "&lt;<"
        assert len(buf) == 2

"""Tests for decoding byte sources before compilation."""

from __future__ import annotations

import pytest

from vista import ERB, RAW, Template, TemplateRuntimeError
from vista.config import external_encoding, get_external_encoding, set_external_encoding
from vista.exceptions import ErrorCode, TemplateEncodingError
from vista.template.encoding import decode_source

from .conftest import new_template


def render(template, context):
    return template.render(context, {})


class TestExternalEncoding:
    """Byte sources without a magic comment use the external encoding."""

    def test_external_encoding_decodes_bytes(self, context) -> None:
        with external_encoding("iso-8859-1"):
            template = new_template(b"hello \xfcmlat", virtual_path=None)
            result = render(template, context)
        assert result.encoding == "utf-8"
        assert result == "hello ümlat"

    def test_default_is_utf8(self, context) -> None:
        assert get_external_encoding() == "utf-8"
        template = new_template("hello ümlat".encode(), virtual_path=None)
        assert render(template, context) == "hello ümlat"

    def test_error_when_template_isnt_valid_utf8(self, context) -> None:
        template = new_template(b"hello \xfcmlat", virtual_path=None)
        with pytest.raises(TemplateRuntimeError) as exc_info:
            render(template, context)
        assert "\\xfc" in str(exc_info.value)
        assert exc_info.value.code is ErrorCode.INVALID_BYTES

    def test_external_encoding_is_restored(self) -> None:
        with external_encoding("latin-1") as name:
            assert name == "iso8859-1"
        assert get_external_encoding() == "utf-8"

    def test_set_external_encoding_returns_reset_token(self) -> None:
        from vista.config import _external_encoding

        token = set_external_encoding("iso-8859-1")
        try:
            assert get_external_encoding() == "iso8859-1"
        finally:
            _external_encoding.reset(token)
        assert get_external_encoding() == "utf-8"

    def test_unknown_external_encoding(self) -> None:
        with pytest.raises(LookupError):
            set_external_encoding("no-such-codec")


class TestMagicComment:
    """In-source encoding declarations win over every other setting."""

    def test_magic_comment_overrides_external_encoding(self, context) -> None:
        template = new_template(
            b"# encoding: ISO-8859-1\nhello \xfcmlat", virtual_path=None
        )
        result = render(template, context)
        assert result.encoding == "utf-8"
        assert result == "\nhello ümlat"
        assert template.original_encoding == "iso8859-1"

    def test_lying_with_magic_comment(self, context) -> None:
        with external_encoding("iso-8859-1"):
            template = new_template(
                b"# encoding: UTF-8\nhello \xfcmlat", virtual_path=None
            )
            with pytest.raises(TemplateEncodingError):
                render(template, context)

    def test_encoding_can_be_specified_with_handler_tag(self, context) -> None:
        template = new_template(
            b"<%# encoding: ISO-8859-1 %>hello \xfcmlat", virtual_path=None
        )
        assert render(template, context) == "hello ümlat"

    def test_handler_tag_with_trim(self, context) -> None:
        template = new_template(
            b"<%# coding: latin-1 -%>hello \xfcmlat", virtual_path=None
        )
        assert render(template, context) == "hello ümlat"

    def test_magic_comment_is_stripped_from_text_source(self, context) -> None:
        template = new_template("# encoding: utf-8\n<%= hello %>", virtual_path=None)
        assert render(template, context) == "\nHello"
        assert template.original_encoding is None

    def test_unknown_encoding_in_magic_comment(self, context) -> None:
        template = new_template(b"# encoding: klingon\nhello", virtual_path=None)
        with pytest.raises(TemplateEncodingError) as exc_info:
            render(template, context)
        assert exc_info.value.code is ErrorCode.UNKNOWN_ENCODING
        assert "klingon" in str(exc_info.value)

    def test_raw_handler_has_no_tag(self, context) -> None:
        template = Template(
            b"<%# encoding: ISO-8859-1 %>ok", "raw", RAW, virtual_path=None
        )
        assert render(template, context) == "<%# encoding: ISO-8859-1 %>ok"


class TestDeclaredEncoding:
    def test_declared_encoding_beats_external(self, context) -> None:
        template = new_template(
            b"hello \xfcmlat", virtual_path=None, encoding="iso-8859-1"
        )
        assert render(template, context) == "hello ümlat"

    def test_magic_comment_beats_declared_encoding(self, context) -> None:
        template = new_template(
            "# encoding: utf-8\nhello ümlat".encode(),
            virtual_path=None,
            encoding="iso-8859-1",
        )
        assert render(template, context) == "\nhello ümlat"

    def test_encode_runs_once(self) -> None:
        template = new_template(b"# encoding: latin-1\n\xfc", virtual_path=None)
        template.encode()
        template.encode()
        assert template.source == "\nü"


class TestDecodeSource:
    def test_text_passes_through(self) -> None:
        assert decode_source("plain") == ("plain", None)

    def test_bytes_report_encoding(self) -> None:
        decoded = decode_source(b"caf\xc3\xa9")
        assert decoded.text == "café"
        assert decoded.encoding == "utf-8"

    def test_handler_tag_needs_handler(self) -> None:
        decoded = decode_source(b"<%# encoding: latin-1 %>x", declared="ascii")
        assert decoded.text == "<%# encoding: latin-1 %>x"

        decoded = decode_source(b"<%# encoding: latin-1 %>x", handler=ERB)
        assert decoded.text == "x"
        assert decoded.encoding == "iso8859-1"

    def test_error_names_template_and_shows_source(self) -> None:
        with pytest.raises(TemplateEncodingError) as exc_info:
            decode_source(b"ab\xffcd", name="broken.erb")
        error = exc_info.value
        assert error.template_name == "broken.erb"
        assert isinstance(error.original_exception, UnicodeDecodeError)
        assert "at byte 2" in error.message
        assert "ab\\\\xffcd" in error.message

    def test_magic_comment_name_stays_on_its_line(self) -> None:
        decoded = decode_source(b"# encoding:\nlatin-1 text")
        assert decoded.text == "# encoding:\nlatin-1 text"
        assert decoded.encoding == "utf-8"

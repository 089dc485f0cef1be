"""Tests for terminal color utilities."""

from vista import terminal


class TestColorDetection:
    """Test terminal color detection logic."""

    def test_supports_color_respects_no_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        assert terminal._should_use_colors() is False

    def test_force_color_wins(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert terminal._should_use_colors() is True

    def test_supports_color_reads_cached_value(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert terminal.supports_color()

    def test_style_returns_plain_when_disabled(self):
        result = terminal.style("error_code", "V-RUN-001")
        assert result == "V-RUN-001"
        assert "\033[" not in result

    def test_style_adds_codes_when_enabled(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        result = terminal.style("error_code", "V-RUN-001")
        assert "\033[91m" in result  # bright red
        assert "\033[1m" in result  # bold
        assert result.endswith("\033[0m")

    def test_unknown_role_is_plain(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert terminal.style("sparkle", "x") == "x"

    def test_strip_colors_removes_ansi_codes(self):
        colored = "\033[31m\033[1mError\033[0m"
        assert terminal.strip_colors(colored) == "Error"


class TestFormatting:
    def test_error_header(self):
        assert terminal.format_error_header("V-USE-001", "boom") == "V-USE-001: boom"
        assert terminal.format_error_header(None, "boom") == "boom"

    def test_source_line_marks_error(self):
        assert terminal.format_source_line(5, "x", is_error=True) == ">  5 | x"
        assert terminal.format_source_line(12, "y") == "  12 | y"

    def test_colored_source_line_strips_back(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        line = terminal.format_source_line(7, "<%= oops %>", is_error=True)
        assert line != ">  7 | <%= oops %>"
        assert terminal.strip_colors(line) == ">  7 | <%= oops %>"

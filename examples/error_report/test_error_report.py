"""Tests for the error-report example."""


class TestErrorReportApp:
    """Verify nested render errors carry location and stack."""

    def test_failing_partial_and_line(self, example_app) -> None:
        assert example_app.error.template_name == "_nav.html.erb"
        assert example_app.error.lineno == 3

    def test_stack_lists_including_templates(self, example_app) -> None:
        assert example_app.error.template_stack == ["layout.html.erb", "page.html.erb"]

    def test_snippet_shows_typo(self, example_app) -> None:
        snippet = example_app.error.source_snippet
        assert snippet is not None
        assert (3, "  <span>Welcome, <%= usernme %></span>") in snippet.lines

    def test_original_exception(self, example_app) -> None:
        assert isinstance(example_app.error.original_exception, NameError)
        assert example_app.error.assigns == {"username": "ann"}

    def test_message(self, example_app) -> None:
        text = str(example_app.error)
        assert "usernme" in text
        assert "Template stack:" in text

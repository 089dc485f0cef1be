"""Error reports -- line numbers, snippets and the template stack.

A typo in a partial fails while the page renders. The error names the
partial, the line, shows the source around it and lists the templates
that rendered it, even though the compiled partial no longer holds its
source.

Run:
    python app.py
"""

from vista import DictResolver, LookupContext, TemplateRuntimeError, View

templates = {
    "page.html.erb": (
        "<html>\n"
        "<%== render(template='layout') %>\n"
        "</html>"
    ),
    "layout.html.erb": (
        "<body>\n"
        "  <%== render(partial='nav') %>\n"
        "</body>"
    ),
    "_nav.html.erb": (
        "<nav>\n"
        '  <a href="/">Home</a>\n'
        "  <span>Welcome, <%= usernme %></span>\n"
        "</nav>"
    ),
}

view = View(LookupContext([DictResolver(templates)]), {"username": "ann"})


def render_page() -> TemplateRuntimeError:
    try:
        view.render(template="page")
    except TemplateRuntimeError as e:
        return e
    raise AssertionError("page rendered without error")


error = render_page()


def main() -> None:
    print(error)
    print()
    print(error.format_compact().splitlines()[0])


if __name__ == "__main__":
    main()

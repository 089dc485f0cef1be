"""Hello World -- the simplest Vista example.

Render an inline ERB template against a View. No templates directory
needed.

Run:
    python app.py
"""

from vista import DictResolver, LookupContext, View

view = View(LookupContext([DictResolver({})]), {"name": "World"})

# Inline templates are compiled once per source
output = view.render(inline="Hello, <%= name %>!")


def main() -> None:
    print(output)
    print()

    # Same source, different locals
    for name in ["Vista", "ERB", "Python"]:
        print(view.render(inline="Hello, <%= who %>!", locals={"who": name}))


if __name__ == "__main__":
    main()

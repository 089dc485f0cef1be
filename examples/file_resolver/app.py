"""File-based templates -- the most common real-world pattern.

Resolves templates from a view directory with FileSystemResolver, renders
a page with a partial per comment, then shows how expire() makes the
lookup context read a template from disk again.

Run:
    python app.py
"""

from pathlib import Path

from vista import FileSystemResolver, LookupContext, View

templates_dir = Path(__file__).parent / "templates"
lookup = LookupContext([FileSystemResolver(templates_dir)])

post = {
    "title": "Templates & partials",
    "comments": ["First!", "Nice <em>post</em>"],
}
view = View(lookup, {"post": post})

output = view.render(template="posts/show")

show = lookup.find_template("show", "posts")


def main() -> None:
    print(output)
    print(f"{show!r} compiled={show.compiled} source discarded={show.source is None}")

    show.expire()
    print(f"after expire: {lookup.find_template('show', 'posts')!r} is a fresh instance")


if __name__ == "__main__":
    main()

"""Template encodings -- magic comments and the external encoding.

Byte sources are decoded before compiling. A magic comment in the
template wins, then the encoding declared for the template, then the
external encoding.

Run:
    python app.py
"""

from vista import ERB, Template, TemplateEncodingError, external_encoding


class Context:
    pass


latin1 = b"caf\xe9"

# No declaration: decoded with the external encoding
with external_encoding("iso-8859-1"):
    from_external = Template(latin1, "external.erb", ERB).render(Context())

# Magic comment inside the template
from_magic = Template(b"<%# encoding: iso-8859-1 %>" + latin1, "magic.erb", ERB).render(Context())

# Declared on the template
from_declared = Template(latin1, "declared.erb", ERB, encoding="latin-1").render(Context())

try:
    Template(latin1, "broken.erb", ERB).render(Context())
except TemplateEncodingError as e:
    encoding_error = e


def main() -> None:
    for label, value in [
        ("external", from_external),
        ("magic", from_magic),
        ("declared", from_declared),
    ]:
        print(f"{label:>9}: {value} ({value.encoding})")
    print()
    print(encoding_error.message)


if __name__ == "__main__":
    main()

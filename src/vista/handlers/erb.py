"""ERB-style handler: ``<% %>`` markup with embedded Python.

Template Source → Lexer → Tokens → Compiler → Python AST → exec()

Tags:
    ``<%= expr %>``   output, HTML-escaped unless the value is Markup
    ``<%== expr %>``  output without escaping
    ``<% stmt %>``    Python statement; a statement ending in ``:`` opens a
                      block that ``<% end %>`` closes
    ``<%# text %>``   comment
    ``<%%``           literal ``<%``
    ``-%>``           closes a tag and swallows the following newline

Name Resolution:
Inside a template, ``self`` is the rendering context. Declared locals,
names assigned in the template and builtins resolve as usual; every other
name is looked up on the context. A bare name that refers to a method is
called, so ``<%= hello %>`` renders ``self.hello()``; ``hello(1)`` calls
``self.hello(1)``.

Generated code:
    ```python
    def render(self, local_assigns):
        _buf = self.output_buffer
        _append = _buf.append
        _safe_append = _buf.safe_append
        title = local_assigns.get('title')
        _safe_append('<h1>')
        _append(title)
        _safe_append('</h1>')
        return _buf.to_markup()
    ```

The AST is built directly (no source strings); statement fragments are
parsed with ``ast.parse`` and shifted to their template line so tracebacks
and error snippets point at the template source.
"""

from __future__ import annotations

import ast
import builtins
import logging
import re
import textwrap
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from vista.exceptions import ErrorCode, TemplateSyntaxError
from vista.template.encoding import ENCODING_FLAG
from vista.template.helpers import context_lookup

if TYPE_CHECKING:
    from vista.protocols import RenderFunction
    from vista.template import Template

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------


class TokenType(Enum):
    TEXT = "text"
    OUTPUT = "output"
    RAW_OUTPUT = "raw_output"
    CODE = "code"
    COMMENT = "comment"


class Token(NamedTuple):
    type: TokenType
    value: str
    lineno: int


_OPEN = "<%"
_CLOSE = "%>"

# Longest indicator first
_INDICATORS = (
    ("==", TokenType.RAW_OUTPUT),
    ("=", TokenType.OUTPUT),
    ("#", TokenType.COMMENT),
)


def tokenize(source: str, name: str | None = None) -> list[Token]:
    """Split ERB *source* into tokens.

    Raises:
        TemplateSyntaxError: a tag is opened but never closed.
    """
    tokens: list[Token] = []
    pos = 0
    lineno = 1
    length = len(source)
    text: list[str] = []
    text_line = 1

    def flush_text() -> None:
        if text:
            tokens.append(Token(TokenType.TEXT, "".join(text), text_line))
            text.clear()

    while pos < length:
        start = source.find(_OPEN, pos)
        if start == -1:
            if not text:
                text_line = lineno
            text.append(source[pos:])
            break

        if start > pos:
            if not text:
                text_line = lineno
            chunk = source[pos:start]
            text.append(chunk)
            lineno += chunk.count("\n")

        # <%% is a literal <%
        if source.startswith("<%%", start):
            if not text:
                text_line = lineno
            text.append(_OPEN)
            pos = start + 3
            continue

        flush_text()

        inner_start = start + len(_OPEN)
        kind = TokenType.CODE
        for indicator, token_type in _INDICATORS:
            if source.startswith(indicator, inner_start):
                kind = token_type
                inner_start += len(indicator)
                break

        end = source.find(_CLOSE, inner_start)
        if end == -1:
            raise TemplateSyntaxError(
                "Unclosed tag, expected '%>'",
                lineno=lineno,
                name=name,
                source=source,
                code=ErrorCode.UNCLOSED_TAG,
            )

        content = source[inner_start:end]
        pos = end + len(_CLOSE)
        trim = content.endswith("-")
        if trim:
            content = content[:-1]

        tokens.append(Token(kind, content, lineno))
        lineno += content.count("\n")

        if trim and source.startswith("\n", pos):
            pos += 1
            lineno += 1

    flush_text()
    return tokens


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------

_BUILTIN_NAMES = frozenset(dir(builtins))

# Names the generated prologue defines
_INTERNAL_NAMES = frozenset(
    {"self", "local_assigns", "_buf", "_append", "_safe_append", "_lookup"}
)

_CONTINUATIONS = ("elif ", "else", "except", "finally")

_END = re.compile(r"\A\s*end\s*\Z")


@dataclass
class _Frame:
    """An open block: the compound statement and the body being filled."""

    node: ast.stmt
    body: list[ast.stmt]
    lineno: int
    # Last If in an if/elif chain, where the next elif/else attaches
    chain: ast.If | None = None


class _ContextNameRewriter(ast.NodeTransformer):
    """Resolve free names against the rendering context.

    ``name(...)`` becomes ``self.name(...)``; any other free ``name``
    becomes ``_lookup(self, 'name')``, which calls bound methods.
    """

    def __init__(self, known: frozenset[str]):
        self._known = known

    def _is_free(self, node: ast.expr) -> bool:
        return (
            isinstance(node, ast.Name)
            and isinstance(node.ctx, ast.Load)
            and node.id not in self._known
        )

    def visit_Call(self, node: ast.Call) -> ast.AST:
        if self._is_free(node.func):
            name = node.func
            node.func = ast.copy_location(
                ast.Attribute(
                    value=ast.copy_location(ast.Name(id="self", ctx=ast.Load()), name),
                    attr=name.id,
                    ctx=ast.Load(),
                ),
                name,
            )
            node.args = [self.visit(arg) for arg in node.args]
            node.keywords = [self.visit(kw) for kw in node.keywords]
            return node
        return self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> ast.AST:
        if not self._is_free(node):
            return node
        lookup = ast.Call(
            func=ast.Name(id="_lookup", ctx=ast.Load()),
            args=[ast.Name(id="self", ctx=ast.Load()), ast.Constant(node.id)],
            keywords=[],
        )
        return ast.copy_location(lookup, node)


def _bound_names(tree: ast.AST) -> set[str]:
    """Every name the template binds anywhere."""
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Load):
            names.add(node.id)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.alias):
            names.add((node.asname or node.name).split(".")[0])
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
            names.add(node.name)
    return names


def _fix_locations(node: ast.AST, lineno: int = 1) -> None:
    """Give every node a valid position, inheriting the parent's line.

    Generated nodes carry at most ``lineno``; compile() rejects nodes whose
    end position precedes their start.
    """
    if "lineno" in node._attributes:
        if getattr(node, "lineno", None) is None:
            node.lineno = lineno
        lineno = node.lineno
        if getattr(node, "col_offset", None) is None:
            node.col_offset = 0
        end_lineno = getattr(node, "end_lineno", None)
        if end_lineno is None or end_lineno < node.lineno:
            node.end_lineno = node.lineno
        end_col = getattr(node, "end_col_offset", None)
        if end_col is None or (node.end_lineno == node.lineno and end_col < node.col_offset):
            node.end_col_offset = node.col_offset
    for child in ast.iter_child_nodes(node):
        _fix_locations(child, lineno)


def _call(func: str, arg: ast.expr, lineno: int) -> ast.stmt:
    stmt = ast.Expr(
        value=ast.Call(func=ast.Name(id=func, ctx=ast.Load()), args=[arg], keywords=[])
    )
    stmt.lineno = lineno
    return stmt


class ERBCompiler:
    """Compile ERB tokens into a ``render(self, local_assigns)`` code object.

    One compiler per template; not reusable.
    """

    def __init__(self, name: str, source: str, local_names: list[str]):
        self._name = name
        self._source = source
        self._locals = [n for n in local_names if n.isidentifier()]
        self._root: list[ast.stmt] = []
        self._stack: list[_Frame] = []

    @property
    def _body(self) -> list[ast.stmt]:
        return self._stack[-1].body if self._stack else self._root

    def _syntax_error(
        self, message: str, lineno: int, code: ErrorCode = ErrorCode.SYNTAX_ERROR
    ) -> TemplateSyntaxError:
        return TemplateSyntaxError(
            message, lineno=lineno, name=self._name, source=self._source, code=code
        )

    def _parse(self, code: str, lineno: int, mode: str = "exec") -> ast.AST:
        try:
            tree = ast.parse(code, filename=self._name, mode=mode)
        except SyntaxError as e:
            raise self._syntax_error(e.msg, lineno + (e.lineno or 1) - 1) from e
        ast.increment_lineno(tree, lineno - 1)
        return tree

    def _expression(self, code: str, lineno: int) -> ast.expr:
        # Leading newlines/indentation inside a tag are not significant
        stripped = code.strip()
        offset = code[: len(code) - len(code.lstrip())].count("\n")
        tree = self._parse(stripped, lineno + offset, mode="eval")
        assert isinstance(tree, ast.Expression)
        return tree.body

    def _block_header(self, code: str, lineno: int) -> ast.stmt:
        """Parse ``for x in y:`` style headers into an empty compound statement."""
        filler = "\n pass"
        if code.startswith("try"):
            filler += "\nfinally:\n pass"
        tree = self._parse(code + filler, lineno)
        assert isinstance(tree, ast.Module)
        if len(tree.body) != 1:
            raise self._syntax_error(f"Invalid block statement: {code!r}", lineno)
        node = tree.body[0]
        node.body = []
        if isinstance(node, ast.Try):
            node.finalbody = []
        return node

    def _open_block(self, code: str, lineno: int) -> None:
        node = self._block_header(code, lineno)
        self._body.append(node)
        frame = _Frame(node=node, body=node.body, lineno=lineno)
        if isinstance(node, ast.If):
            frame.chain = node
        self._stack.append(frame)

    def _continue_block(self, code: str, lineno: int) -> None:
        if not self._stack:
            raise self._syntax_error(
                f"'{code}' outside of a block", lineno, ErrorCode.UNBALANCED_BLOCK
            )
        frame = self._stack[-1]
        node = frame.node

        if code.startswith("elif ") and frame.chain is not None:
            branch = self._block_header("if " + code[len("elif "):], lineno)
            assert isinstance(branch, ast.If)
            frame.chain.orelse = [branch]
            frame.chain = branch
            frame.body = branch.body
        elif code.startswith("else") and isinstance(
            node, (ast.If, ast.For, ast.AsyncFor, ast.While, ast.Try)
        ):
            target = frame.chain if frame.chain is not None else node
            frame.body = target.orelse = []
        elif code.startswith("except") and isinstance(node, ast.Try):
            tree = self._parse(f"try:\n pass\n{code}\n pass", lineno - 2)
            assert isinstance(tree, ast.Module)
            handler = tree.body[0].handlers[0]
            handler.body = []
            node.handlers.append(handler)
            frame.body = handler.body
        elif code.startswith("finally") and isinstance(node, ast.Try):
            frame.body = node.finalbody = []
        else:
            raise self._syntax_error(
                f"'{code}' does not continue the open block", lineno,
                ErrorCode.UNBALANCED_BLOCK,
            )

    def _close_block(self, lineno: int) -> None:
        if not self._stack:
            raise self._syntax_error(
                "'end' without an open block", lineno, ErrorCode.UNBALANCED_BLOCK
            )
        frame = self._stack.pop()
        node = frame.node
        if isinstance(node, ast.Try) and not node.handlers and not node.finalbody:
            raise self._syntax_error(
                "'try' block needs 'except' or 'finally'",
                frame.lineno,
                ErrorCode.UNBALANCED_BLOCK,
            )

    def _code(self, code: str, lineno: int) -> None:
        offset = code[: len(code) - len(code.lstrip())].count("\n")
        stripped = textwrap.dedent(code).strip()
        lineno += offset
        if not stripped:
            return
        if _END.match(stripped):
            self._close_block(lineno)
        elif stripped.endswith(":") and stripped.startswith(_CONTINUATIONS):
            self._continue_block(stripped, lineno)
        elif stripped.endswith(":"):
            self._open_block(stripped, lineno)
        else:
            tree = self._parse(stripped, lineno)
            assert isinstance(tree, ast.Module)
            self._body.extend(tree.body)

    def _prologue(self) -> list[ast.stmt]:
        def assign(target: str, value: ast.expr) -> ast.stmt:
            stmt = ast.Assign(targets=[ast.Name(id=target, ctx=ast.Store())], value=value)
            stmt.lineno = 1
            return stmt

        def attr(obj: str, name: str) -> ast.expr:
            return ast.Attribute(value=ast.Name(id=obj, ctx=ast.Load()), attr=name, ctx=ast.Load())

        stmts = [
            assign("_buf", attr("self", "output_buffer")),
            assign("_append", attr("_buf", "append")),
            assign("_safe_append", attr("_buf", "safe_append")),
        ]
        for local in self._locals:
            stmts.append(
                assign(
                    local,
                    ast.Call(
                        func=attr("local_assigns", "get"),
                        args=[ast.Constant(local)],
                        keywords=[],
                    ),
                )
            )
        return stmts

    def compile(self, tokens: list[Token]) -> Any:
        """Compile *tokens* and return the code object of the module."""
        for token in tokens:
            if token.type is TokenType.TEXT:
                self._body.append(_call("_safe_append", ast.Constant(token.value), token.lineno))
            elif token.type is TokenType.OUTPUT:
                self._body.append(
                    _call("_append", self._expression(token.value, token.lineno), token.lineno)
                )
            elif token.type is TokenType.RAW_OUTPUT:
                self._body.append(
                    _call("_safe_append", self._expression(token.value, token.lineno), token.lineno)
                )
            elif token.type is TokenType.CODE:
                self._code(token.value, token.lineno)

        if self._stack:
            raise self._syntax_error(
                "Block is never closed, expected '<% end %>'",
                self._stack[-1].lineno,
                ErrorCode.UNBALANCED_BLOCK,
            )

        tree = ast.Module(body=self._root, type_ignores=[])
        # Blocks closed without statements
        for node in ast.walk(tree):
            if node is not tree and getattr(node, "body", None) == []:
                node.body.append(ast.Pass())

        known = frozenset(
            _BUILTIN_NAMES
            | _INTERNAL_NAMES
            | set(self._locals)
            | _bound_names(tree)
        )
        body = [_ContextNameRewriter(known).visit(stmt) for stmt in self._root]

        result = ast.Return(
            value=ast.Call(
                func=ast.Attribute(value=ast.Name(id="_buf", ctx=ast.Load()), attr="to_markup", ctx=ast.Load()),
                args=[],
                keywords=[],
            )
        )
        func = ast.FunctionDef(
            name="render",
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg="self"), ast.arg(arg="local_assigns")],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=[*self._prologue(), *body, result],
            decorator_list=[],
            returns=None,
            type_params=[],
        )
        func.lineno = 1
        module = ast.Module(body=[func], type_ignores=[])
        _fix_locations(module)

        try:
            return compile(module, self._name, "exec")
        except SyntaxError as e:
            raise self._syntax_error(e.msg, e.lineno or 1) from e
        except ValueError as e:
            raise self._syntax_error(str(e), 1) from e


class ERBHandler:
    """Template handler for ``.erb`` templates."""

    extension = "erb"
    default_format = "html"

    # <%# encoding: NAME %> at the very start of the source
    encoding_tag = r"\A<%" + ENCODING_FLAG + r"-?%>[ \t]*"

    def compile(self, template: Template) -> RenderFunction:
        source = template.source
        if not isinstance(source, str):
            raise TypeError(
                f"{template.identifier}: ERB source must be decoded before compiling"
            )
        name = template.identifier
        tokens = tokenize(source, name)
        code = ERBCompiler(name, source, list(template.locals)).compile(tokens)

        namespace: dict[str, Any] = {"_lookup": context_lookup}
        exec(code, namespace)
        logger.debug("Compiled ERB template %s (%d tokens)", name, len(tokens))
        return namespace["render"]

    def __repr__(self) -> str:
        return "<ERBHandler>"

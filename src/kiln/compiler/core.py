"""Code generator: resolved Document -> GeneratedScript.

The generator builds an `ast.Module` directly (no source strings) and
compiles it. Each segment becomes module-level statements:

    ```python
    _write('Hello ')                 # Literal
    _write(_escape(None, name))      # Interpolation {$name}
    total = price * qty              # Code, copied as written
    _write(_escape('uri', query))    # Interpolation {$query,uri}
    ```

``_write`` and ``_escape`` are bound by the runtime for each execution, so
escaping styles are looked up when the script runs, not when it compiles.
Statements sit at module level: top-level names bound by embedded code live
in the execution namespace and are visible to later interpolations.

Line Tracking:
    Statements get consecutive synthetic line numbers. Literals and
    interpolations take one line each; a code block takes as many lines as
    it has, so every line of author code keeps its own marker. The markers
    let a traceback line be mapped back to the authored (file, line).

"""

from __future__ import annotations

import ast
import logging
import textwrap
from collections.abc import Callable, Iterable
from typing import Any

from kiln.compiler.script import GeneratedScript, LineMarker, script_filename
from kiln.environment.exceptions import CodeSyntaxError, IncludeWarning
from kiln.nodes import Code, Document, IncludeDirective, Interpolation, Literal, Segment

logger = logging.getLogger(__name__)

# Names the generated statements expect in the execution namespace
WRITE = "_write"
ESCAPE = "_escape"


def _call(func: str, *args: ast.expr) -> ast.Call:
    return ast.Call(
        func=ast.Name(id=func, ctx=ast.Load()),
        args=list(args),
        keywords=[],
    )


def _parses(text: str) -> bool:
    try:
        ast.parse(text)
    except (SyntaxError, ValueError):
        return False
    return True


def normalize_code(text: str, lineno: int) -> tuple[str, int]:
    """Prepare a code block for parsing.

    Drops a whitespace-only first line (the rest of the ``<?py`` line) and
    removes common indentation. Code starting on the ``<?py`` line loses
    the separator after the opener; the lines after it keep their own
    indentation when that parses (a suite body), and are dedented otherwise
    (a block indented along with the surrounding template). Returns the
    code and the authored line of its first line.
    """
    first, sep, rest = text.partition("\n")
    if not sep:
        return first.lstrip(" \t"), lineno
    if not first.strip():
        return textwrap.dedent(rest), lineno + 1
    first = first.lstrip(" \t")
    as_written = f"{first}\n{rest}"
    if _parses(as_written):
        return as_written, lineno
    return f"{first}\n{textwrap.dedent(rest)}", lineno


class CodeGenerator:
    """Generate a script from a fully resolved Document.

    Node Dispatch:
        O(1) dict lookup from segment type name to handler, as in
        ``self._dispatch[type(segment).__name__](segment)``.

    Not thread-safe: use one generator per thread (they are cheap).

    """

    __slots__ = ("_body", "_dispatch", "_line", "_markers", "_sources")

    def __init__(self) -> None:
        self._body: list[ast.stmt] = []
        self._markers: list[LineMarker] = []
        self._line = 1
        self._sources: dict[str, str] = {}
        self._dispatch: dict[str, Callable[[Any], None]] = {
            "Literal": self._generate_literal,
            "Interpolation": self._generate_interpolation,
            "Code": self._generate_code,
            "IncludeDirective": self._generate_include,
        }

    def generate(
        self,
        document: Document,
        *,
        sources: dict[str, str] | None = None,
        warnings: Iterable[IncludeWarning] = (),
    ) -> GeneratedScript:
        """Generate and compile the script for ``document``.

        Args:
            document: Document with includes already resolved
            sources: Source text per authored file (for error snippets);
                defaults to the document's own source
            warnings: Include warnings to carry on the script

        Raises:
            CodeSyntaxError: If a code block is not valid Python
            RuntimeError: If an include directive was left unresolved
        """
        self._body = []
        self._markers = []
        self._line = 1
        self._sources = dict(sources) if sources else {document.name: document.source}

        for segment in document.segments:
            self._dispatch[type(segment).__name__](segment)

        module = ast.Module(body=self._body, type_ignores=[])
        ast.fix_missing_locations(module)
        filename = script_filename(document.name)
        try:
            code = compile(module, filename, "exec")
        except SyntaxError as e:
            # Valid syntax in isolation, invalid at module level
            # (e.g. 'return' outside a function)
            raise self._syntax_error(e, self._locate(e.lineno)) from e

        logger.debug(
            f"Compiled {document.name}: {len(document.segments)} segments, "
            f"{len(self._body)} statements"
        )
        return GeneratedScript(
            name=document.name,
            module=module,
            code=code,
            markers=tuple(self._markers),
            warnings=tuple(warnings),
            sources=self._sources,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Statement placement
    # ─────────────────────────────────────────────────────────────────────

    def _place(self, stmt: ast.stmt, segment: Segment) -> None:
        """Append a one-line statement with a marker for ``segment``."""
        stmt.lineno = stmt.end_lineno = self._line
        stmt.col_offset = stmt.end_col_offset = 0
        self._markers.append(LineMarker(self._line, segment.filename, segment.lineno))
        self._body.append(stmt)
        self._line += 1

    def _locate(self, line: int | None) -> tuple[str, int] | None:
        if line is None:
            return None
        found = None
        for marker in self._markers:
            if marker.line > line:
                break
            found = marker
        return (found.filename, found.lineno) if found else None

    def _syntax_error(self, error: SyntaxError, where: tuple[str, int] | None) -> CodeSyntaxError:
        filename, lineno = where if where else (None, None)
        return CodeSyntaxError(
            error.msg,
            lineno=lineno,
            filename=filename,
            source=self._sources.get(filename) if filename else None,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Segment handlers
    # ─────────────────────────────────────────────────────────────────────

    def _generate_literal(self, segment: Literal) -> None:
        """Literal text: _write("text"). Empty text emits nothing."""
        if segment.text:
            self._place(ast.Expr(value=_call(WRITE, ast.Constant(value=segment.text))), segment)

    def _generate_interpolation(self, segment: Interpolation) -> None:
        """{$name,style}: _write(_escape(style, name))"""
        value = _call(
            ESCAPE,
            ast.Constant(value=segment.style),
            ast.Name(id=segment.name, ctx=ast.Load()),
        )
        self._place(ast.Expr(value=_call(WRITE, value)), segment)

    def _generate_code(self, segment: Code) -> None:
        """Embedded code: the block's statements, unchanged, in place."""
        text, first_line = normalize_code(segment.text, segment.lineno)
        try:
            tree = ast.parse(text, filename=segment.filename, mode="exec")
        except SyntaxError as e:
            where = (segment.filename, first_line + (e.lineno or 1) - 1)
            raise self._syntax_error(e, where) from e

        if not tree.body:
            return
        ast.increment_lineno(tree, self._line - 1)
        line_count = text.count("\n") + 1
        for offset in range(line_count):
            self._markers.append(
                LineMarker(self._line + offset, segment.filename, first_line + offset)
            )
        self._body.extend(tree.body)
        self._line += line_count

    def _generate_include(self, segment: IncludeDirective) -> None:
        raise RuntimeError(
            f"Unresolved include '{segment.path}' at {segment.filename}:{segment.lineno}; "
            "includes must be resolved before code generation"
        )


def generate(
    document: Document,
    *,
    sources: dict[str, str] | None = None,
    warnings: Iterable[IncludeWarning] = (),
) -> GeneratedScript:
    """Generate the script for a resolved document."""
    return CodeGenerator().generate(document, sources=sources, warnings=warnings)

"""GeneratedScript: the compiled form of one template.

A script is a Python module whose statements are numbered with synthetic
*generated* line numbers. Each generated line has a `LineMarker` naming the
authored (file, line) it came from, so a traceback line inside the script
maps straight back to the template, across includes.

"""

from __future__ import annotations

import ast
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import types

    from kiln.environment.exceptions import IncludeWarning


SCRIPT_FILENAME_PREFIX = "<kiln:"


def script_filename(name: str) -> str:
    """Synthetic ``co_filename`` given to compiled scripts."""
    return f"{SCRIPT_FILENAME_PREFIX}{name}>"


@dataclass(frozen=True, slots=True)
class LineMarker:
    """Generated line -> authored location."""

    line: int
    filename: str
    lineno: int


@dataclass(frozen=True, slots=True)
class GeneratedScript:
    """Compiled template, ready to hand to a code executor.

    Attributes:
        name: Reported name of the top-level template
        module: Generated Python AST (for listing and introspection)
        code: Compiled code object of ``module``
        markers: Line markers sorted by generated line
        warnings: Include warnings recorded while compiling
        sources: Source text per authored file, for error snippets

    Scripts contain no include directives and are immutable; one script can
    run any number of times, concurrently, each run in its own namespace.
    """

    name: str
    module: ast.Module
    code: types.CodeType
    markers: tuple[LineMarker, ...]
    warnings: tuple[IncludeWarning, ...] = ()
    sources: dict[str, str] = field(default_factory=dict)
    _lines: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_lines", tuple(m.line for m in self.markers))

    @property
    def filename(self) -> str:
        """The synthetic filename tracebacks show for this script."""
        return self.code.co_filename

    def locate(self, line: int) -> tuple[str, int] | None:
        """Map a generated line number to its authored (file, line)."""
        index = bisect_right(self._lines, line) - 1
        if index < 0:
            return None
        marker = self.markers[index]
        return marker.filename, marker.lineno

    def listing(self) -> str:
        """Render the script as Python source with ``# line`` markers.

        Example:
            >>> print(compile_template("Hi {$name}!").listing())
            # line 1 "<string>"
            _write('Hi ')
            # line 1 "<string>"
            _write(_escape(None, name))
            # line 1 "<string>"
            _write('!')
        """
        out: list[str] = []
        for stmt in self.module.body:
            where = self.locate(stmt.lineno)
            if where is not None:
                out.append(f'# line {where[1]} "{where[0]}"')
            out.append(ast.unparse(stmt))
        return "\n".join(out)

    def __len__(self) -> int:
        return len(self.module.body)

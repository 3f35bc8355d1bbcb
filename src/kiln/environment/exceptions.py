"""Exceptions and warnings for the kiln template system.

Exception Hierarchy:
TemplateError (base)
├── CompileError              # Compilation aborted, no script produced
│   ├── ScanError             # Unterminated code/include/interpolation token
│   └── CodeSyntaxError       # Embedded code is not valid Python
├── TemplateNotFoundError     # Top-level template file not found
└── ExecutionError            # Embedded code failed at run time

`IncludeWarning` is not an exception: a missing or cyclic include never
aborts compilation. Warnings are logged and recorded on the compiled script.

Error Messages:
All errors name the authored file and line, never the generated script's:

    ```
    Runtime Error: division by zero
      Location: invoice.txt:12
       |
     11 | Total: {$total}
    >12 | <?py ratio = paid / due ?>
     13 | Ratio: {$ratio}
       |
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kiln.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes.

    Format: KLN-{CATEGORY}-{NUMBER}
    Categories: SCN (scanner), CMP (compiler), INC (includes),
    RUN (runtime), TPL (template loading)
    """

    # Scanner errors (KLN-SCN-xxx)
    UNTERMINATED_CODE = "KLN-SCN-001"
    UNTERMINATED_INCLUDE = "KLN-SCN-002"
    UNTERMINATED_INTERPOLATION = "KLN-SCN-003"

    # Compiler errors (KLN-CMP-xxx)
    CODE_SYNTAX = "KLN-CMP-001"

    # Include warnings (KLN-INC-xxx)
    INCLUDE_NOT_FOUND = "KLN-INC-001"
    INCLUDE_CYCLE = "KLN-INC-002"

    # Runtime errors (KLN-RUN-xxx)
    EXECUTION_FAILED = "KLN-RUN-001"

    # Template loading errors (KLN-TPL-xxx)
    TEMPLATE_NOT_FOUND = "KLN-TPL-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'scanner', 'runtime')."""
        prefix = self.value.split("-")[1]
        return {
            "SCN": "scanner",
            "CMP": "compiler",
            "INC": "include",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet with numbered lines and the error line marked."""
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
            if lineno == self.error_line and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('   |')} {terminal.style(caret, 'bright_red')}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet | None:
    """Build a SourceSnippet from template source.

    Returns None when ``error_line`` is outside the source.
    """
    all_lines = source.splitlines()
    if not 0 < error_line <= len(all_lines):
        return None
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _location(filename: str | None, lineno: int | None, col_offset: int | None = None) -> str:
    loc = filename or "<template>"
    if lineno:
        loc += f":{lineno}"
        if col_offset is not None:
            loc += f":{col_offset}"
    return loc


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TemplateError(Exception):
    """Base exception for all kiln template errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-screen terminal diagnostic."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{terminal.error_code(self.code.value)}: {header}"
        return header


class CompileError(TemplateError):
    """Compile-time failure with the authored location.

    When ``source`` and ``lineno`` are provided the message includes a
    snippet of the offending line, with a caret if ``col_offset`` is known.
    """

    kind = "Compile Error"

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        self.source_snippet = (
            build_source_snippet(source, lineno, context_lines=0, column=col_offset)
            if source and lineno
            else None
        )
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        location = _location(self.filename, self.lineno, self.col_offset)
        header = f"{self.kind}: {self.message}\n  --> {location}"
        if self.source_snippet:
            return f"{header}\n{terminal.strip_colors(self.source_snippet.format())}"
        return header

    def format_compact(self) -> str:
        parts = [
            f"{terminal.error_code(self.code.value)}: {self.message}"
            if self.code
            else self.message,
            f"  --> {terminal.location(_location(self.filename, self.lineno, self.col_offset))}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        return "\n".join(parts)


class ScanError(CompileError):
    """A construct was opened but never closed.

    ``lineno`` and ``col_offset`` point at the opener, not at end of input.

    Example:
        ```
        Scan Error: Unterminated code block (missing '?>')
          --> page.txt:3:0
           |
        >  3 | <?py total = 0
           | ^
        ```
    """

    kind = "Scan Error"
    code: ErrorCode | None = ErrorCode.UNTERMINATED_CODE


class CodeSyntaxError(CompileError):
    """Embedded code inside <?py ... ?> is not valid Python."""

    kind = "Syntax Error"
    code: ErrorCode | None = ErrorCode.CODE_SYNTAX


class TemplateNotFoundError(TemplateError):
    """Template source file not found.

    Missing *includes* are warnings, not errors; this is raised only for the
    top-level ``source_file`` or an explicit loader lookup.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class ExecutionError(TemplateError):
    """Embedded code raised while the generated script was running.

    The location is the authored (file, line) recovered through the script's
    line markers. The original exception is kept as ``original`` and, when
    propagated, as ``__cause__``.

    Attributes:
        message: Error description
        template_name: Authored file where the failure happened
        lineno: Authored line number
        original: The exception raised by the embedded code
        source_snippet: Surrounding authored lines, when the source is known
        namespace_id: Namespace of the failed execution

    """

    code: ErrorCode | None = ErrorCode.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        original: BaseException | None = None,
        source_snippet: SourceSnippet | None = None,
        namespace_id: str | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.original = original
        self.source_snippet = source_snippet
        self.namespace_id = namespace_id
        super().__init__(self._format_message())

    @property
    def error_type(self) -> str | None:
        """Class name of the original exception."""
        return type(self.original).__name__ if self.original is not None else None

    def _headline(self) -> str:
        if self.error_type:
            return f"{self.error_type}: {self.message}"
        return self.message

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self._headline()}"]
        parts.append(f"  Location: {_location(self.template_name, self.lineno)}")
        if self.source_snippet:
            parts.append(terminal.strip_colors(self.source_snippet.format()))
        return "\n".join(parts)

    def format_compact(self) -> str:
        header = self._headline()
        if self.code:
            header = f"{terminal.error_code(self.code.value)}: {header}"
        parts = [
            header,
            f"  Location: {terminal.location(_location(self.template_name, self.lineno))}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        return "\n".join(parts)


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IncludeWarning:
    """A non-fatal include problem recorded during compilation.

    The directive is replaced by empty text and compilation continues.

    Attributes:
        filename: File containing the include directive
        lineno: Line of the directive
        path: Path named by the directive
        code: INCLUDE_NOT_FOUND or INCLUDE_CYCLE
    """

    filename: str
    lineno: int
    path: str
    code: ErrorCode = ErrorCode.INCLUDE_NOT_FOUND

    @property
    def reason(self) -> str:
        if self.code is ErrorCode.INCLUDE_CYCLE:
            return "cyclic include"
        return "not found"

    @property
    def message(self) -> str:
        return f"Cannot include '{self.path}' ({self.reason}) at {self.filename}:{self.lineno}"

    def __str__(self) -> str:
        return self.message

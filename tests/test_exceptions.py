"""Tests for error types, codes and diagnostic formatting."""

import pytest

from kiln import (
    CodeSyntaxError,
    CompileError,
    ErrorCode,
    ExecutionError,
    IncludeWarning,
    ScanError,
    TemplateError,
    TemplateNotFoundError,
    build_source_snippet,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls", [CompileError, ScanError, CodeSyntaxError, TemplateNotFoundError, ExecutionError]
    )
    def test_all_errors_are_template_errors(self, cls):
        assert issubclass(cls, TemplateError)

    def test_compile_errors(self):
        assert issubclass(ScanError, CompileError)
        assert issubclass(CodeSyntaxError, CompileError)
        assert not issubclass(ExecutionError, CompileError)

    def test_include_warning_is_not_an_exception(self):
        assert not issubclass(IncludeWarning, BaseException)


class TestErrorCodes:
    @pytest.mark.parametrize(
        ("code", "category"),
        [
            (ErrorCode.UNTERMINATED_CODE, "scanner"),
            (ErrorCode.CODE_SYNTAX, "compiler"),
            (ErrorCode.INCLUDE_CYCLE, "include"),
            (ErrorCode.EXECUTION_FAILED, "runtime"),
            (ErrorCode.TEMPLATE_NOT_FOUND, "template"),
        ],
    )
    def test_category(self, code, category):
        assert code.category == category

    def test_codes_are_unique(self):
        values = [c.value for c in ErrorCode]
        assert len(values) == len(set(values))


class TestSnippets:
    SOURCE = "one\ntwo\nthree\nfour\nfive\nsix"

    def test_context_window(self):
        snippet = build_source_snippet(self.SOURCE, 4)
        assert [n for n, _ in snippet.lines] == [2, 3, 4, 5, 6]
        assert snippet.error_line == 4

    def test_clamped_at_start(self):
        snippet = build_source_snippet(self.SOURCE, 1, context_lines=1)
        assert snippet.lines == ((1, "one"), (2, "two"))

    @pytest.mark.parametrize("line", [0, 7, -1])
    def test_out_of_range(self, line):
        assert build_source_snippet(self.SOURCE, line) is None

    def test_format_with_caret(self):
        snippet = build_source_snippet("abc {$x", 1, context_lines=0, column=4)
        assert snippet.format() == "   |\n>  1 | abc {$x\n   |     ^\n   |"


class TestMessages:
    def test_compile_error_message(self):
        error = CodeSyntaxError("invalid syntax", lineno=2, filename="p.txt", source="a\nb = =")
        assert str(error).startswith("Syntax Error: invalid syntax\n  --> p.txt:2")
        assert ">  2 | b = =" in str(error)

    def test_compile_error_without_location(self):
        assert str(CompileError("boom")) == "Compile Error: boom\n  --> <template>"

    def test_format_compact_has_code(self):
        error = ScanError("Unterminated code block (missing '?>')", lineno=1, filename="p.txt")
        assert error.format_compact().startswith("KLN-SCN-001: Unterminated")

    def test_execution_error_message(self):
        error = ExecutionError(
            "division by zero",
            template_name="invoice.txt",
            lineno=12,
            original=ZeroDivisionError("division by zero"),
        )
        assert str(error) == (
            "Runtime Error: ZeroDivisionError: division by zero\n  Location: invoice.txt:12"
        )
        assert error.format_compact().startswith("KLN-RUN-001: ZeroDivisionError")

    def test_template_not_found_compact(self):
        error = TemplateNotFoundError("Template file 'x' not found")
        assert error.format_compact() == "KLN-TPL-001: Template file 'x' not found"

    def test_include_warning_message(self):
        warning = IncludeWarning("page.txt", 3, "a.txt", ErrorCode.INCLUDE_CYCLE)
        assert str(warning) == "Cannot include 'a.txt' (cyclic include) at page.txt:3"

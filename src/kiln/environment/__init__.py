"""Environment, configuration, loaders, escaping registry and exceptions."""

from kiln.environment.exceptions import (
    CodeSyntaxError,
    CompileError,
    ErrorCode,
    ExecutionError,
    IncludeWarning,
    ScanError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    build_source_snippet,
)
from kiln.environment.loaders import DictLoader, Loader, SearchPathLoader
from kiln.environment.registry import DEFAULT_ESCAPES, EscapeRegistry, EscapeStyle
from kiln.environment.config import ErrorSink, ExecutionConfig, OutputSink
from kiln.environment.core import Environment, compile_template, expand

__all__ = [
    "DEFAULT_ESCAPES",
    "CodeSyntaxError",
    "CompileError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "ErrorSink",
    "EscapeRegistry",
    "EscapeStyle",
    "ExecutionConfig",
    "ExecutionError",
    "IncludeWarning",
    "Loader",
    "OutputSink",
    "ScanError",
    "SearchPathLoader",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "build_source_snippet",
    "compile_template",
    "expand",
]

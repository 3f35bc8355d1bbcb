"""kiln: compile text templates with embedded Python into scripts, then run them.

A template is plain text with three constructs:

    <?py total = sum(prices) ?>       embedded Python, run as written
    <?include header.txt?>            textual include, spliced at compile time
    {$total} / {$query,uri}           escaped value output (default style: xml)

Quickstart:
    >>> import kiln
    >>> kiln.expand(source="Hello {$name}!", name="Tom & Jerry")
    'Hello Tom &#38; Jerry!'

Compile once, run many times:
    >>> script = kiln.compile("<?py n = len(items) ?>{$n} items")
    >>> env = kiln.Environment()
    >>> env.run(script, items=[1, 2, 3])
    '3 items'

Architecture:
Template Source -> Scanner -> Include Resolver -> Code Generator -> Runtime

1. **Scanner**: splits text into Literal / Code / Interpolation / Include segments
2. **Include Resolver**: splices included files (missing or cyclic: warning)
3. **Code Generator**: builds a Python ``ast.Module`` with line markers
4. **Runtime**: runs the script in a fresh namespace, routes output and errors

Every generated line maps back to an authored (file, line), so failures in
embedded code are reported against the template, including across includes.

"""

# Environment first: kiln.environment.core imports the compiler and runtime
from kiln.environment import (  # isort: skip
    DEFAULT_ESCAPES,
    CodeSyntaxError,
    CompileError,
    DictLoader,
    Environment,
    ErrorCode,
    ErrorSink,
    EscapeRegistry,
    ExecutionConfig,
    ExecutionError,
    IncludeWarning,
    OutputSink,
    ScanError,
    SearchPathLoader,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    build_source_snippet,
    compile_template,
    expand,
)
from kiln.compiler import CodeGenerator, GeneratedScript, LineMarker, generate
from kiln.executor import CodeExecutor, PythonExecutor
from kiln.nodes import Code, Document, IncludeDirective, Interpolation, Literal
from kiln.resolver import IncludeResolver, ResolvedDocument, resolve
from kiln.runtime import run
from kiln.scanner import Scanner, scan
from kiln.utils.escape import raw, uri_escape, xml_escape

compile = compile_template

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_ESCAPES",
    "Code",
    "CodeExecutor",
    "CodeGenerator",
    "CodeSyntaxError",
    "CompileError",
    "DictLoader",
    "Document",
    "Environment",
    "ErrorCode",
    "ErrorSink",
    "EscapeRegistry",
    "ExecutionConfig",
    "ExecutionError",
    "GeneratedScript",
    "IncludeDirective",
    "IncludeResolver",
    "IncludeWarning",
    "Interpolation",
    "LineMarker",
    "Literal",
    "OutputSink",
    "PythonExecutor",
    "ResolvedDocument",
    "ScanError",
    "Scanner",
    "SearchPathLoader",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "__version__",
    "build_source_snippet",
    "compile",
    "compile_template",
    "expand",
    "generate",
    "raw",
    "resolve",
    "run",
    "scan",
    "uri_escape",
    "xml_escape",
]

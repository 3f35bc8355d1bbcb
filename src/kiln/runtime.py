"""Execution environment: run a GeneratedScript under an ExecutionConfig.

Each run gets:

- a fresh namespace dict named after ``config.namespace_id``, seeded with
  the caller's variables and the ``_escape`` lookup of the escape registry
- an output sink chosen by ``config.output_file``

and the script is handed to a `CodeExecutor`. Output statements execute in
document order; nothing is buffered between statements beyond what the sink
itself buffers.

Error Routing:
    Any exception from the embedded code becomes an `ExecutionError` whose
    location is the authored (file, line) found through the script's line
    markers. It is then routed by ``config.errors_to``: re-raised (default),
    passed to a callback, or written to a stream. Execution never resumes
    after a failure.

Thread-Safety:
    Runs share nothing mutable: namespaces and capture buffers are per run,
    scripts and registries are immutable.
"""

from __future__ import annotations

import builtins
import io
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import IO, Any

from kiln.compiler.script import GeneratedScript
from kiln.environment import terminal
from kiln.environment.config import ErrorSink, ExecutionConfig, OutputSink
from kiln.environment.exceptions import ExecutionError, build_source_snippet
from kiln.environment.registry import DEFAULT_ESCAPES, EscapeRegistry
from kiln.executor import CodeExecutor, PythonExecutor

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "kiln.ns_"


def new_namespace(
    config: ExecutionConfig,
    context: Mapping[str, Any] | None = None,
    escapes: EscapeRegistry = DEFAULT_ESCAPES,
) -> dict[str, Any]:
    """Allocate the namespace for one execution."""
    namespace: dict[str, Any] = {
        "__name__": f"{NAMESPACE_PREFIX}{config.namespace_id}",
        "__builtins__": builtins,
    }
    if context:
        namespace.update(context)
    namespace["_escape"] = escapes.escape
    return namespace


@contextmanager
def open_output(config: ExecutionConfig) -> Iterator[IO[str]]:
    """Yield the writable output sink for ``config``.

    Files opened here are closed on exit; caller streams are left open.
    """
    sink = config.output_sink
    if sink is OutputSink.CAPTURED:
        yield io.StringIO()
    elif sink is OutputSink.FILE:
        with open(config.output_file, "w", encoding=config.encoding) as f:  # type: ignore[arg-type]
            yield f
    else:
        yield config.output_file  # type: ignore[misc]


def locate_failure(script: GeneratedScript, error: BaseException) -> tuple[str, int | None]:
    """Find the authored (file, line) where ``error`` was raised.

    Uses the innermost traceback frame that belongs to the script (author
    functions defined in code blocks included), mapped through its markers.
    """
    generated_line = None
    tb = error.__traceback__
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == script.filename:
            generated_line = tb.tb_lineno
        tb = tb.tb_next
    if generated_line is not None:
        where = script.locate(generated_line)
        if where is not None:
            return where
    return script.name, None


def _describe(error: BaseException) -> str:
    message = str(error).strip()
    if message:
        return message
    non_empty = [str(a) for a in getattr(error, "args", ()) if str(a).strip()]
    return ", ".join(non_empty) if non_empty else "(no details available)"


def execution_error(
    script: GeneratedScript, error: BaseException, config: ExecutionConfig
) -> ExecutionError:
    """Wrap an embedded-code exception with its authored location."""
    filename, lineno = locate_failure(script, error)
    snippet = None
    source = script.sources.get(filename)
    if source and lineno:
        snippet = build_source_snippet(source, lineno)
    if config.reported_filename and filename == script.name:
        filename = config.reported_filename
    return ExecutionError(
        _describe(error),
        template_name=filename,
        lineno=lineno,
        original=error,
        source_snippet=snippet,
        namespace_id=config.namespace_id,
    )


def route_error(error: ExecutionError, config: ExecutionConfig) -> None:
    """Deliver ``error`` to the configured error sink.

    Raises:
        ExecutionError: When the sink is PROPAGATE
    """
    sink = config.error_sink
    if sink is ErrorSink.PROPAGATE:
        raise error from error.original
    if sink is ErrorSink.CALLBACK:
        config.errors_to(error)  # type: ignore[operator,misc]
        return
    stream: IO[str] = config.errors_to  # type: ignore[assignment]
    text = error.format_compact()
    isatty = getattr(stream, "isatty", None)
    if not (isatty and isatty()):
        text = terminal.strip_colors(text)
    stream.write(text + "\n")
    logger.debug(f"Execution error written to stream: {error.template_name}:{error.lineno}")


def run(
    script: GeneratedScript,
    config: ExecutionConfig | None = None,
    context: Mapping[str, Any] | None = None,
    *,
    escapes: EscapeRegistry = DEFAULT_ESCAPES,
    executor: CodeExecutor | None = None,
) -> str | None:
    """Execute ``script`` and return its captured output.

    Args:
        script: Compiled template
        config: Sinks and namespace identity (defaults: capture, propagate)
        context: Variables visible to the template
        escapes: Registry that ``{$name,style}`` resolves styles against
        executor: Code executor (default: `PythonExecutor`)

    Returns:
        The output text when captured; None when output went to a caller
        sink or when a routed (non-propagated) error ended the run.

    Raises:
        ExecutionError: If the embedded code fails and errors propagate
    """
    config = config or ExecutionConfig()
    executor = executor or PythonExecutor()
    namespace = new_namespace(config, context, escapes)
    logger.debug(f"Running {script.name} in namespace {config.namespace_id}")

    with open_output(config) as output:
        try:
            executor.execute(script, namespace, output)
        except Exception as e:
            route_error(execution_error(script, e, config), config)
            return None
        if isinstance(output, io.StringIO) and config.output_sink is OutputSink.CAPTURED:
            return output.getvalue()
    return None
